"""Admin endpoints: audit log viewer (admin only)."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..core.security import require_role
from ..models.user import UserRole
from ..schemas.audit import AuditFilters, AuditLogRead
from ..schemas.common import Page
from ..services.audit import audit_recorder
from .deps import Paging, get_db, get_paging

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/audit-logs", response_model=Page[AuditLogRead])
def get_audit_logs(
    entity_type: Optional[str] = Query(None, description="Filter by entity type, e.g. Patient"),
    entity_id: Optional[str] = Query(None, description="Filter by entity ID"),
    user_id: Optional[str] = Query(None, description="Filter by acting user ID"),
    action: Optional[str] = Query(None, description="Filter by action, e.g. UPDATE_PATIENT"),
    created_from: Optional[date] = Query(None, description="Entries on or after this date"),
    created_to: Optional[date] = Query(None, description="Entries on or before this date"),
    paging: Paging = Depends(get_paging),
    db: Session = Depends(get_db),
    _admin=Depends(require_role(UserRole.ADMINISTRATOR)),
):
    """Searchable audit trail, newest first. Filterable by entity, user, action and date range."""
    filters = AuditFilters(
        entity_type=entity_type,
        entity_id=entity_id,
        user_id=user_id,
        action=action,
        created_from=created_from,
        created_to=created_to,
    )
    return audit_recorder.query(db, filters, page=paging.page, page_size=paging.page_size)
