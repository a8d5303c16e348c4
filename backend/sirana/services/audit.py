"""
Audit trail: append entries inside the caller's transaction and query them back.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from ..core.time_utils import date_range_bounds
from ..models.audit import AuditLog
from ..schemas.audit import AuditFilters, AuditLogRead
from ..schemas.common import Page, check_paging

logger = logging.getLogger(__name__)


@dataclass
class AuditContext:
    """Request metadata attached to every entry written during one call."""
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None


class AuditRecorder:
    """
    Writes one AuditLog row per mutating repository call.

    ``record`` only adds and flushes; committing (or rolling back) belongs to the
    repository that owns the transaction, so the entry and the mutation it
    describes land together or not at all.
    """

    def record(
        self,
        db: Session,
        *,
        actor_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        old_data: Optional[Dict[str, Any]] = None,
        new_data: Optional[Dict[str, Any]] = None,
        context: Optional[AuditContext] = None,
    ) -> AuditLog:
        context = context or AuditContext()
        entry = AuditLog(
            user_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_data=old_data,
            new_data=new_data,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )
        db.add(entry)
        db.flush()
        logger.debug("Audit %s %s/%s by %s", action, entity_type, entity_id, actor_id)
        return entry

    def query(
        self,
        db: Session,
        filters: Optional[AuditFilters] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> Page[AuditLogRead]:
        """Searchable audit log, newest first."""
        check_paging(page, page_size)
        filters = filters or AuditFilters()
        q = db.query(AuditLog)
        if filters.entity_type:
            q = q.filter(AuditLog.entity_type == filters.entity_type)
        if filters.entity_id:
            q = q.filter(AuditLog.entity_id == filters.entity_id)
        if filters.user_id:
            q = q.filter(AuditLog.user_id == filters.user_id)
        if filters.action:
            q = q.filter(AuditLog.action == filters.action)
        since, until = date_range_bounds(filters.created_from, filters.created_to)
        if since:
            q = q.filter(AuditLog.created_at >= since)
        if until:
            q = q.filter(AuditLog.created_at < until)

        total = q.count()
        rows = (
            q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
            .offset((page - 1) * page_size)
            .limit(page_size)
            .all()
        )
        return Page[AuditLogRead](
            items=[AuditLogRead.model_validate(r) for r in rows],
            page=page,
            page_size=page_size,
            total=total,
        )


audit_recorder = AuditRecorder()
