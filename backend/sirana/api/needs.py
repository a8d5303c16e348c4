from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response, status

from ..core.permissions import PERM_VIEW_RECORDS, PERM_WRITE_RECORDS
from ..core.security import Actor, require_permission
from ..repositories import NeedsRepository
from ..schemas.common import Page
from ..schemas.needs import NeedsFilters, NeedsRead
from ..services.statistics import StatisticsService
from .deps import Paging, get_paging, get_statistics, repository

router = APIRouter(prefix="/needs", tags=["needs"])

get_repository = repository(NeedsRepository)


@router.get("/stats")
def needs_stats(
    stats: StatisticsService = Depends(get_statistics),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    """Priority breakdowns and the most requested items per list."""
    return stats.needs_stats()


@router.get("", response_model=Page[NeedsRead])
def list_needs(
    filters: NeedsFilters = Depends(),
    paging: Paging = Depends(get_paging),
    repo: NeedsRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return repo.list(filters, page=paging.page, page_size=paging.page_size)


@router.get("/{needs_id}", response_model=NeedsRead)
def get_needs(
    needs_id: str,
    repo: NeedsRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return repo.get(needs_id)


@router.post("", response_model=NeedsRead, status_code=status.HTTP_201_CREATED)
def create_needs(
    payload: Dict[str, Any] = Body(...),
    repo: NeedsRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    """List fields accept either a JSON array or a comma-separated string."""
    return repo.create(payload, actor.id)


@router.put("/{needs_id}", response_model=NeedsRead)
def update_needs(
    needs_id: str,
    payload: Dict[str, Any] = Body(...),
    repo: NeedsRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    return repo.update(needs_id, payload, actor.id)


@router.delete("/{needs_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_needs(
    needs_id: str,
    repo: NeedsRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    repo.delete(needs_id, actor.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
