from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response, status

from ..core.permissions import PERM_MANAGE_DISASTERS, PERM_VIEW_RECORDS
from ..core.security import Actor, require_permission
from ..repositories import DisasterRepository
from ..schemas.common import Page
from ..schemas.disaster import DisasterFilters, DisasterRead
from ..services.statistics import StatisticsService
from .deps import Paging, get_paging, get_statistics, repository

router = APIRouter(prefix="/disasters", tags=["disasters"])

get_repository = repository(DisasterRepository)


@router.get("/stats")
def disaster_stats(
    stats: StatisticsService = Depends(get_statistics),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return stats.disaster_stats()


@router.get("", response_model=Page[DisasterRead])
def list_disasters(
    filters: DisasterFilters = Depends(),
    paging: Paging = Depends(get_paging),
    repo: DisasterRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    """Most recent occurrence first."""
    return repo.list(filters, page=paging.page, page_size=paging.page_size)


@router.get("/{disaster_id}", response_model=DisasterRead)
def get_disaster(
    disaster_id: str,
    repo: DisasterRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return repo.get(disaster_id)


@router.post("", response_model=DisasterRead, status_code=status.HTTP_201_CREATED)
def create_disaster(
    payload: Dict[str, Any] = Body(...),
    repo: DisasterRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_MANAGE_DISASTERS)),
):
    return repo.create(payload, actor.id)


@router.put("/{disaster_id}", response_model=DisasterRead)
def update_disaster(
    disaster_id: str,
    payload: Dict[str, Any] = Body(...),
    repo: DisasterRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_MANAGE_DISASTERS)),
):
    return repo.update(disaster_id, payload, actor.id)


@router.patch("/{disaster_id}/status", response_model=DisasterRead)
def update_disaster_status(
    disaster_id: str,
    payload: Dict[str, Any] = Body(...),
    repo: DisasterRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_MANAGE_DISASTERS)),
):
    """Body: ``{"status": "active" | "closed"}``."""
    return repo.update_status(disaster_id, payload, actor.id)


@router.delete("/{disaster_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_disaster(
    disaster_id: str,
    repo: DisasterRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_MANAGE_DISASTERS)),
):
    repo.delete(disaster_id, actor.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
