from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response, status

from ..core.permissions import PERM_VIEW_RECORDS, PERM_WRITE_RECORDS
from ..core.security import Actor, require_permission
from ..repositories import EnvironmentRepository
from ..schemas.common import Page
from ..schemas.environment import EnvironmentFilters, EnvironmentRead
from ..services.statistics import StatisticsService
from .deps import Paging, get_paging, get_statistics, repository

router = APIRouter(prefix="/environments", tags=["environments"])

get_repository = repository(EnvironmentRepository)


@router.get("/stats")
def environment_stats(
    stats: StatisticsService = Depends(get_statistics),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return stats.environment_stats()


@router.get("", response_model=Page[EnvironmentRead])
def list_environments(
    filters: EnvironmentFilters = Depends(),
    paging: Paging = Depends(get_paging),
    repo: EnvironmentRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return repo.list(filters, page=paging.page, page_size=paging.page_size)


@router.get("/{environment_id}", response_model=EnvironmentRead)
def get_environment(
    environment_id: str,
    repo: EnvironmentRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return repo.get(environment_id)


@router.post("", response_model=EnvironmentRead, status_code=status.HTTP_201_CREATED)
def create_environment(
    payload: Dict[str, Any] = Body(...),
    repo: EnvironmentRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    """``house_photos`` holds references to files already uploaded elsewhere."""
    return repo.create(payload, actor.id)


@router.put("/{environment_id}", response_model=EnvironmentRead)
def update_environment(
    environment_id: str,
    payload: Dict[str, Any] = Body(...),
    repo: EnvironmentRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    """New ``house_photos`` are appended to the existing list."""
    return repo.update(environment_id, payload, actor.id)


@router.delete("/{environment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_environment(
    environment_id: str,
    repo: EnvironmentRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    repo.delete(environment_id, actor.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
