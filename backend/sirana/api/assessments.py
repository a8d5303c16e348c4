from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, Response, status

from ..core.permissions import PERM_VIEW_RECORDS, PERM_WRITE_RECORDS
from ..core.security import Actor, require_permission
from ..repositories import AssessmentRepository
from ..schemas.assessment import AssessmentFilters, AssessmentRead
from ..schemas.common import Page
from ..services.statistics import StatisticsService
from .deps import Paging, get_paging, get_statistics, repository

router = APIRouter(prefix="/assessments", tags=["assessments"])

get_repository = repository(AssessmentRepository)


@router.get("/stats")
def assessment_stats(
    stats: StatisticsService = Depends(get_statistics),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    """Totals, follow-up and anamnesis breakdowns, entry windows, today's visits and top diagnoses."""
    return stats.assessment_stats()


@router.get("", response_model=Page[AssessmentRead])
def list_assessments(
    filters: AssessmentFilters = Depends(),
    paging: Paging = Depends(get_paging),
    repo: AssessmentRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return repo.list(filters, page=paging.page, page_size=paging.page_size)


@router.get("/patient/{patient_id}", response_model=List[AssessmentRead])
def list_patient_assessments(
    patient_id: str,
    repo: AssessmentRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return repo.list_by_patient(patient_id)


@router.get("/{assessment_id}", response_model=AssessmentRead)
def get_assessment(
    assessment_id: str,
    repo: AssessmentRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return repo.get(assessment_id)


@router.post("", response_model=AssessmentRead, status_code=status.HTTP_201_CREATED)
def create_assessment(
    payload: Dict[str, Any] = Body(...),
    repo: AssessmentRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    return repo.create(payload, actor.id)


@router.put("/{assessment_id}", response_model=AssessmentRead)
def update_assessment(
    assessment_id: str,
    payload: Dict[str, Any] = Body(...),
    repo: AssessmentRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    return repo.update(assessment_id, payload, actor.id)


@router.delete("/{assessment_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_assessment(
    assessment_id: str,
    repo: AssessmentRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    repo.delete(assessment_id, actor.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
