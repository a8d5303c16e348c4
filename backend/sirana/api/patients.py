from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response, status

from ..core.permissions import PERM_VIEW_RECORDS, PERM_WRITE_RECORDS
from ..core.security import Actor, require_permission
from ..repositories import PatientRepository
from ..schemas.common import Page
from ..schemas.patient import PatientDetail, PatientFilters, PatientRead
from ..services.statistics import StatisticsService
from .deps import Paging, get_paging, get_statistics, repository

router = APIRouter(prefix="/patients", tags=["patients"])

get_repository = repository(PatientRepository)


@router.get("/stats")
def patient_stats(
    stats: StatisticsService = Depends(get_statistics),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return stats.patient_stats()


@router.get("", response_model=Page[PatientRead])
def list_patients(
    filters: PatientFilters = Depends(),
    paging: Paging = Depends(get_paging),
    repo: PatientRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    """Search by name, NIK or address; filter by age group, sex, entry date and creator."""
    return repo.list(filters, page=paging.page, page_size=paging.page_size)


@router.get("/nik/{nik}", response_model=PatientRead)
def get_patient_by_nik(
    nik: str,
    repo: PatientRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    return repo.get_by_nik(nik)


@router.get("/{patient_id}", response_model=PatientDetail)
def get_patient(
    patient_id: str,
    repo: PatientRepository = Depends(get_repository),
    _actor: Actor = Depends(require_permission(PERM_VIEW_RECORDS)),
):
    """Patient with its latest assessments, environment and needs records."""
    return repo.get_detail(patient_id)


@router.post("", response_model=PatientRead, status_code=status.HTTP_201_CREATED)
def create_patient(
    payload: Dict[str, Any] = Body(...),
    repo: PatientRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    return repo.create(payload, actor.id)


@router.put("/{patient_id}", response_model=PatientRead)
def update_patient(
    patient_id: str,
    payload: Dict[str, Any] = Body(...),
    repo: PatientRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    return repo.update(patient_id, payload, actor.id)


@router.delete("/{patient_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_patient(
    patient_id: str,
    repo: PatientRepository = Depends(get_repository),
    actor: Actor = Depends(require_permission(PERM_WRITE_RECORDS)),
):
    """Deletes the patient together with all of its assessments, environment and needs records."""
    repo.delete(patient_id, actor.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
