from typing import Any, Dict, List

from sqlalchemy.orm import Query, joinedload

from ..core.errors import NotFoundError
from ..models.assessment import MedicalAssessment
from ..models.patient import Patient
from ..schemas.assessment import (
    AssessmentCreate,
    AssessmentFilters,
    AssessmentRead,
    AssessmentRecord,
    AssessmentUpdate,
)
from .base import Repository


class PatientOwnedRepository(Repository):
    """Records that hang off an existing patient."""

    def check_create(self, data: Dict[str, Any]) -> None:
        patient_id = data["patient_id"]
        if self.db.get(Patient, patient_id) is None:
            raise NotFoundError("Patient", patient_id)

    def eager_options(self) -> list:
        return [joinedload(self.model.patient), joinedload(self.model.creator)]


class AssessmentRepository(PatientOwnedRepository):
    model = MedicalAssessment
    entity_type = "MedicalAssessment"
    audit_name = "ASSESSMENT"

    create_schema = AssessmentCreate
    update_schema = AssessmentUpdate
    record_schema = AssessmentRecord
    read_schema = AssessmentRead
    filters_schema = AssessmentFilters

    def filter_query(self, query: Query, filters: AssessmentFilters) -> Query:
        if filters.patient_id:
            query = query.filter(MedicalAssessment.patient_id == filters.patient_id)
        if filters.follow_up:
            query = query.filter(MedicalAssessment.follow_up == filters.follow_up.value)
        if filters.created_by:
            query = query.filter(MedicalAssessment.created_by == filters.created_by)
        # Visit date is a calendar date, so the range is inclusive on both ends
        if filters.visit_from:
            query = query.filter(MedicalAssessment.visit_date >= filters.visit_from)
        if filters.visit_to:
            query = query.filter(MedicalAssessment.visit_date <= filters.visit_to)
        return query

    def list_by_patient(self, patient_id: str) -> List[AssessmentRead]:
        """All assessments of one patient, newest first."""
        with self._reading():
            rows = (
                self.db.query(MedicalAssessment)
                .options(joinedload(MedicalAssessment.creator))
                .filter(MedicalAssessment.patient_id == patient_id)
                .order_by(*self.order_by())
                .all()
            )
        return [self.to_read(r) for r in rows]
