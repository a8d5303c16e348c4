from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query, joinedload

from ..core.errors import ConflictError, NotFoundError, SiranaError
from ..models.assessment import MedicalAssessment
from ..models.environment import EnvironmentAssessment
from ..models.needs import NeedsIdentification
from ..models.patient import AgeGroup, Patient
from ..schemas.assessment import AssessmentRead
from ..schemas.environment import EnvironmentRead
from ..schemas.needs import NeedsRead
from ..schemas.patient import (
    PatientCreate,
    PatientDetail,
    PatientFilters,
    PatientRead,
    PatientRecord,
    PatientUpdate,
)
from .base import Repository

RECENT_ASSESSMENTS = 5


class PatientRepository(Repository):
    model = Patient
    entity_type = "Patient"
    audit_name = "PATIENT"

    create_schema = PatientCreate
    update_schema = PatientUpdate
    record_schema = PatientRecord
    read_schema = PatientRead
    filters_schema = PatientFilters

    search_fields = ("name", "nik", "address")

    def eager_options(self) -> list:
        return [joinedload(Patient.creator)]

    def _nik_taken(self, nik: str, exclude_id: str = None) -> bool:
        query = self.db.query(Patient.id).filter(Patient.nik == nik)
        if exclude_id:
            query = query.filter(Patient.id != exclude_id)
        return query.first() is not None

    def check_create(self, data: Dict[str, Any]) -> None:
        nik = data.get("nik")
        if nik and self._nik_taken(nik):
            raise ConflictError(self.entity_type, "nik", nik)

    def check_update(self, obj: Patient, changes: Dict[str, Any]) -> None:
        nik = changes.get("nik")
        if nik and nik != obj.nik and self._nik_taken(nik, exclude_id=obj.id):
            raise ConflictError(self.entity_type, "nik", nik)

    def apply_invariants(self, obj: Patient) -> None:
        # Gestational age only means something for pregnant women
        if obj.age_group != AgeGroup.PREGNANT_WOMAN.value:
            obj.gestational_weeks = None

    def translate_integrity_error(self, exc: IntegrityError) -> SiranaError:
        if "nik" in str(exc.orig).lower():
            return ConflictError(self.entity_type, "nik")
        return super().translate_integrity_error(exc)

    def filter_query(self, query: Query, filters: PatientFilters) -> Query:
        if filters.search:
            query = query.filter(self.search_clause(filters.search))
        if filters.age_group:
            query = query.filter(Patient.age_group == filters.age_group.value)
        if filters.sex:
            query = query.filter(Patient.sex == filters.sex.value)
        if filters.created_by:
            query = query.filter(Patient.created_by == filters.created_by)
        return self.created_between(query, filters.created_from, filters.created_to)

    def get_by_nik(self, nik: str) -> PatientRead:
        with self._reading():
            obj = (
                self.db.query(Patient)
                .options(*self.eager_options())
                .filter(Patient.nik == nik)
                .first()
            )
        if obj is None:
            raise NotFoundError(self.entity_type, nik, field="nik")
        return self.to_read(obj)

    def get_detail(self, patient_id: str) -> PatientDetail:
        """Patient with its recent assessments and latest environment and needs records."""
        with self._reading():
            obj = (
                self.db.query(Patient)
                .options(*self.eager_options())
                .filter(Patient.id == patient_id)
                .first()
            )
            if obj is None:
                raise NotFoundError(self.entity_type, patient_id)

            assessments = (
                self.db.query(MedicalAssessment)
                .options(joinedload(MedicalAssessment.creator))
                .filter(MedicalAssessment.patient_id == patient_id)
                .order_by(MedicalAssessment.created_at.desc(), MedicalAssessment.id.desc())
                .limit(RECENT_ASSESSMENTS)
                .all()
            )
            environment = (
                self.db.query(EnvironmentAssessment)
                .filter(EnvironmentAssessment.patient_id == patient_id)
                .order_by(EnvironmentAssessment.created_at.desc(), EnvironmentAssessment.id.desc())
                .first()
            )
            needs = (
                self.db.query(NeedsIdentification)
                .filter(NeedsIdentification.patient_id == patient_id)
                .order_by(NeedsIdentification.created_at.desc(), NeedsIdentification.id.desc())
                .first()
            )

        return PatientDetail(
            **self.to_read(obj).model_dump(),
            recent_assessments=[AssessmentRead.model_validate(a) for a in assessments],
            latest_environment=EnvironmentRead.model_validate(environment) if environment else None,
            latest_needs=NeedsRead.model_validate(needs) if needs else None,
        )
