from typing import Any, Dict

from sqlalchemy.orm import Query

from ..models.environment import EnvironmentAssessment
from ..schemas.environment import (
    EnvironmentCreate,
    EnvironmentFilters,
    EnvironmentRead,
    EnvironmentRecord,
    EnvironmentUpdate,
)
from .assessment import PatientOwnedRepository


class EnvironmentRepository(PatientOwnedRepository):
    model = EnvironmentAssessment
    entity_type = "EnvironmentAssessment"
    audit_name = "ENVIRONMENT"

    create_schema = EnvironmentCreate
    update_schema = EnvironmentUpdate
    record_schema = EnvironmentRecord
    read_schema = EnvironmentRead
    filters_schema = EnvironmentFilters

    def apply_changes(self, obj: EnvironmentAssessment, changes: Dict[str, Any]) -> None:
        changes = dict(changes)
        new_photos = changes.pop("house_photos", None)
        super().apply_changes(obj, changes)
        if new_photos:
            # New list object so the JSON column registers the change
            obj.house_photos = list(obj.house_photos or []) + list(new_photos)

    def filter_query(self, query: Query, filters: EnvironmentFilters) -> Query:
        if filters.patient_id:
            query = query.filter(EnvironmentAssessment.patient_id == filters.patient_id)
        if filters.clean_water_access:
            query = query.filter(EnvironmentAssessment.clean_water_access == filters.clean_water_access.value)
        if filters.sanitation_condition:
            query = query.filter(EnvironmentAssessment.sanitation_condition == filters.sanitation_condition.value)
        if filters.created_by:
            query = query.filter(EnvironmentAssessment.created_by == filters.created_by)
        return self.created_between(query, filters.created_from, filters.created_to)
