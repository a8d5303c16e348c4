from typing import Any, Dict

from sqlalchemy.orm import Query

from ..models.needs import NEEDS_LIST_FIELDS, NeedsIdentification
from ..schemas.needs import (
    NeedsCreate,
    NeedsFilters,
    NeedsRead,
    NeedsRecord,
    NeedsUpdate,
    split_items,
)
from .assessment import PatientOwnedRepository


class NeedsRepository(PatientOwnedRepository):
    model = NeedsIdentification
    entity_type = "NeedsIdentification"
    audit_name = "NEEDS"

    create_schema = NeedsCreate
    update_schema = NeedsUpdate
    record_schema = NeedsRecord
    read_schema = NeedsRead
    filters_schema = NeedsFilters

    def prepare(self, payload: Dict[str, Any], partial: bool) -> Dict[str, Any]:
        payload = dict(payload)
        for field in NEEDS_LIST_FIELDS:
            if field in payload:
                payload[field] = split_items(field, payload[field])
        return payload

    def filter_query(self, query: Query, filters: NeedsFilters) -> Query:
        if filters.patient_id:
            query = query.filter(NeedsIdentification.patient_id == filters.patient_id)
        for priority_field in NEEDS_LIST_FIELDS.values():
            value = getattr(filters, priority_field)
            if value:
                query = query.filter(getattr(NeedsIdentification, priority_field) == value.value)
        if filters.created_by:
            query = query.filter(NeedsIdentification.created_by == filters.created_by)
        return self.created_between(query, filters.created_from, filters.created_to)
