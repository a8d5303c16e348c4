import logging

from sqlalchemy.orm import Query

from ..models.disaster import DisasterEvent, DisasterStatus
from ..schemas.disaster import (
    DisasterCreate,
    DisasterFilters,
    DisasterRead,
    DisasterRecord,
    DisasterStatusUpdate,
    DisasterUpdate,
)
from .base import LIKE_ESCAPE, Payload, Repository, contains_pattern

logger = logging.getLogger(__name__)


class DisasterRepository(Repository):
    model = DisasterEvent
    entity_type = "DisasterEvent"
    audit_name = "DISASTER"
    owned = False

    create_schema = DisasterCreate
    update_schema = DisasterUpdate
    record_schema = DisasterRecord
    read_schema = DisasterRead
    filters_schema = DisasterFilters

    search_fields = ("name", "location", "description")

    def order_by(self) -> tuple:
        # Most recent occurrence first
        return (DisasterEvent.occurrence_date.desc(), DisasterEvent.created_at.desc(), DisasterEvent.id.desc())

    def filter_query(self, query: Query, filters: DisasterFilters) -> Query:
        if filters.search:
            query = query.filter(self.search_clause(filters.search))
        if filters.disaster_type:
            query = query.filter(DisasterEvent.disaster_type == filters.disaster_type.value)
        if filters.status:
            query = query.filter(DisasterEvent.status == filters.status.value)
        if filters.province:
            query = query.filter(DisasterEvent.province.ilike(contains_pattern(filters.province), escape=LIKE_ESCAPE))
        if filters.occurred_from:
            query = query.filter(DisasterEvent.occurrence_date >= filters.occurred_from)
        if filters.occurred_to:
            query = query.filter(DisasterEvent.occurrence_date <= filters.occurred_to)
        return query

    def update_status(self, disaster_id: str, status: Payload, actor_id: str) -> DisasterRead:
        """Change only the status, audited as UPDATE_DISASTER_STATUS."""
        if isinstance(status, (str, DisasterStatus)):
            status = {"status": status}
        data = self.validate(status, partial=True, schema=DisasterStatusUpdate)
        with self._atomic():
            obj = self._get_row(disaster_id)
            old_data = self.snapshot(obj)
            obj.status = data["status"]
            self.db.flush()
            self.db.refresh(obj)
            self.recorder.record(
                self.db,
                actor_id=actor_id,
                action="UPDATE_DISASTER_STATUS",
                entity_type=self.entity_type,
                entity_id=obj.id,
                old_data=old_data,
                new_data=self.snapshot(obj),
                context=self.context,
            )
        logger.info("Disaster %s status -> %s by %s", disaster_id, data["status"], actor_id)
        return self.to_read(obj)

