"""
Generic entity repository.

One parameterised implementation of the validate -> write -> audit -> commit
cycle. Subclasses declare their model, schemas and audit names, and override the
hooks below where an entity has its own rules:

- ``prepare``            normalise raw input before schema validation
- ``check_create``       cross-row checks before insert (existence, uniqueness)
- ``check_update``       cross-row checks before a merge
- ``check_delete``       refuse a delete
- ``apply_changes``      merge validated changes onto the row
- ``apply_invariants``   derived-field rules re-applied after every write
- ``filter_query``       translate the entity's typed filters into a query
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Sequence, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.errors import NotFoundError, SiranaError, StorageError, ValidationError
from ..core.time_utils import date_range_bounds
from ..schemas.common import Page, blank_to_none, check_paging
from ..services.audit import AuditContext, AuditRecorder, audit_recorder

logger = logging.getLogger(__name__)

Payload = Union[Dict[str, Any], BaseModel]


def pydantic_errors(exc: PydanticValidationError) -> List[Dict[str, str]]:
    """Flatten pydantic errors into ``{field, message}`` pairs, one per failure."""
    errors = []
    for err in exc.errors():
        field = ".".join(str(part) for part in err["loc"]) or "__root__"
        message = err["msg"]
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": field, "message": message})
    return errors


def as_dict(payload: Optional[Payload]) -> Dict[str, Any]:
    if payload is None:
        return {}
    if isinstance(payload, BaseModel):
        return payload.model_dump(exclude_unset=True)
    return dict(payload)


LIKE_ESCAPE = "\\"


def contains_pattern(term: str) -> str:
    """``%term%`` with the term's own ``%``, ``_`` and escape characters matched literally."""
    escaped = (
        term.strip()
        .replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


class Repository:
    model: Type = None
    entity_type: str = ""       # audit entity name, e.g. "Patient"
    audit_name: str = ""        # action suffix, e.g. "PATIENT" -> CREATE_PATIENT
    owned: bool = True          # rows carry a created_by reference

    create_schema: Type[BaseModel] = None
    update_schema: Type[BaseModel] = None
    record_schema: Type[BaseModel] = None
    read_schema: Type[BaseModel] = None
    filters_schema: Type[BaseModel] = None

    search_fields: Sequence[str] = ()

    def __init__(
        self,
        db: Session,
        recorder: Optional[AuditRecorder] = None,
        context: Optional[AuditContext] = None,
    ):
        self.db = db
        self.recorder = recorder or audit_recorder
        self.context = context

    # ------------------------------------------------------------------ hooks

    def prepare(self, payload: Dict[str, Any], partial: bool) -> Dict[str, Any]:
        return payload

    def check_create(self, data: Dict[str, Any]) -> None:
        pass

    def check_update(self, obj, changes: Dict[str, Any]) -> None:
        pass

    def check_delete(self, obj, actor_id: str) -> None:
        pass

    def apply_changes(self, obj, changes: Dict[str, Any]) -> None:
        for key, value in changes.items():
            setattr(obj, key, value)

    def apply_invariants(self, obj) -> None:
        pass

    def eager_options(self) -> list:
        return []

    def filter_query(self, query: Query, filters: BaseModel) -> Query:
        return query

    def order_by(self) -> tuple:
        return (self.model.created_at.desc(), self.model.id.desc())

    def translate_integrity_error(self, exc: IntegrityError) -> SiranaError:
        return StorageError(f"Could not save {self.entity_type}: integrity constraint violated")

    def snapshot(self, obj) -> Dict[str, Any]:
        return self.record_schema.model_validate(obj).model_dump(mode="json")

    def to_read(self, obj) -> BaseModel:
        return self.read_schema.model_validate(obj)

    # ------------------------------------------------------------- validation

    def validate(
        self,
        payload: Optional[Payload],
        partial: bool = False,
        schema: Optional[Type[BaseModel]] = None,
    ) -> Dict[str, Any]:
        """Validate input, collecting every failing field before raising."""
        raw = self.prepare(as_dict(payload), partial)
        if schema is None:
            schema = self.update_schema if partial else self.create_schema
        errors: List[Dict[str, str]] = []
        data: Dict[str, Any] = {}
        try:
            parsed = schema.model_validate(raw)
            data = parsed.model_dump(exclude_unset=partial)
        except PydanticValidationError as exc:
            errors.extend(pydantic_errors(exc))

        if partial:
            failed = {e["field"] for e in errors}
            for key, value in raw.items():
                if key in schema.model_fields and key not in failed:
                    if blank_to_none(value) is None and not self._nullable(key):
                        errors.append({"field": key, "message": "Field cannot be empty"})

        if errors:
            raise ValidationError(errors)
        return data

    def parse_filters(self, filters: Optional[Payload]) -> BaseModel:
        if isinstance(filters, self.filters_schema):
            return filters
        try:
            return self.filters_schema.model_validate(as_dict(filters))
        except PydanticValidationError as exc:
            raise ValidationError(pydantic_errors(exc), message="Invalid filters") from exc

    def _nullable(self, key: str) -> bool:
        column = self.model.__table__.columns.get(key)
        return column is None or column.nullable

    # ------------------------------------------------------------ transaction

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        """Commit on success; roll back the whole unit on any failure."""
        try:
            yield
            self.db.commit()
        except SiranaError:
            self.db.rollback()
            raise
        except IntegrityError as exc:
            self.db.rollback()
            logger.error("Integrity error writing %s: %s", self.entity_type, exc.orig)
            raise self.translate_integrity_error(exc) from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Storage failure writing %s: %s", self.entity_type, exc)
            raise StorageError(f"Could not save {self.entity_type}") from exc
        except Exception:
            self.db.rollback()
            raise

    @contextmanager
    def _reading(self) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            logger.error("Storage failure reading %s: %s", self.entity_type, exc)
            raise StorageError(f"Could not read {self.entity_type}") from exc

    def _audit(self, action: str, actor_id: str, entity_id: str, old_data=None, new_data=None) -> None:
        self.recorder.record(
            self.db,
            actor_id=actor_id,
            action=f"{action}_{self.audit_name}",
            entity_type=self.entity_type,
            entity_id=entity_id,
            old_data=old_data,
            new_data=new_data,
            context=self.context,
        )

    def _get_row(self, entity_id: str):
        obj = self.db.get(self.model, entity_id, populate_existing=True)
        if obj is None:
            raise NotFoundError(self.entity_type, entity_id)
        return obj

    # ------------------------------------------------------------- operations

    def create(self, payload: Payload, actor_id: str) -> BaseModel:
        data = self.validate(payload)
        with self._atomic():
            self.check_create(data)
            obj = self.model(**data)
            if self.owned:
                obj.created_by = actor_id
            self.apply_invariants(obj)
            self.db.add(obj)
            self.db.flush()
            self.db.refresh(obj)
            self._audit("CREATE", actor_id, obj.id, new_data=self.snapshot(obj))
        logger.info("Created %s %s by %s", self.entity_type, obj.id, actor_id)
        return self.to_read(obj)

    def update(self, entity_id: str, payload: Payload, actor_id: str) -> BaseModel:
        changes = self.validate(payload, partial=True)
        with self._atomic():
            obj = self._get_row(entity_id)
            old_data = self.snapshot(obj)
            self.check_update(obj, changes)
            self.apply_changes(obj, changes)
            self.apply_invariants(obj)
            self.db.flush()
            self.db.refresh(obj)
            self._audit("UPDATE", actor_id, obj.id, old_data=old_data, new_data=self.snapshot(obj))
        logger.info("Updated %s %s by %s (%s)", self.entity_type, entity_id, actor_id, ", ".join(sorted(changes)))
        return self.to_read(obj)

    def delete(self, entity_id: str, actor_id: str) -> None:
        with self._atomic():
            obj = self._get_row(entity_id)
            self.check_delete(obj, actor_id)
            old_data = self.snapshot(obj)
            self.db.delete(obj)
            self.db.flush()
            self._audit("DELETE", actor_id, entity_id, old_data=old_data)
        logger.info("Deleted %s %s by %s", self.entity_type, entity_id, actor_id)

    def get(self, entity_id: str) -> BaseModel:
        with self._reading():
            obj = (
                self.db.query(self.model)
                .options(*self.eager_options())
                .filter(self.model.id == entity_id)
                .first()
            )
        if obj is None:
            raise NotFoundError(self.entity_type, entity_id)
        return self.to_read(obj)

    def filtered(self, filters: Optional[Payload] = None) -> Query:
        return self.filter_query(self.db.query(self.model), self.parse_filters(filters))

    def list(self, filters: Optional[Payload] = None, page: int = 1, page_size: int = 10) -> Page:
        check_paging(page, page_size)
        query = self.filtered(filters)
        with self._reading():
            total = query.count()
            rows = (
                query.options(*self.eager_options())
                .order_by(*self.order_by())
                .offset((page - 1) * page_size)
                .limit(page_size)
                .all()
            )
        return Page[self.read_schema](
            items=[self.to_read(r) for r in rows],
            page=page,
            page_size=page_size,
            total=total,
        )

    def iter_all(
        self,
        filters: Optional[Payload] = None,
        order_by: Optional[tuple] = None,
        batch_size: int = 500,
    ) -> Iterator:
        """Every matching row, fetched in batches (no row cap). Defaults to list order."""
        query = (
            self.filtered(filters)
            .options(*self.eager_options())
            .order_by(*(order_by or self.order_by()))
            .yield_per(batch_size)
        )
        with self._reading():
            for row in query:
                yield row

    # ---------------------------------------------------------------- helpers

    def search_clause(self, term: str):
        pattern = contains_pattern(term)
        return or_(*(getattr(self.model, f).ilike(pattern, escape=LIKE_ESCAPE) for f in self.search_fields))

    def created_between(self, query: Query, date_from, date_to) -> Query:
        start, end = date_range_bounds(date_from, date_to)
        if start:
            query = query.filter(self.model.created_at >= start)
        if end:
            query = query.filter(self.model.created_at < end)
        return query
