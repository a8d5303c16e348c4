"""Shared pydantic building blocks for record input, snapshots and pages."""
from math import ceil
from typing import Any, Generic, List, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, computed_field

from ..core.errors import ValidationError

T = TypeVar("T")


def blank_to_none(value: Any) -> Any:
    """Empty or whitespace-only strings mean "unset"."""
    if isinstance(value, str) and not value.strip():
        return None
    return value


# Annotated[Optional[X], Blankable] marks a nullable field that normalises "" to None
Blankable = BeforeValidator(blank_to_none)


class InputModel(BaseModel):
    """Base for create/update payloads."""

    model_config = ConfigDict(
        str_strip_whitespace=True,
        use_enum_values=True,
        extra="ignore",
    )


class RecordModel(BaseModel):
    """Flat, JSON-serialisable state of one stored row.

    ``model_dump(mode="json")`` of a record model is the audit snapshot format.
    """

    model_config = ConfigDict(from_attributes=True)


class UserBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    job_title: Optional[str] = None


class PatientBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    nik: Optional[str] = None
    address: Optional[str] = None


class Page(BaseModel, Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total: int

    @computed_field
    @property
    def total_pages(self) -> int:
        return ceil(self.total / self.page_size) if self.page_size else 0


def check_paging(page: int, page_size: int) -> None:
    """Page and page size are positive integers; no upper bound here."""
    errors = []
    if page < 1:
        errors.append({"field": "page", "message": "Page must be a positive integer"})
    if page_size < 1:
        errors.append({"field": "page_size", "message": "Page size must be a positive integer"})
    if errors:
        raise ValidationError(errors)
