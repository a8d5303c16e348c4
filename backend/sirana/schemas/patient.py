from datetime import date, datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..models.patient import AgeGroup, Religion, Sex
from .common import Blankable, InputModel, RecordModel, UserBrief

NIK_LENGTH = 16

OptionalText = Annotated[Optional[str], Blankable]


def check_nik(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if len(value) != NIK_LENGTH or not (value.isascii() and value.isdigit()):
        raise ValueError("NIK must be exactly 16 digits")
    return value


class PatientCreate(InputModel):
    nik: OptionalText = None
    name: str = Field(..., min_length=3, max_length=200)
    sex: Sex
    birthplace: str = Field(..., min_length=1, max_length=100)
    birth_date: date
    address: str = Field(..., min_length=1)
    rt: OptionalText = None
    rw: OptionalText = None
    village: OptionalText = None
    district: OptionalText = None
    regency: OptionalText = None
    province: OptionalText = None
    religion: Annotated[Optional[Religion], Blankable] = None
    occupation: OptionalText = None
    phone: OptionalText = None
    age_group: AgeGroup
    gestational_weeks: Annotated[Optional[int], Blankable] = Field(None, ge=1, le=45)

    @field_validator("nik")
    @classmethod
    def _check_nik(cls, value):
        return check_nik(value)


class PatientUpdate(InputModel):
    nik: OptionalText = None
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    sex: Optional[Sex] = None
    birthplace: Optional[str] = Field(None, min_length=1, max_length=100)
    birth_date: Optional[date] = None
    address: Optional[str] = Field(None, min_length=1)
    rt: OptionalText = None
    rw: OptionalText = None
    village: OptionalText = None
    district: OptionalText = None
    regency: OptionalText = None
    province: OptionalText = None
    religion: Annotated[Optional[Religion], Blankable] = None
    occupation: OptionalText = None
    phone: OptionalText = None
    age_group: Optional[AgeGroup] = None
    gestational_weeks: Annotated[Optional[int], Blankable] = Field(None, ge=1, le=45)

    @field_validator("nik")
    @classmethod
    def _check_nik(cls, value):
        return check_nik(value)


class PatientRecord(RecordModel):
    id: str
    nik: Optional[str] = None
    name: str
    sex: str
    birthplace: str
    birth_date: date
    address: str
    rt: Optional[str] = None
    rw: Optional[str] = None
    village: Optional[str] = None
    district: Optional[str] = None
    regency: Optional[str] = None
    province: Optional[str] = None
    religion: Optional[str] = None
    occupation: Optional[str] = None
    phone: Optional[str] = None
    age_group: str
    gestational_weeks: Optional[int] = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class PatientRead(PatientRecord):
    creator: Optional[UserBrief] = None


class PatientDetail(PatientRead):
    """Patient with its most recent clinical context."""

    recent_assessments: List["AssessmentRead"] = []
    latest_environment: Optional["EnvironmentRead"] = None
    latest_needs: Optional["NeedsRead"] = None


class PatientFilters(BaseModel):
    search: Optional[str] = None  # name, NIK or address, case-insensitive
    age_group: Optional[AgeGroup] = None
    sex: Optional[Sex] = None
    created_from: Optional[date] = None
    created_to: Optional[date] = None
    created_by: Optional[str] = None


from .assessment import AssessmentRead  # noqa: E402
from .environment import EnvironmentRead  # noqa: E402
from .needs import NeedsRead  # noqa: E402

PatientDetail.model_rebuild()
