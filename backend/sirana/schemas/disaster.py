from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from ..models.disaster import DisasterStatus, DisasterType
from .common import Blankable, InputModel, RecordModel

OptionalText = Annotated[Optional[str], Blankable]


class DisasterCreate(InputModel):
    name: str = Field(..., min_length=3, max_length=200)
    disaster_type: DisasterType
    occurrence_date: date
    location: str = Field(..., min_length=1, max_length=255)
    province: str = Field(..., min_length=1, max_length=100)
    regency: str = Field(..., min_length=1, max_length=100)
    subdistrict: OptionalText = None
    description: OptionalText = None
    status: DisasterStatus = DisasterStatus.ACTIVE


class DisasterUpdate(InputModel):
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    disaster_type: Optional[DisasterType] = None
    occurrence_date: Optional[date] = None
    location: Optional[str] = Field(None, min_length=1, max_length=255)
    province: Optional[str] = Field(None, min_length=1, max_length=100)
    regency: Optional[str] = Field(None, min_length=1, max_length=100)
    subdistrict: OptionalText = None
    description: OptionalText = None
    status: Optional[DisasterStatus] = None


class DisasterStatusUpdate(InputModel):
    status: DisasterStatus


class DisasterRecord(RecordModel):
    id: str
    name: str
    disaster_type: str
    occurrence_date: date
    location: str
    province: str
    regency: str
    subdistrict: Optional[str] = None
    description: Optional[str] = None
    status: str
    created_at: datetime
    updated_at: datetime


DisasterRead = DisasterRecord


class DisasterFilters(BaseModel):
    search: Optional[str] = None  # name, location or description, case-insensitive
    disaster_type: Optional[DisasterType] = None
    status: Optional[DisasterStatus] = None
    province: Optional[str] = None
    occurred_from: Optional[date] = None
    occurred_to: Optional[date] = None
