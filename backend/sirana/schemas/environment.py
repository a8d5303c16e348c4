from datetime import date, datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field

from ..models.environment import SanitationCondition, WaterAccess
from .common import Blankable, InputModel, PatientBrief, RecordModel, UserBrief


class EnvironmentCreate(InputModel):
    patient_id: str = Field(..., min_length=1)
    clean_water_access: WaterAccess
    sanitation_condition: SanitationCondition
    house_photos: List[str] = []
    notes: Annotated[Optional[str], Blankable] = None


class EnvironmentUpdate(InputModel):
    clean_water_access: Optional[WaterAccess] = None
    sanitation_condition: Optional[SanitationCondition] = None
    # Appended to the stored photo list, never replacing it
    house_photos: Optional[List[str]] = None
    notes: Annotated[Optional[str], Blankable] = None


class EnvironmentRecord(RecordModel):
    id: str
    patient_id: str
    clean_water_access: str
    sanitation_condition: str
    house_photos: List[str] = []
    notes: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class EnvironmentRead(EnvironmentRecord):
    patient: Optional[PatientBrief] = None
    creator: Optional[UserBrief] = None


class EnvironmentFilters(BaseModel):
    patient_id: Optional[str] = None
    clean_water_access: Optional[WaterAccess] = None
    sanitation_condition: Optional[SanitationCondition] = None
    created_from: Optional[date] = None
    created_to: Optional[date] = None
    created_by: Optional[str] = None
