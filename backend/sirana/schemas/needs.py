from datetime import date, datetime
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, Field

from ..core.errors import UnsupportedInputError
from ..models.needs import Priority
from .common import Blankable, InputModel, PatientBrief, RecordModel, UserBrief


def split_items(field: str, value: Any) -> List[str]:
    """Normalise a needs list given as a list or a comma-separated string.

    Items are trimmed and empty items dropped. ``None`` means an empty list.
    """
    if value is None:
        return []
    if isinstance(value, str):
        parts = value.split(",")
    elif isinstance(value, (list, tuple)):
        parts = value
    else:
        raise UnsupportedInputError(field, value)

    items = []
    for part in parts:
        if not isinstance(part, str):
            raise UnsupportedInputError(field, part)
        part = part.strip()
        if part:
            items.append(part)
    return items


class NeedsCreate(InputModel):
    patient_id: str = Field(..., min_length=1)
    medicines: List[str] = []
    medical_equipment: List[str] = []
    infrastructure: List[str] = []
    medicine_priority: Priority = Priority.MODERATE
    equipment_priority: Priority = Priority.MODERATE
    infrastructure_priority: Priority = Priority.MODERATE
    notes: Annotated[Optional[str], Blankable] = None


class NeedsUpdate(InputModel):
    medicines: Optional[List[str]] = None
    medical_equipment: Optional[List[str]] = None
    infrastructure: Optional[List[str]] = None
    medicine_priority: Optional[Priority] = None
    equipment_priority: Optional[Priority] = None
    infrastructure_priority: Optional[Priority] = None
    notes: Annotated[Optional[str], Blankable] = None


class NeedsRecord(RecordModel):
    id: str
    patient_id: str
    medicines: List[str] = []
    medical_equipment: List[str] = []
    infrastructure: List[str] = []
    medicine_priority: str
    equipment_priority: str
    infrastructure_priority: str
    notes: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: datetime


class NeedsRead(NeedsRecord):
    patient: Optional[PatientBrief] = None
    creator: Optional[UserBrief] = None


class NeedsFilters(BaseModel):
    patient_id: Optional[str] = None
    medicine_priority: Optional[Priority] = None
    equipment_priority: Optional[Priority] = None
    infrastructure_priority: Optional[Priority] = None
    created_from: Optional[date] = None
    created_to: Optional[date] = None
    created_by: Optional[str] = None
