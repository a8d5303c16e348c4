from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, EmailStr, Field

from ..models.user import UserRole
from .common import Blankable, InputModel, RecordModel

OptionalText = Annotated[Optional[str], Blankable]

# Format checked by email-validator; stored and looked up lower-cased
Email = Annotated[EmailStr, AfterValidator(str.lower)]


class UserCreate(InputModel):
    email: Email
    # Produced by the authentication layer; plain passwords never reach the core
    hashed_password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=3, max_length=200)
    employee_id: OptionalText = None
    role: UserRole = UserRole.FIELD_OFFICER
    job_title: OptionalText = None
    work_unit: OptionalText = None
    phone: OptionalText = None
    photo: OptionalText = None
    is_active: bool = True


class UserUpdate(InputModel):
    email: Optional[Email] = None
    hashed_password: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    employee_id: OptionalText = None
    role: Optional[UserRole] = None
    job_title: OptionalText = None
    work_unit: OptionalText = None
    phone: OptionalText = None
    photo: OptionalText = None
    is_active: Optional[bool] = None


class UserRecord(RecordModel):
    """User snapshot without the credential hash."""

    id: str
    email: str
    name: str
    employee_id: Optional[str] = None
    role: str
    job_title: Optional[str] = None
    work_unit: Optional[str] = None
    phone: Optional[str] = None
    photo: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


UserRead = UserRecord


class UserFilters(BaseModel):
    search: Optional[str] = None  # name, email or employee id
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
