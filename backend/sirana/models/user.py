from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, String
from .base import Base, TimestampMixin, generate_uuid


class UserRole(str, Enum):
    ADMINISTRATOR = "administrator"
    FIELD_OFFICER = "field_officer"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    # Hashed by the authentication layer; never leaves the repository
    hashed_password = Column(String(255), nullable=False)
    name = Column(String(200), nullable=False)
    employee_id = Column(String(50), unique=True, nullable=True, index=True)  # NIP
    role = Column(String(20), nullable=False, default=UserRole.FIELD_OFFICER.value)
    job_title = Column(String(100), nullable=True)
    work_unit = Column(String(200), nullable=True)
    phone = Column(String(20), nullable=True)
    photo = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    last_login = Column(DateTime, nullable=True)
