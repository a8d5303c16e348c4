from enum import Enum

from sqlalchemy import Column, Date, String, Text
from .base import Base, TimestampMixin, generate_uuid


class DisasterType(str, Enum):
    EARTHQUAKE = "earthquake"
    TSUNAMI = "tsunami"
    FLOOD = "flood"
    LANDSLIDE = "landslide"
    VOLCANIC_ERUPTION = "volcanic_eruption"
    FIRE = "fire"
    CYCLONE = "cyclone"
    DROUGHT = "drought"
    EPIDEMIC = "epidemic"
    OTHER = "other"


class DisasterStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class DisasterEvent(Base, TimestampMixin):
    __tablename__ = "disaster_events"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(200), nullable=False, index=True)
    disaster_type = Column(String(30), nullable=False, index=True)
    occurrence_date = Column(Date, nullable=False, index=True)
    location = Column(String(255), nullable=False)
    province = Column(String(100), nullable=False)
    regency = Column(String(100), nullable=False)
    subdistrict = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    status = Column(String(20), nullable=False, default=DisasterStatus.ACTIVE.value, index=True)
