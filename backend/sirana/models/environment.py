from enum import Enum

from sqlalchemy import JSON, Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin, generate_uuid


class WaterAccess(str, Enum):
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


class SanitationCondition(str, Enum):
    GOOD = "good"
    POOR = "poor"


class EnvironmentAssessment(Base, TimestampMixin):
    """Housing and sanitation snapshot for a patient."""
    __tablename__ = "environment_assessments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    clean_water_access = Column(String(20), nullable=False, index=True)
    sanitation_condition = Column(String(20), nullable=False, index=True)
    # Ordered references (paths/URLs) to already-uploaded photos
    house_photos = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)

    created_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    patient = relationship("Patient", back_populates="environments")
    creator = relationship("User")
