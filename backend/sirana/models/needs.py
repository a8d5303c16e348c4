from enum import Enum

from sqlalchemy import JSON, Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin, generate_uuid


class Priority(str, Enum):
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"


# List field -> its priority field
NEEDS_LIST_FIELDS = {
    "medicines": "medicine_priority",
    "medical_equipment": "equipment_priority",
    "infrastructure": "infrastructure_priority",
}


class NeedsIdentification(Base, TimestampMixin):
    """Resource-gap record for a patient."""
    __tablename__ = "needs_identifications"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)

    medicines = Column(JSON, nullable=False, default=list)
    medical_equipment = Column(JSON, nullable=False, default=list)
    infrastructure = Column(JSON, nullable=False, default=list)

    medicine_priority = Column(String(20), nullable=False, default=Priority.MODERATE.value)
    equipment_priority = Column(String(20), nullable=False, default=Priority.MODERATE.value)
    infrastructure_priority = Column(String(20), nullable=False, default=Priority.MODERATE.value)

    notes = Column(Text, nullable=True)

    created_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    patient = relationship("Patient", back_populates="needs")
    creator = relationship("User")
