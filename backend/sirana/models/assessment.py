from enum import Enum

from sqlalchemy import Column, Date, Float, ForeignKey, Integer, String, Text, Time
from sqlalchemy.orm import relationship
from .base import Base, TimestampMixin, generate_uuid


class AnamnesisType(str, Enum):
    AUTO = "auto_anamnesis"    # reported by the patient
    ALLO = "allo_anamnesis"    # reported by family or a bystander


class GeneralCondition(str, Enum):
    GOOD = "good"
    MODERATE = "moderate"
    POOR = "poor"


class SupplementaryExam(str, Enum):
    LAB = "lab"
    XRAY = "xray"
    CT_SCAN = "ct_scan"
    OTHER = "other"
    NONE = "none"


class FollowUp(str, Enum):
    DISCHARGED = "discharged"
    REFERRED = "referred"
    NOT_REFERRED = "not_referred"


class EducationRecipient(str, Enum):
    PATIENT = "patient"
    FAMILY = "family"


# Glasgow Coma Scale defaults (fully alert) and bounds
GCS_EYE_RANGE = (1, 4)
GCS_VERBAL_RANGE = (1, 5)
GCS_MOTOR_RANGE = (1, 6)


class MedicalAssessment(Base, TimestampMixin):
    __tablename__ = "medical_assessments"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    patient_id = Column(String(36), ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)

    visit_date = Column(Date, nullable=False, index=True)
    visit_time = Column(Time, nullable=False)

    # Anamnesis
    anamnesis_type = Column(String(20), nullable=False)
    chief_complaint = Column(Text, nullable=False)
    present_illness_history = Column(Text, nullable=True)
    allergy_history = Column(Text, nullable=True)
    past_illness_history = Column(Text, nullable=True)
    medication_history = Column(Text, nullable=True)

    # Consciousness
    gcs_eye = Column(Integer, nullable=False, default=GCS_EYE_RANGE[1])
    gcs_verbal = Column(Integer, nullable=False, default=GCS_VERBAL_RANGE[1])
    gcs_motor = Column(Integer, nullable=False, default=GCS_MOTOR_RANGE[1])
    general_condition = Column(String(20), nullable=False, default=GeneralCondition.GOOD.value)

    # Vital signs
    systolic_bp = Column(Integer, nullable=True)     # mmHg
    diastolic_bp = Column(Integer, nullable=True)    # mmHg
    temperature = Column(Float, nullable=True)       # Celsius
    pulse = Column(Integer, nullable=True)           # beats/min
    respiration = Column(Integer, nullable=True)     # breaths/min
    weight = Column(Float, nullable=True)            # kg
    height = Column(Float, nullable=True)            # cm

    # Physical examination, per region
    exam_head = Column(Text, nullable=True)
    exam_eyes = Column(Text, nullable=True)
    exam_mouth = Column(Text, nullable=True)
    exam_neck = Column(Text, nullable=True)
    exam_thorax = Column(Text, nullable=True)
    exam_heart = Column(Text, nullable=True)
    exam_lungs = Column(Text, nullable=True)
    exam_abdomen = Column(Text, nullable=True)
    exam_extremities = Column(Text, nullable=True)
    exam_anogenital = Column(Text, nullable=True)

    supplementary_exam = Column(String(20), nullable=False, default=SupplementaryExam.NONE.value)
    supplementary_result = Column(Text, nullable=True)

    working_diagnosis = Column(String(255), nullable=False, index=True)
    treatment_plan = Column(Text, nullable=True)

    follow_up = Column(String(20), nullable=False, default=FollowUp.DISCHARGED.value, index=True)
    referral_target = Column(String(200), nullable=True)
    referral_reason = Column(Text, nullable=True)

    education_recipient = Column(String(20), nullable=False, default=EducationRecipient.PATIENT.value)
    education_notes = Column(Text, nullable=True)

    examining_clinician = Column(String(200), nullable=False)

    created_by = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)

    patient = relationship("Patient", back_populates="assessments")
    creator = relationship("User")

    @property
    def gcs_total(self) -> int:
        return (self.gcs_eye or 0) + (self.gcs_verbal or 0) + (self.gcs_motor or 0)
