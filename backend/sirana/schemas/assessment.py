from datetime import date, datetime, time
from typing import Annotated, Optional

from pydantic import BaseModel, Field

from ..models.assessment import (
    AnamnesisType,
    EducationRecipient,
    FollowUp,
    GeneralCondition,
    SupplementaryExam,
)
from .common import Blankable, InputModel, PatientBrief, RecordModel, UserBrief

OptionalText = Annotated[Optional[str], Blankable]
OptionalInt = Annotated[Optional[int], Blankable]
OptionalFloat = Annotated[Optional[float], Blankable]


class AssessmentCreate(InputModel):
    patient_id: str = Field(..., min_length=1)
    visit_date: date
    visit_time: time  # HH:MM

    anamnesis_type: AnamnesisType
    chief_complaint: str = Field(..., min_length=5)
    present_illness_history: OptionalText = None
    allergy_history: OptionalText = None
    past_illness_history: OptionalText = None
    medication_history: OptionalText = None

    gcs_eye: int = Field(4, ge=1, le=4)
    gcs_verbal: int = Field(5, ge=1, le=5)
    gcs_motor: int = Field(6, ge=1, le=6)
    general_condition: GeneralCondition = GeneralCondition.GOOD

    systolic_bp: OptionalInt = Field(None, ge=50, le=250)
    diastolic_bp: OptionalInt = Field(None, ge=30, le=150)
    temperature: OptionalFloat = Field(None, ge=30, le=45)
    pulse: OptionalInt = Field(None, ge=30, le=200)
    respiration: OptionalInt = Field(None, ge=8, le=60)
    weight: OptionalFloat = Field(None, ge=0.1, le=300)
    height: OptionalFloat = Field(None, ge=10, le=250)

    exam_head: OptionalText = None
    exam_eyes: OptionalText = None
    exam_mouth: OptionalText = None
    exam_neck: OptionalText = None
    exam_thorax: OptionalText = None
    exam_heart: OptionalText = None
    exam_lungs: OptionalText = None
    exam_abdomen: OptionalText = None
    exam_extremities: OptionalText = None
    exam_anogenital: OptionalText = None

    supplementary_exam: SupplementaryExam = SupplementaryExam.NONE
    supplementary_result: OptionalText = None

    working_diagnosis: str = Field(..., min_length=3, max_length=255)
    treatment_plan: OptionalText = None

    follow_up: FollowUp = FollowUp.DISCHARGED
    referral_target: OptionalText = None
    referral_reason: OptionalText = None

    education_recipient: EducationRecipient = EducationRecipient.PATIENT
    education_notes: OptionalText = None

    examining_clinician: str = Field(..., min_length=3, max_length=200)


class AssessmentUpdate(InputModel):
    """Partial update; an assessment stays attached to its original patient."""

    visit_date: Optional[date] = None
    visit_time: Optional[time] = None

    anamnesis_type: Optional[AnamnesisType] = None
    chief_complaint: Optional[str] = Field(None, min_length=5)
    present_illness_history: OptionalText = None
    allergy_history: OptionalText = None
    past_illness_history: OptionalText = None
    medication_history: OptionalText = None

    gcs_eye: Optional[int] = Field(None, ge=1, le=4)
    gcs_verbal: Optional[int] = Field(None, ge=1, le=5)
    gcs_motor: Optional[int] = Field(None, ge=1, le=6)
    general_condition: Optional[GeneralCondition] = None

    systolic_bp: OptionalInt = Field(None, ge=50, le=250)
    diastolic_bp: OptionalInt = Field(None, ge=30, le=150)
    temperature: OptionalFloat = Field(None, ge=30, le=45)
    pulse: OptionalInt = Field(None, ge=30, le=200)
    respiration: OptionalInt = Field(None, ge=8, le=60)
    weight: OptionalFloat = Field(None, ge=0.1, le=300)
    height: OptionalFloat = Field(None, ge=10, le=250)

    exam_head: OptionalText = None
    exam_eyes: OptionalText = None
    exam_mouth: OptionalText = None
    exam_neck: OptionalText = None
    exam_thorax: OptionalText = None
    exam_heart: OptionalText = None
    exam_lungs: OptionalText = None
    exam_abdomen: OptionalText = None
    exam_extremities: OptionalText = None
    exam_anogenital: OptionalText = None

    supplementary_exam: Optional[SupplementaryExam] = None
    supplementary_result: OptionalText = None

    working_diagnosis: Optional[str] = Field(None, min_length=3, max_length=255)
    treatment_plan: OptionalText = None

    follow_up: Optional[FollowUp] = None
    referral_target: OptionalText = None
    referral_reason: OptionalText = None

    education_recipient: Optional[EducationRecipient] = None
    education_notes: OptionalText = None

    examining_clinician: Optional[str] = Field(None, min_length=3, max_length=200)


class AssessmentRecord(RecordModel):
    id: str
    patient_id: str
    visit_date: date
    visit_time: time
    anamnesis_type: str
    chief_complaint: str
    present_illness_history: Optional[str] = None
    allergy_history: Optional[str] = None
    past_illness_history: Optional[str] = None
    medication_history: Optional[str] = None
    gcs_eye: int
    gcs_verbal: int
    gcs_motor: int
    general_condition: str
    systolic_bp: Optional[int] = None
    diastolic_bp: Optional[int] = None
    temperature: Optional[float] = None
    pulse: Optional[int] = None
    respiration: Optional[int] = None
    weight: Optional[float] = None
    height: Optional[float] = None
    exam_head: Optional[str] = None
    exam_eyes: Optional[str] = None
    exam_mouth: Optional[str] = None
    exam_neck: Optional[str] = None
    exam_thorax: Optional[str] = None
    exam_heart: Optional[str] = None
    exam_lungs: Optional[str] = None
    exam_abdomen: Optional[str] = None
    exam_extremities: Optional[str] = None
    exam_anogenital: Optional[str] = None
    supplementary_exam: str
    supplementary_result: Optional[str] = None
    working_diagnosis: str
    treatment_plan: Optional[str] = None
    follow_up: str
    referral_target: Optional[str] = None
    referral_reason: Optional[str] = None
    education_recipient: str
    education_notes: Optional[str] = None
    examining_clinician: str
    created_by: str
    created_at: datetime
    updated_at: datetime


class AssessmentRead(AssessmentRecord):
    gcs_total: int
    patient: Optional[PatientBrief] = None
    creator: Optional[UserBrief] = None


class AssessmentFilters(BaseModel):
    patient_id: Optional[str] = None
    follow_up: Optional[FollowUp] = None
    visit_from: Optional[date] = None
    visit_to: Optional[date] = None
    created_by: Optional[str] = None
