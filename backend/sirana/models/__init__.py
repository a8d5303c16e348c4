from .base import Base, Database
from .user import User, UserRole
from .patient import AgeGroup, Patient, Religion, Sex
from .assessment import (
    AnamnesisType,
    EducationRecipient,
    FollowUp,
    GeneralCondition,
    MedicalAssessment,
    SupplementaryExam,
)
from .environment import EnvironmentAssessment, SanitationCondition, WaterAccess
from .needs import NeedsIdentification, Priority
from .disaster import DisasterEvent, DisasterStatus, DisasterType
from .audit import AuditLog

__all__ = [
    "Base",
    "Database",
    "User",
    "UserRole",
    "Patient",
    "Sex",
    "AgeGroup",
    "Religion",
    "MedicalAssessment",
    "AnamnesisType",
    "GeneralCondition",
    "SupplementaryExam",
    "FollowUp",
    "EducationRecipient",
    "EnvironmentAssessment",
    "WaterAccess",
    "SanitationCondition",
    "NeedsIdentification",
    "Priority",
    "DisasterEvent",
    "DisasterType",
    "DisasterStatus",
    "AuditLog",
]
