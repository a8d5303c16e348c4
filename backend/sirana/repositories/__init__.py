"""
Repository layer: one repository per entity, each pairing its writes with an audit entry.
"""
from .base import Repository
from .patient import PatientRepository
from .assessment import AssessmentRepository
from .environment import EnvironmentRepository
from .needs import NeedsRepository
from .disaster import DisasterRepository
from .user import UserRepository

__all__ = [
    "Repository",
    "PatientRepository",
    "AssessmentRepository",
    "EnvironmentRepository",
    "NeedsRepository",
    "DisasterRepository",
    "UserRepository",
]
