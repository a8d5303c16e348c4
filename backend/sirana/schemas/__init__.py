from .common import Page, PatientBrief, UserBrief
from .patient import PatientCreate, PatientDetail, PatientFilters, PatientRead, PatientRecord, PatientUpdate
from .assessment import AssessmentCreate, AssessmentFilters, AssessmentRead, AssessmentRecord, AssessmentUpdate
from .environment import EnvironmentCreate, EnvironmentFilters, EnvironmentRead, EnvironmentRecord, EnvironmentUpdate
from .needs import NeedsCreate, NeedsFilters, NeedsRead, NeedsRecord, NeedsUpdate
from .disaster import DisasterCreate, DisasterFilters, DisasterRead, DisasterStatusUpdate, DisasterUpdate
from .user import UserCreate, UserFilters, UserRead, UserUpdate
from .audit import AuditFilters, AuditLogRead
