from typing import Any, Dict, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query

from ..core.errors import ConflictError, NotFoundError, SiranaError, ValidationError
from ..core.time_utils import now_local
from ..models.assessment import MedicalAssessment
from ..models.environment import EnvironmentAssessment
from ..models.needs import NeedsIdentification
from ..models.patient import Patient
from ..models.user import User
from ..schemas.user import UserCreate, UserFilters, UserRead, UserRecord, UserUpdate
from .base import Repository

UNIQUE_FIELDS = ("email", "employee_id")
OWNED_MODELS = (Patient, MedicalAssessment, EnvironmentAssessment, NeedsIdentification)


class UserRepository(Repository):
    model = User
    entity_type = "User"
    audit_name = "USER"
    owned = False

    create_schema = UserCreate
    update_schema = UserUpdate
    record_schema = UserRecord
    read_schema = UserRead
    filters_schema = UserFilters

    search_fields = ("name", "email", "employee_id")

    def _check_unique(self, data: Dict[str, Any], exclude_id: Optional[str] = None) -> None:
        for field in UNIQUE_FIELDS:
            value = data.get(field)
            if not value:
                continue
            query = self.db.query(User.id).filter(getattr(User, field) == value)
            if exclude_id:
                query = query.filter(User.id != exclude_id)
            if query.first() is not None:
                raise ConflictError(self.entity_type, field, value)

    def check_create(self, data: Dict[str, Any]) -> None:
        self._check_unique(data)

    def check_update(self, obj: User, changes: Dict[str, Any]) -> None:
        self._check_unique(changes, exclude_id=obj.id)

    def check_delete(self, obj: User, actor_id: str) -> None:
        if obj.id == actor_id:
            raise ValidationError.single("id", "You cannot delete your own account")
        for model in OWNED_MODELS:
            if self.db.query(model.id).filter(model.created_by == obj.id).first() is not None:
                raise ValidationError.single("id", "User still owns records; deactivate the account instead")

    def translate_integrity_error(self, exc: IntegrityError) -> SiranaError:
        message = str(exc.orig).lower()
        for field in UNIQUE_FIELDS:
            if field in message:
                return ConflictError(self.entity_type, field)
        return super().translate_integrity_error(exc)

    def filter_query(self, query: Query, filters: UserFilters) -> Query:
        if filters.search:
            query = query.filter(self.search_clause(filters.search))
        if filters.role:
            query = query.filter(User.role == filters.role.value)
        if filters.is_active is not None:
            query = query.filter(User.is_active == filters.is_active)
        return query

    def get_by_email(self, email: str) -> User:
        """Raw row lookup for the authentication layer (includes the credential hash)."""
        with self._reading():
            obj = self.db.query(User).filter(User.email == email.strip().lower()).first()
        if obj is None:
            raise NotFoundError(self.entity_type, email, field="email")
        return obj

    def touch_login(self, user_id: str) -> None:
        """Stamp a successful sign-in; not an audited mutation."""
        with self._atomic():
            self._get_row(user_id).last_login = now_local()
