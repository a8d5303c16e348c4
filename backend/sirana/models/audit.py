from sqlalchemy import JSON, Column, DateTime, String, event
from .base import Base, generate_uuid
from ..core.errors import StorageError
from ..core.time_utils import now_local


class AuditLog(Base):
    """Append-only trail of every mutating repository call.

    ``old_data``/``new_data`` hold the entity's record snapshot (the JSON form of
    its ``*Record`` schema). Entries outlive the rows they describe, so there is
    no foreign key to either the entity or the actor.
    """
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    user_id = Column(String(36), nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)  # e.g. CREATE_PATIENT
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(String(36), nullable=False, index=True)
    old_data = Column(JSON, nullable=True)
    new_data = Column(JSON, nullable=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(String(500), nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_local, index=True)


@event.listens_for(AuditLog, "before_update")
def _refuse_update(mapper, connection, target):
    raise StorageError(f"Audit entry {target.id} is immutable")


@event.listens_for(AuditLog, "before_delete")
def _refuse_delete(mapper, connection, target):
    raise StorageError(f"Audit entry {target.id} cannot be deleted")
