"""
Caller identity for the HTTP surface.

Credentials are verified upstream (gateway / auth service); requests arrive
with the authenticated user's id in ``X-User-Id`` (and optionally the role in
``X-User-Role``, which must match the stored role).
The id must name an active user so audit entries and ``created_by`` references
always point at a real account.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from ..api.deps import get_db
from ..models.user import User, UserRole
from .permissions import has_permission

logger = logging.getLogger(__name__)


@dataclass
class Actor:
    id: str
    role: str
    name: Optional[str] = None


def get_current_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> Actor:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing caller identity")

    user = db.get(User, x_user_id)
    if user is None or not user.is_active:
        logger.warning("Rejected request for unknown or inactive user %s", x_user_id)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unknown or inactive user")

    # The stored role is authoritative; a forwarded role header must agree with it
    if x_user_role and x_user_role != user.role:
        logger.warning("Role header '%s' does not match stored role of user %s", x_user_role, user.id)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Role does not match account")

    return Actor(id=user.id, role=user.role, name=user.name)


def require_permission(permission: str):
    """Dependency factory: the caller's role must grant ``permission``."""

    def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if not has_permission(actor.role, permission):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return actor

    return dependency


def require_role(*roles: UserRole):
    """Dependency factory: the caller must hold one of ``roles``."""
    allowed = {r.value for r in roles}

    def dependency(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return actor

    return dependency
