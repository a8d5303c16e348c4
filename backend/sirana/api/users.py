"""User management endpoints (administrators only).

Passwords are hashed by the authentication service before they reach this API;
payloads carry ``hashed_password`` and it is never returned.
"""
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response, status

from ..core.permissions import PERM_MANAGE_USERS
from ..core.security import Actor, require_permission
from ..repositories import UserRepository
from ..schemas.common import Page
from ..schemas.user import UserFilters, UserRead
from .deps import Paging, get_paging, repository

router = APIRouter(prefix="/users", tags=["users"])

get_repository = repository(UserRepository)
require_admin = require_permission(PERM_MANAGE_USERS)


@router.get("", response_model=Page[UserRead])
def list_users(
    filters: UserFilters = Depends(),
    paging: Paging = Depends(get_paging),
    repo: UserRepository = Depends(get_repository),
    _admin: Actor = Depends(require_admin),
):
    return repo.list(filters, page=paging.page, page_size=paging.page_size)


@router.get("/{user_id}", response_model=UserRead)
def get_user(
    user_id: str,
    repo: UserRepository = Depends(get_repository),
    _admin: Actor = Depends(require_admin),
):
    return repo.get(user_id)


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: Dict[str, Any] = Body(...),
    repo: UserRepository = Depends(get_repository),
    admin: Actor = Depends(require_admin),
):
    return repo.create(payload, admin.id)


@router.put("/{user_id}", response_model=UserRead)
def update_user(
    user_id: str,
    payload: Dict[str, Any] = Body(...),
    repo: UserRepository = Depends(get_repository),
    admin: Actor = Depends(require_admin),
):
    return repo.update(user_id, payload, admin.id)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: str,
    repo: UserRepository = Depends(get_repository),
    admin: Actor = Depends(require_admin),
):
    """An administrator cannot delete their own account."""
    repo.delete(user_id, admin.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
