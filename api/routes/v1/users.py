"""
api/routes/v1/users.py -- User administration routes (admin only).

Routes:
  GET    /users            -- list users, filter by role / isActive, paginated
  GET    /users/{user_id}  -- single user
  PUT    /users/{user_id}  -- update name, email, role, isActive
  DELETE /users/{user_id}  -- delete user and every task they own

Role changes only happen here, so only an admin can promote or demote.

Guards on PUT/DELETE:
  - An admin cannot demote, deactivate or delete their own account.
  - The last active admin cannot be demoted or deactivated (no recovery path
    without direct DB access).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.exc import IntegrityError

from api.limiter import api_limit
from api.models import Pagination, SuccessResponse, UserData, UserPage, UserResponse, UserUpdate
from auth.dependencies import require_admin
from auth.models import Role, User
from auth.store import UserStore
from core.errors import NotFoundError, ValidationError
from tasks.store import TaskStore

logger = logging.getLogger("taskhub.api")

# Auth policy: every route requires role == admin (require_admin -> 401/403).
router = APIRouter(dependencies=[Depends(require_admin)])


def _get_user_or_404(user_store: UserStore, user_id: str) -> User:
    user = user_store.get_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found.")
    return user


@router.get("/users", response_model=SuccessResponse[UserPage])
@api_limit
def list_users(
    request: Request,
    role: Optional[Role] = None,
    is_active: Optional[bool] = Query(default=None, alias="isActive"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
) -> SuccessResponse[UserPage]:
    """List user accounts, newest first."""
    user_store: UserStore = request.app.state.user_store
    users, total = user_store.list_users(role=role, is_active=is_active, page=page, limit=limit)
    return SuccessResponse[UserPage](
        data=UserPage(
            users=[UserResponse.from_user(u) for u in users],
            pagination=Pagination.build(page, limit, total),
        )
    )


@router.get("/users/{user_id}", response_model=SuccessResponse[UserData])
@api_limit
def get_user(request: Request, user_id: str) -> SuccessResponse[UserData]:
    user_store: UserStore = request.app.state.user_store
    user = _get_user_or_404(user_store, user_id)
    return SuccessResponse[UserData](data=UserData(user=UserResponse.from_user(user)))


@router.put("/users/{user_id}", response_model=SuccessResponse[UserData])
@api_limit
def update_user(
    request: Request,
    user_id: str,
    body: UserUpdate,
    current_user: User = Depends(require_admin),
) -> SuccessResponse[UserData]:
    user_store: UserStore = request.app.state.user_store
    target = _get_user_or_404(user_store, user_id)

    updates = body.model_dump(exclude_unset=True)
    loses_admin = target.role is Role.admin and target.is_active and (
        updates.get("role", Role.admin) is not Role.admin or updates.get("is_active") is False
    )
    if loses_admin:
        if target.id == current_user.id:
            raise ValidationError("You cannot demote or deactivate your own account.")
        if user_store.count_active_admins() <= 1:
            raise ValidationError("Cannot demote or deactivate the last active admin account.")

    try:
        user_store.update_user(target.id, **updates)
    except IntegrityError:
        raise ValidationError("User already exists with this email.") from None

    if "role" in updates and updates["role"] is not target.role:
        logger.info(
            "User %s role changed %s -> %s by %s",
            target.id,
            target.role.value,
            updates["role"].value,
            current_user.id,
        )

    updated = user_store.get_by_id(target.id)
    return SuccessResponse[UserData](
        message="User updated successfully",
        data=UserData(user=UserResponse.from_user(updated)),
    )


@router.delete("/users/{user_id}", response_model=SuccessResponse[None])
@api_limit
def delete_user(
    request: Request,
    user_id: str,
    current_user: User = Depends(require_admin),
) -> SuccessResponse[None]:
    """Delete a user permanently, together with the tasks they own."""
    user_store: UserStore = request.app.state.user_store
    task_store: TaskStore = request.app.state.task_store
    target = _get_user_or_404(user_store, user_id)

    if target.id == current_user.id:
        raise ValidationError("You cannot delete your own account.")

    removed = task_store.delete_tasks_for_owner(target.id)
    user_store.delete_user(target.id)
    logger.info("User %s deleted by %s (%d tasks removed)", target.id, current_user.id, removed)
    return SuccessResponse[None](message="User deleted successfully", data=None)
