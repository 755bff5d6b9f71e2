"""
API request and response models for TaskHub REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route handlers
map between the two.

Wire format: JSON keys are camelCase (isActive, createdAt, dueDate,
currentPassword). Python attribute names stay snake_case; the alias generator
does the translation in both directions.

Two contract rules enforced here rather than in handlers:
  - No response model has a password field, so a hash cannot be serialized
    by accident.
  - TaskCreate/TaskUpdate have no owner field and ignore unknown keys, so a
    client-supplied "user" or "ownerId" is dropped before the handler runs.
"""

from __future__ import annotations

from datetime import date
from typing import Annotated, Generic, Literal, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, field_validator, model_serializer
from pydantic.alias_generators import to_camel

from auth.models import Role, User
from tasks.models import Task, TaskPriority, TaskStatus

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# bcrypt ignores everything past 72 bytes (and bcrypt>=5 refuses it outright).
_PASSWORD_MAX_BYTES = 72

T = TypeVar("T")

# Names, emails and titles are trimmed. Passwords never are: whitespace is
# part of a password.
Stripped = Annotated[str, StringConstraints(strip_whitespace=True)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class _CamelRequest(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _check_password_bytes(value: str) -> str:
    if len(value.encode("utf-8")) > _PASSWORD_MAX_BYTES:
        raise ValueError(f"Password must be at most {_PASSWORD_MAX_BYTES} bytes.")
    return value


# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


class SuccessResponse(BaseModel, Generic[T]):
    """{"status": "success", "data": ...} wrapper for every 2xx body.

    message is only serialized when set, so plain reads carry no
    "message": null next to their data.
    """

    status: Literal["success"] = "success"
    message: Optional[str] = None
    data: T

    @model_serializer(mode="wrap")
    def _omit_empty_message(self, handler):
        body = handler(self)
        if body.get("message") is None:
            body.pop("message", None)
        return body


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    message: str
    errors: Optional[list[dict]] = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    message: str = "Server is running"
    timestamp: str


class Pagination(_CamelModel):
    current_page: int
    total_pages: int
    total: int
    limit: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(current_page=page, total_pages=-(-total // limit), total=total, limit=limit)


# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(_CamelRequest):
    """Request body for POST /auth/register.

    role is optional. Asking for admin is only honoured in first-run state
    or when the caller is already an admin; the route enforces that.
    """

    name: Stripped = Field(min_length=2, max_length=50)
    email: Stripped = Field(max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(min_length=6)
    role: Optional[Role] = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(_CamelRequest):
    email: Stripped = Field(max_length=255, pattern=EMAIL_PATTERN)
    # No strip: whitespace is part of a password. max_length only bounds work.
    password: str = Field(min_length=1, max_length=255)

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


class UpdatePasswordRequest(_CamelRequest):
    """Request body for PUT /auth/updatepassword."""

    current_password: str = Field(min_length=1, max_length=255)
    new_password: str = Field(min_length=6)

    @field_validator("new_password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


# ---------------------------------------------------------------------------
# Users -- responses and admin updates
# ---------------------------------------------------------------------------


class UserResponse(_CamelModel):
    """Public view of a user. Deliberately has no password field."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    email: str
    role: Role
    is_active: bool
    created_at: str
    last_login: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            is_active=user.is_active,
            created_at=user.created_at or "",
            last_login=user.last_login,
        )


class UserData(BaseModel):
    user: UserResponse


class AuthData(_CamelModel):
    """data payload for register, login and password update."""

    token: str
    expires_in: int
    user: UserResponse


class UserPage(BaseModel):
    users: list[UserResponse]
    pagination: Pagination


class UserUpdate(_CamelRequest):
    """Request body for PUT /users/{id} (admin only). Omitted fields are left as-is."""

    # Non-Optional types with a None default: omitting the key is fine,
    # sending an explicit null is a validation error.
    name: Stripped = Field(default=None, min_length=2, max_length=50)
    email: Stripped = Field(default=None, max_length=255, pattern=EMAIL_PATTERN)
    role: Role = None
    is_active: bool = None

    @field_validator("email")
    @classmethod
    def lower_email(cls, value: str) -> str:
        return value.lower()


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TaskCreate(_CamelRequest):
    """Request body for POST /tasks. The owner is always the caller."""

    title: Stripped = Field(min_length=3, max_length=100)
    description: Optional[Stripped] = Field(default=None, max_length=500)
    status: TaskStatus = TaskStatus.pending
    priority: TaskPriority = TaskPriority.medium
    due_date: Optional[date] = None

    def to_task(self) -> Task:
        return Task(
            title=self.title,
            description=self.description,
            status=self.status,
            priority=self.priority,
            due_date=self.due_date.isoformat() if self.due_date else None,
        )


class TaskUpdate(_CamelRequest):
    """Request body for PUT /tasks/{id}. Partial: only sent keys change.

    title, status and priority cannot be nulled; description and dueDate can
    be cleared by sending null.
    """

    title: Stripped = Field(default=None, min_length=3, max_length=100)
    description: Optional[Stripped] = Field(default=None, max_length=500)
    status: TaskStatus = None
    priority: TaskPriority = None
    due_date: Optional[date] = None

    def changes(self) -> dict:
        fields = self.model_dump(exclude_unset=True)
        if "due_date" in fields and fields["due_date"] is not None:
            fields["due_date"] = fields["due_date"].isoformat()
        return fields


class TaskResponse(_CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    title: str
    description: Optional[str]
    status: TaskStatus
    priority: TaskPriority
    due_date: Optional[str]
    owner_id: str
    created_at: str
    updated_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        """Build a TaskResponse from a tasks.models.Task instance."""
        return cls(
            id=task.id,
            title=task.title,
            description=task.description,
            status=task.status,
            priority=task.priority,
            due_date=task.due_date,
            owner_id=task.owner_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskData(BaseModel):
    task: TaskResponse


class TaskPage(_CamelModel):
    results: int
    tasks: list[TaskResponse]
    pagination: Pagination


class TaskStats(_CamelModel):
    total_tasks: int
    by_status: dict[str, int]
