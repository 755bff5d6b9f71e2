"""
auth/models.py -- Domain types for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; stores and routes do the work.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    """Closed set of roles. Authorization compares against members, never raw strings."""

    user = "user"
    admin = "admin"


@dataclass
class User:
    """Represents an identity in TaskHub.

    email is the login key and is always stored trimmed and lowercased
    (see normalize_email). hashed_password is the bcrypt hash including its
    salt; it is excluded from repr so it never lands in logs, and no API
    response model carries it.

    id is None before the record is written to the database.
    """

    name: str
    email: str
    role: Role = Role.user
    id: str | None = None
    hashed_password: str | None = field(default=None, repr=False)
    is_active: bool = True
    created_at: str | None = None
    last_login: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Verified contents of a session token.

    Only TokenService.verify() builds these, so holding one means the
    signature and expiry have already been checked.
    """

    subject: str  # user id
    role: Role
    issued_at: int  # unix seconds
    expires_at: int  # unix seconds


def normalize_email(email: str) -> str:
    """Return the canonical form used for storage and lookup."""
    return email.strip().lower()
