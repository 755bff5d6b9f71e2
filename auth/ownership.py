"""
auth/ownership.py -- Per-resource ownership guard.

The rule is the same for every owned resource: the acting identity must own
it, or hold the admin role. Route handlers call ensure_can_access() after
they have confirmed the resource exists, so a missing record is still a 404
and a foreign one is a 403.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from auth.models import Role, User
from core.errors import AuthorizationError


def authorize(actor_id: str, actor_role: Role, owner_id: str) -> bool:
    """Return True iff the actor owns the resource or is an admin."""
    if actor_role is Role.admin:
        return True
    return actor_id == owner_id


def ensure_can_access(actor: User, owner_id: str, action: str = "access") -> None:
    """Raise AuthorizationError (403) unless authorize() allows the actor."""
    if not authorize(actor.id, actor.role, owner_id):
        raise AuthorizationError(f"Not authorized to {action} this task.")
