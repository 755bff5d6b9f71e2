"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Requests authenticate with a single method: an `Authorization: Bearer <token>`
header carrying a JWT issued by TokenService.

Per-request state machine in get_current_user():
  no token                          -> 401
  token present, verify() fails     -> 401
  token valid, user missing/inactive -> 401
  otherwise                         -> trusted User attached to request.state.user

require_role(*roles) runs after get_current_user() and raises 403 when the
resolved role is not in the allowed set. require_admin is the common case.

Handlers receive the User from these dependencies and must use it as the only
source of identity. Nothing in a request body is trusted for identity.

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for Depends/Request) because
  this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import Depends, Request

from auth.models import Role, User
from auth.store import UserStore
from auth.tokens import TokenService
from core.errors import AUTH_REQUIRED, INVALID_TOKEN, AuthenticationError, AuthorizationError


def _bearer_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization", "")
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def try_get_current_user(request: Request) -> User | None:
    """Resolve the bearer token to an active User, or None.

    Never raises for authentication failures -- the soft variant used where
    a caller is optionally authenticated (e.g. POST /auth/register).
    """
    try:
        return get_current_user(request)
    except AuthenticationError:
        return None


def get_current_user(request: Request) -> User:
    """Require authentication. Raises AuthenticationError (401) otherwise.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user: User = Depends(get_current_user)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise AuthenticationError(AUTH_REQUIRED)

    token_service: TokenService = request.app.state.token_service
    claims = token_service.verify(token)

    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(claims.subject)
    if user is None or not user.is_active:
        # Same message as a bad token: a deleted or deactivated account
        # should look no different from a forged one.
        raise AuthenticationError(INVALID_TOKEN)

    request.state.user = user
    return user


def require_role(*roles: Role) -> Callable[..., User]:
    """Dependency factory -- raises AuthorizationError (403) if the role is not allowed.

    Usage:
        @router.get("/users", dependencies=[Depends(require_role(Role.admin))])
    """
    allowed = frozenset(Role(r) for r in roles)

    def _checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in allowed:
            raise AuthorizationError("You do not have permission to perform this action.")
        return user

    return _checker


require_admin = require_role(Role.admin)
