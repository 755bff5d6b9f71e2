"""
api/routes/v1/auth.py -- Registration, login and credential management endpoints.

Routes:
  POST /auth/register        -- create an account; returns token + user (201)
  POST /auth/login           -- email/password login; returns token + user
  GET  /auth/me              -- current user info (requires auth)
  PUT  /auth/updatepassword  -- change own password (requires auth)

Security:
  Every route counts against the shared per-IP budget (API_RATE_LIMIT);
  POST /login also has its own limit (LOGIN_RATE_LIMIT, 10/minute default).
  authenticate_user() provides timing equalization -- use it, never inline
  get_by_email() + verify_password().
  Login failures return one message whether the email is unknown, the
  password is wrong, or the account is inactive.
  Cache-Control: no-store on every response that carries a token.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.limiter import api_limit, limiter, login_rate_limit
from api.models import (
    AuthData,
    LoginRequest,
    RegisterRequest,
    SuccessResponse,
    UpdatePasswordRequest,
    UserData,
    UserResponse,
)
from auth.dependencies import get_current_user, try_get_current_user
from auth.models import Role, User
from auth.passwords import authenticate_user, hash_password, verify_password
from auth.store import UserStore
from auth.tokens import TokenService
from core.config import Settings
from core.errors import INVALID_CREDENTIALS, AuthenticationError, AuthorizationError, ValidationError

logger = logging.getLogger("taskhub.auth")

# Auth policy:
# - POST /auth/register:        public (admin role needs first-run state or an admin caller)
# - POST /auth/login:           public, rate-limited
# - GET  /auth/me:              requires auth (get_current_user)
# - PUT  /auth/updatepassword:  requires auth (get_current_user)
router = APIRouter()


def _token_response(status_code: int, message: str, data: AuthData) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=SuccessResponse[AuthData](message=message, data=data).model_dump(mode="json", by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _may_grant_admin(request: Request, user_store: UserStore) -> bool:
    """Admin accounts come from an existing admin, or bootstrap the very first user."""
    settings: Settings = request.app.state.settings
    if settings.allow_admin_registration or not user_store.has_users():
        return True
    caller = try_get_current_user(request)
    return caller is not None and caller.role is Role.admin


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=SuccessResponse[AuthData], status_code=201)
@api_limit
def register(request: Request, body: RegisterRequest) -> JSONResponse:
    """Create an account and sign it in.

    Duplicate emails are rejected with 400 by the store's UNIQUE index rather
    than a pre-check, so two concurrent registrations cannot both win.
    """
    user_store: UserStore = request.app.state.user_store
    token_service: TokenService = request.app.state.token_service

    role = body.role or Role.user
    if role is Role.admin and not _may_grant_admin(request, user_store):
        raise AuthorizationError("Only administrators can create admin accounts.")

    new_user = User(
        name=body.name,
        email=body.email,
        role=role,
        hashed_password=hash_password(body.password),
    )
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError:
        raise ValidationError("User already exists with this email.") from None

    created = user_store.get_by_id(user_id)
    logger.info("Registered user %s (role=%s)", created.id, created.role.value)
    token = token_service.issue(created.id, created.role)
    return _token_response(
        201,
        "User registered successfully",
        AuthData(token=token, expires_in=token_service.expires_in, user=UserResponse.from_user(created)),
    )


@router.post("/auth/login", response_model=SuccessResponse[AuthData])
@limiter.limit(login_rate_limit)  # brute-force mitigation, on top of the shared /api budget
@api_limit
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password.

    Returns the same generic 401 for unknown email, wrong password and
    inactive account to avoid leaking account existence.
    """
    user_store: UserStore = request.app.state.user_store
    token_service: TokenService = request.app.state.token_service

    user = authenticate_user(user_store, body.email, body.password)
    if user is None:
        logger.info("Failed login attempt from %s", request.client.host if request.client else "unknown")
        raise AuthenticationError(INVALID_CREDENTIALS)

    user_store.update_last_login(user.id)
    user = user_store.get_by_id(user.id)
    token = token_service.issue(user.id, user.role)
    return _token_response(
        200,
        "Login successful",
        AuthData(token=token, expires_in=token_service.expires_in, user=UserResponse.from_user(user)),
    )


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.get("/auth/me", response_model=SuccessResponse[UserData])
@api_limit
def me(request: Request, current_user: User = Depends(get_current_user)) -> SuccessResponse[UserData]:
    """Return identity information for the currently authenticated user."""
    return SuccessResponse[UserData](data=UserData(user=UserResponse.from_user(current_user)))


@router.put("/auth/updatepassword", response_model=SuccessResponse[AuthData])
@api_limit
def update_password(
    request: Request,
    body: UpdatePasswordRequest,
    current_user: User = Depends(get_current_user),
) -> JSONResponse:
    """Change the caller's password after re-checking the current one.

    Outstanding tokens stay valid until they expire (there is no revocation
    list); the response carries a fresh token for convenience.
    """
    user_store: UserStore = request.app.state.user_store
    token_service: TokenService = request.app.state.token_service

    if not verify_password(body.current_password, current_user.hashed_password):
        raise AuthenticationError("Current password is incorrect.")

    user_store.update_user(current_user.id, hashed_password=hash_password(body.new_password))
    logger.info("Password updated for user %s", current_user.id)
    token = token_service.issue(current_user.id, current_user.role)
    return _token_response(
        200,
        "Password updated successfully",
        AuthData(token=token, expires_in=token_service.expires_in, user=UserResponse.from_user(current_user)),
    )
