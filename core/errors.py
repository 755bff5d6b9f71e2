"""
core/errors.py -- Application error taxonomy.

One exception class per HTTP error category. Business code raises these;
api/main.py owns the single exception handler that turns them into the
{"status": "error", "message": ...} envelope.

Messages are deliberately generic per category. Credential and token failures
must never reveal which check failed (unknown email vs wrong password, bad
signature vs expired), so AuthenticationError callers pass one of the fixed
messages below rather than composing their own.

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations

INVALID_CREDENTIALS = "Invalid credentials."
INVALID_TOKEN = "Invalid or expired token."
AUTH_REQUIRED = "Authentication required."


class AppError(Exception):
    """Base class for errors that map onto a client-facing HTTP status."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or missing fields, or a write that violates a uniqueness rule."""

    status_code = 400
    default_message = "Validation failed."


class AuthenticationError(AppError):
    """Missing, invalid or expired token, or bad credentials."""

    status_code = 401
    default_message = AUTH_REQUIRED


class AuthorizationError(AppError):
    """Valid identity, insufficient rights."""

    status_code = 403
    default_message = "You are not authorized to perform this action."


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found."


class InternalError(AppError):
    status_code = 500
