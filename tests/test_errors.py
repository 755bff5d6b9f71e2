"""Unit tests for core/errors.py -- the error taxonomy.

Covers:
- Each class maps onto its HTTP status
- Omitting the message falls back to the class default
"""

import pytest

from core.errors import (
    AUTH_REQUIRED,
    AppError,
    AuthenticationError,
    AuthorizationError,
    InternalError,
    NotFoundError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("cls", "status"),
    [
        (ValidationError, 400),
        (AuthenticationError, 401),
        (AuthorizationError, 403),
        (NotFoundError, 404),
        (InternalError, 500),
    ],
)
def test_status_codes(cls, status: int) -> None:
    err = cls("boom")
    assert isinstance(err, AppError)
    assert err.status_code == status
    assert err.message == "boom"
    assert str(err) == "boom"


def test_default_messages() -> None:
    assert AuthenticationError().message == AUTH_REQUIRED
    assert InternalError().message == "An unexpected error occurred."
