"""Unit tests for auth/tokens.py -- TokenService issue / verify.

Covers:
- Issued tokens decode to the subject and role they were issued for
- exp - iat equals the configured lifetime
- Expired tokens fail even though their signature is valid
- Wrong key, tampered payload, garbage input and malformed claims all fail
- Every failure carries the same message (no signature-vs-expiry oracle)
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.models import Role, TokenClaims
from auth.tokens import TokenService
from core.errors import INVALID_TOKEN, AuthenticationError

KEY = "k" * 64
OTHER_KEY = "o" * 64


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(KEY, expire_seconds=3600)


def _assert_rejected(service: TokenService, token: str) -> None:
    with pytest.raises(AuthenticationError) as excinfo:
        service.verify(token)
    assert excinfo.value.message == INVALID_TOKEN
    assert excinfo.value.status_code == 401


# ---------------------------------------------------------------------------
# Happy path
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("role", [Role.user, Role.admin])
def test_issue_and_verify(tokens: TokenService, role: Role) -> None:
    claims = tokens.verify(tokens.issue("abc123", role))
    assert isinstance(claims, TokenClaims)
    assert claims.subject == "abc123"
    assert claims.role is role


def test_lifetime_matches_configuration(tokens: TokenService) -> None:
    claims = tokens.verify(tokens.issue("abc123", Role.user))
    assert claims.expires_at - claims.issued_at == 3600
    assert tokens.expires_in == 3600


def test_default_lifetime_is_24_hours() -> None:
    service = TokenService(KEY)
    claims = service.verify(service.issue("abc123", Role.user))
    assert claims.expires_at - claims.issued_at == 24 * 3600


# ---------------------------------------------------------------------------
# Rejections
# ---------------------------------------------------------------------------


def test_expired_token_rejected(tokens: TokenService) -> None:
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    token = tokens.issue("abc123", Role.admin, issued_at=issued)
    # Signature is fine -- decoding without the expiry check succeeds.
    assert jwt.decode(token, KEY, algorithms=["HS256"], options={"verify_exp": False})["sub"] == "abc123"
    _assert_rejected(tokens, token)


def test_wrong_key_rejected(tokens: TokenService) -> None:
    token = TokenService(OTHER_KEY).issue("abc123", Role.user)
    _assert_rejected(tokens, token)


def test_key_rotation_invalidates_tokens(tokens: TokenService) -> None:
    token = tokens.issue("abc123", Role.user)
    _assert_rejected(TokenService(OTHER_KEY), token)


def test_tampered_payload_rejected(tokens: TokenService) -> None:
    header, _payload, signature = tokens.issue("abc123", Role.user).split(".")
    forged_payload = jwt.encode(
        {"sub": "abc123", "role": "admin", "iat": 0, "exp": 4102444800},
        OTHER_KEY,
        algorithm="HS256",
    ).split(".")[1]
    _assert_rejected(tokens, f"{header}.{forged_payload}.{signature}")


@pytest.mark.parametrize("garbage", ["", "abc", "a.b.c", "Bearer xyz", "eyJhbGciOiJIUzI1NiJ9.e30."])
def test_garbage_rejected(tokens: TokenService, garbage: str) -> None:
    _assert_rejected(tokens, garbage)


@pytest.mark.parametrize(
    "payload",
    [
        {"role": "user"},  # no sub
        {"sub": "", "role": "user"},
        {"sub": "abc123"},  # no role
        {"sub": "abc123", "role": "superuser"},
    ],
)
def test_malformed_claims_rejected(tokens: TokenService, payload: dict) -> None:
    now = datetime.now(timezone.utc)
    token = jwt.encode({**payload, "iat": now, "exp": now + timedelta(hours=1)}, KEY, algorithm="HS256")
    _assert_rejected(tokens, token)


def test_missing_timestamps_rejected(tokens: TokenService) -> None:
    token = jwt.encode({"sub": "abc123", "role": "user"}, KEY, algorithm="HS256")
    _assert_rejected(tokens, token)


def test_expired_and_forged_share_one_message(tokens: TokenService) -> None:
    expired = tokens.issue("abc123", Role.user, issued_at=datetime.now(timezone.utc) - timedelta(days=2))
    forged = TokenService(OTHER_KEY).issue("abc123", Role.user)
    messages = set()
    for token in (expired, forged):
        with pytest.raises(AuthenticationError) as excinfo:
            tokens.verify(token)
        messages.add(str(excinfo.value))
    assert messages == {INVALID_TOKEN}


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


def test_empty_key_refused() -> None:
    with pytest.raises(ValueError):
        TokenService("")


@pytest.mark.parametrize("seconds", [0, -60])
def test_non_positive_lifetime_refused(seconds: int) -> None:
    with pytest.raises(ValueError):
        TokenService(KEY, expire_seconds=seconds)
