"""Unit tests for auth/passwords.py -- bcrypt hashing and credential checks.

Covers:
- verify(p, hash(p)) is True and verify(wrong, hash(p)) is False
- Fresh salt per call (same plaintext, different hashes)
- Malformed stored hashes fail closed instead of raising
- authenticate_user(): success, unknown email, wrong password, inactive user
- Timing equalization: exactly one bcrypt check even for unknown emails
"""

from unittest.mock import patch

import pytest

import auth.passwords as passwords
from auth.models import User
from auth.passwords import authenticate_user, hash_password, verify_password
from auth.store import UserStore

# ---------------------------------------------------------------------------
# Hash / verify
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("plain", "wrong"),
    [
        ("secret1", "secret2"),
        ("correct horse battery staple", "correct horse battery stapl"),
        ("P@ssw0rd!", "p@ssw0rd!"),
        ("pässwörd", "passwort"),
        (" padded ", "padded"),
    ],
)
def test_hash_round_trip(plain: str, wrong: str) -> None:
    hashed = hash_password(plain)
    assert verify_password(plain, hashed)
    assert not verify_password(wrong, hashed)


def test_hash_is_salted_per_call() -> None:
    first = hash_password("secret1")
    second = hash_password("secret1")
    assert first != second
    assert verify_password("secret1", first)
    assert verify_password("secret1", second)


def test_hash_never_contains_plaintext() -> None:
    assert "secret1" not in hash_password("secret1")


@pytest.mark.parametrize("stored", ["", "not-a-hash", "$2b$12$tooshort", "$9z$99$" + "x" * 53, None])
def test_malformed_hash_fails_closed(stored) -> None:
    assert verify_password("secret1", stored) is False


# ---------------------------------------------------------------------------
# authenticate_user
# ---------------------------------------------------------------------------


@pytest.fixture
def store():
    s = UserStore("sqlite:///:memory:")
    s.create_user(User(name="Ada", email="ada@example.com", hashed_password=hash_password("secret1")))
    s.create_user(
        User(
            name="Idle",
            email="idle@example.com",
            hashed_password=hash_password("secret1"),
            is_active=False,
        )
    )
    yield s
    s.close()


def test_authenticate_success(store: UserStore) -> None:
    user = authenticate_user(store, "ada@example.com", "secret1")
    assert user is not None
    assert user.email == "ada@example.com"


def test_authenticate_email_is_case_insensitive(store: UserStore) -> None:
    assert authenticate_user(store, "  ADA@Example.com ", "secret1") is not None


def test_authenticate_wrong_password(store: UserStore) -> None:
    assert authenticate_user(store, "ada@example.com", "secret2") is None


def test_authenticate_unknown_email(store: UserStore) -> None:
    assert authenticate_user(store, "nobody@example.com", "secret1") is None


def test_authenticate_inactive_user(store: UserStore) -> None:
    assert authenticate_user(store, "idle@example.com", "secret1") is None


def test_unknown_email_still_runs_bcrypt(store: UserStore) -> None:
    """Unknown emails must cost one bcrypt check, against the dummy hash."""
    with patch.object(passwords, "verify_password", wraps=passwords.verify_password) as spy:
        authenticate_user(store, "nobody@example.com", "secret1")
    spy.assert_called_once_with("secret1", passwords._DUMMY_HASH)


def test_known_email_runs_bcrypt_once(store: UserStore) -> None:
    with patch.object(passwords, "verify_password", wraps=passwords.verify_password) as spy:
        authenticate_user(store, "ada@example.com", "wrong-password")
    assert spy.call_count == 1
