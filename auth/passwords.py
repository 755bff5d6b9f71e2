"""
auth/passwords.py -- Password hashing and credential checks.

Passwords: bcrypt, used directly (no passlib wrapper). bcrypt.gensalt() draws
a fresh random salt on every call and the salt is embedded in the returned
hash, so verification needs nothing but the stored string. checkpw compares
in constant time.

Timing equalization: authenticate_user() always runs exactly one bcrypt check,
against _DUMMY_HASH when the email is unknown, so response time does not
reveal whether an account exists.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import bcrypt

if TYPE_CHECKING:
    from auth.models import User
    from auth.store import UserStore

logger = logging.getLogger("taskhub.auth")


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt only looks at the first 72 bytes; the API layer refuses longer
    passwords so no tail is silently ignored.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash.

    A malformed or empty stored hash fails closed: bcrypt raises ValueError on
    an unparseable salt and TypeError on a None value, and both collapse to
    False so the caller learns nothing about which part was wrong.
    """
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError, AttributeError):
        return False


# Computed once at import so the first login is not measurably slower.
_DUMMY_HASH: str = hash_password("taskhub_timing_dummy")


def authenticate_user(store: UserStore, email: str, password: str) -> User | None:
    """Check an email/password pair with timing equalization.

    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as a real check)
    - Wrong password: bcrypt runs against the real hash
    - Inactive user: the password is still checked first, then rejected

    Returns the User on success, None on any failure.
    """
    user = store.get_by_email(email)
    if user is None or user.hashed_password is None:
        verify_password(password, _DUMMY_HASH)
        return None
    if not verify_password(password, user.hashed_password):
        return None
    if not user.is_active:
        logger.info("Login refused for inactive user %s", user.id)
        return None
    return user
