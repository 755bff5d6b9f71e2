"""
auth/tokens.py -- Session token issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry sub (user id), role, iat and exp.
       The server keeps no session table; a token is valid iff its signature
       checks out under the current key and exp is in the future. Rotating
       SECRET_KEY therefore invalidates every outstanding token.

  One error for every failure: verify() raises AuthenticationError with the
       same message whether the signature is wrong, the token expired, or the
       claims are malformed. Distinguishing them would hand an attacker an
       oracle for forged vs. stale tokens.

  Explicit key: TokenService receives the secret in its constructor. It never
       reads configuration itself; api/main.py builds the single instance at
       startup from core.config.get_settings().

Layer rule: no imports from api/ or tasks/. core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from auth.models import Role, TokenClaims
from core.errors import INVALID_TOKEN, AuthenticationError

logger = logging.getLogger("taskhub.auth")

_ALGORITHM = "HS256"


class TokenService:
    """Issues and verifies signed, expiring bearer tokens.

    Usage:
        tokens = TokenService(settings.secret_key, settings.token_expire_seconds)
        token = tokens.issue(user.id, user.role)
        claims = tokens.verify(token)   # raises AuthenticationError
    """

    def __init__(self, secret_key: str, expire_seconds: int = 86400, algorithm: str = _ALGORITHM) -> None:
        if not secret_key:
            raise ValueError("TokenService requires a non-empty secret key.")
        if expire_seconds <= 0:
            raise ValueError("expire_seconds must be positive.")
        self._secret_key = secret_key
        self._expire_seconds = expire_seconds
        self._algorithm = algorithm

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds."""
        return self._expire_seconds

    def issue(self, user_id: str, role: Role, issued_at: datetime | None = None) -> str:
        """Encode a signed JWT for the given identity.

        issued_at defaults to now. Passing an explicit value is how tests
        produce already-expired tokens that still carry a valid signature.
        """
        now = issued_at or datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "role": Role(role).value,
            "iat": now,
            "exp": now + timedelta(seconds=self._expire_seconds),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Decode and verify a JWT.

        python-jose checks the signature before it looks at any claim, then
        rejects an exp in the past. The structural checks below run last.
        """
        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.debug("Token rejected: %s", exc)
            raise AuthenticationError(INVALID_TOKEN) from None

        claims = _claims_from_payload(payload)
        if claims is None:
            logger.debug("Token rejected: malformed claims")
            raise AuthenticationError(INVALID_TOKEN)
        return claims


def _claims_from_payload(payload: dict) -> TokenClaims | None:
    subject = payload.get("sub")
    issued_at = payload.get("iat")
    expires_at = payload.get("exp")
    if not isinstance(subject, str) or not subject:
        return None
    # bool is an int subclass; a literal true/false is not a timestamp.
    for value in (issued_at, expires_at):
        if not isinstance(value, int) or isinstance(value, bool):
            return None
    try:
        role = Role(payload.get("role"))
    except ValueError:
        return None
    return TokenClaims(subject=subject, role=role, issued_at=issued_at, expires_at=expires_at)
