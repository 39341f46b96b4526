"""
auth/tokens.py -- Signed, time-bounded bearer tokens (JWT).

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       the record id (sub), username, role, issued-at and expiry. Nothing
       is stored server-side; validity is exactly "signature valid AND
       now < exp".

  Fail closed: verify() either returns fully-populated Claims or raises.
       A wrong signature, a garbled token, a missing or ill-typed claim, or
       an unknown role all raise InvalidTokenError; an elapsed expiry raises
       TokenExpiredError. Both are AuthError subclasses, so the boundary
       answers 401 for every case.

  Clock: issue() and verify() take an optional `now` so expiry can be
       tested without sleeping. jose's own exp check is switched off and
       replaced with the explicit comparison below, which uses that clock.

  Rotation: the secret is read once at startup. Rotating it invalidates
       every outstanding token -- there is no revocation list to maintain.

Layer rule: no imports from api/ or payments/.
"""

from __future__ import annotations

from datetime import datetime, timezone

from jose import JWTError, jwt

from auth.models import Claims, Role
from core.errors import InvalidTokenError, TokenExpiredError

ALGORITHM = "HS256"
DEFAULT_LIFETIME_SECONDS = 8 * 3600

_REQUIRED_CLAIMS = ("sub", "username", "role", "iat", "exp")


def _timestamp(now: datetime | None) -> int:
    moment = now if now is not None else datetime.now(timezone.utc)
    return int(moment.timestamp())


class TokenIssuer:
    """Mints and verifies access tokens with a process-wide symmetric secret.

    Usage:
        issuer = TokenIssuer(settings.secret_key, settings.token_expire_seconds)
        token = issuer.issue(subject="1", username="alice_01", role=Role.EMPLOYEE)
        claims = issuer.verify(token)
    """

    def __init__(
        self,
        secret_key: str,
        lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
        algorithm: str = ALGORITHM,
    ) -> None:
        if not secret_key:
            raise ValueError("A signing secret is required.")
        if lifetime_seconds <= 0:
            raise ValueError("Token lifetime must be positive.")
        self._secret_key = secret_key
        self.lifetime_seconds = lifetime_seconds
        self.algorithm = algorithm

    def issue(self, subject: str, username: str, role: Role, now: datetime | None = None) -> str:
        """Encode a signed JWT that expires lifetime_seconds after now."""
        issued_at = _timestamp(now)
        payload = {
            "sub": str(subject),
            "username": username,
            "role": Role(role).value,
            "iat": issued_at,
            "exp": issued_at + self.lifetime_seconds,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str, now: datetime | None = None) -> Claims:
        """Decode and check a token. Returns Claims or raises an AuthError subclass."""
        if not isinstance(token, str) or not token:
            raise InvalidTokenError()
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as exc:
            raise InvalidTokenError() from exc

        if any(name not in payload for name in _REQUIRED_CLAIMS):
            raise InvalidTokenError()
        expires_at = payload["exp"]
        issued_at = payload["iat"]
        if not isinstance(expires_at, int) or not isinstance(issued_at, int):
            raise InvalidTokenError()
        if not isinstance(payload["sub"], str) or not isinstance(payload["username"], str):
            raise InvalidTokenError()
        try:
            role = Role(payload["role"])
        except ValueError as exc:
            raise InvalidTokenError() from exc

        if _timestamp(now) >= expires_at:
            raise TokenExpiredError()

        return Claims(
            subject=payload["sub"],
            username=payload["username"],
            role=role,
            issued_at=issued_at,
            expires_at=expires_at,
        )
