"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Stores and the auth
service do the work.

Layer rule: no imports from api/ or payments/.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Role(str, Enum):
    """Flat role set. There is no hierarchy and no self-escalation path."""

    EMPLOYEE = "EMPLOYEE"


@dataclass(frozen=True)
class CredentialRecord:
    """A stored identity and its password hash.

    identity is the login username: unique and immutable once created.
    secret_hash is the bcrypt output -- never the plaintext, and excluded from
    repr() so it cannot end up in a log line by accident.
    """

    identity: str
    secret_hash: str = field(repr=False)
    role: Role = Role.EMPLOYEE
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Claims:
    """Verified contents of an access token.

    subject is the credential record id (as a string, per the JWT "sub" claim).
    issued_at / expires_at are POSIX seconds.
    """

    subject: str
    username: str
    role: Role
    issued_at: int
    expires_at: int


@dataclass(frozen=True)
class LoginResult:
    """What a successful login hands back to the boundary."""

    token: str
    username: str
    role: Role
    expires_in: int
