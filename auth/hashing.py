"""
auth/hashing.py -- One-way password hashing with bcrypt.

Using bcrypt directly rather than passlib[bcrypt] because passlib's internal
wrap-bug detection creates a password longer than 72 bytes, which bcrypt 4.x
rejects with an explicit error.

Work factor: the cost ("rounds") is embedded in every hash string
($2b$<cost>$...), so raising BCRYPT_ROUNDS only affects new hashes. Existing
hashes keep verifying at the cost they were created with; needs_rehash()
tells callers which ones are below the current cost.

Timing: bcrypt.checkpw recomputes the hash and compares the results in
constant time, so a mismatch in the first byte costs the same as one in the
last. verify() never raises -- a malformed stored hash is just a mismatch.

Layer rule: no imports from api/ or payments/.
"""

from __future__ import annotations

import base64
import hashlib

import bcrypt

DEFAULT_ROUNDS = 12


def _encode(secret: str) -> bytes:
    """Pre-hash secret to 44 ASCII bytes before bcrypt sees it.

    bcrypt only consumes the first 72 bytes of its input, so two long secrets
    sharing a 72-byte prefix would otherwise verify as equal. base64 keeps NUL
    bytes out of the digest, which bcrypt would treat as a terminator.
    """
    digest = hashlib.sha256(secret.encode("utf-8")).digest()
    return base64.b64encode(digest)


class PasswordHasher:
    """bcrypt hasher with a configurable work factor.

    Usage:
        hasher = PasswordHasher(rounds=12)
        stored = hasher.hash("Tr0ub4dor&3!")
        hasher.verify("Tr0ub4dor&3!", stored)   # True
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if not 4 <= rounds <= 31:
            raise ValueError("bcrypt rounds must be between 4 and 31.")
        self.rounds = rounds

    def hash(self, secret: str) -> str:
        """Return a salted bcrypt hash string for secret."""
        return bcrypt.hashpw(_encode(secret), bcrypt.gensalt(rounds=self.rounds)).decode("ascii")

    def verify(self, secret: str, hashed: str) -> bool:
        """Return True if secret matches hashed. False on any failure, never raises."""
        if not isinstance(secret, str) or not isinstance(hashed, str):
            return False
        try:
            return bcrypt.checkpw(_encode(secret), hashed.encode("ascii"))
        except (ValueError, TypeError):
            return False

    def needs_rehash(self, hashed: str) -> bool:
        """True when hashed was produced with a lower cost than the current one."""
        try:
            cost = int(hashed.split("$")[2])
        except (AttributeError, IndexError, ValueError):
            return True
        return cost < self.rounds
