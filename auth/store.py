"""
auth/store.py -- SQLAlchemy Core persistence layer for credential records.

Pattern: Repository + Data Mapper (same as payments/store.py).
CredentialStore is the repository; _row_to_record is the mapper. The auth
service never touches SQL directly.

Uniqueness: the username column carries a UNIQUE constraint, so two
concurrent registrations for the same identity cannot both succeed even if
both passed an application-level "does it exist?" check. The losing INSERT
raises IntegrityError, which create() translates into DuplicateIdentityError.

Records are create-once: there is no update method for role or
identity. upsert() exists for the seed CLI only.

Security:
  All queries use bound parameters. No f-strings in SQL.
  secret_hash is never logged.

Layer rule: no imports from api/ or payments/.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import CredentialRecord, Role
from core.db import make_engine
from core.errors import DuplicateIdentityError, InternalError

logger = logging.getLogger("securepay.auth")

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(32), nullable=False, unique=True),
    Column("secret_hash", Text, nullable=False),
    Column("role", String(30), nullable=False, server_default=Role.EMPLOYEE.value),
    Column("created_at", String(32), nullable=False),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class CredentialStore:
    """Repository for CredentialRecord entities.

    Usage:
        store = CredentialStore("sqlite:///securepay.db")
        record = store.create("alice_01", hasher.hash("Tr0ub4dor&3!"))
        store.find_by_identity("alice_01")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def create(self, identity: str, secret_hash: str, role: Role = Role.EMPLOYEE) -> CredentialRecord:
        """Insert a new record and return it with its assigned id.

        Raises DuplicateIdentityError if the identity already exists. The
        check is the database UNIQUE constraint, not a prior SELECT.
        """
        created_at = _now_iso()
        try:
            with self.engine.begin() as conn:
                result = conn.execute(
                    _users.insert().values(
                        username=identity,
                        secret_hash=secret_hash,
                        role=role.value,
                        created_at=created_at,
                    )
                )
                record_id = result.inserted_primary_key[0]
        except IntegrityError as exc:
            raise DuplicateIdentityError() from exc
        return CredentialRecord(
            id=record_id,
            identity=identity,
            secret_hash=secret_hash,
            role=role,
            created_at=created_at,
        )

    def find_by_identity(self, identity: str) -> CredentialRecord | None:
        """Look up a record by exact username (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.username == identity)).fetchone()
        return _row_to_record(row) if row is not None else None

    def get_by_id(self, record_id: int) -> CredentialRecord | None:
        """Look up a record by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == record_id)).fetchone()
        return _row_to_record(row) if row is not None else None

    def upsert(self, identity: str, secret_hash: str, role: Role = Role.EMPLOYEE) -> CredentialRecord:
        """Create the record, or replace its hash and role if it exists. Seed CLI only."""
        try:
            return self.create(identity, secret_hash, role)
        except DuplicateIdentityError:
            logger.info("Resetting existing account %s", identity)
        with self.engine.begin() as conn:
            conn.execute(
                _users.update().where(_users.c.username == identity).values(secret_hash=secret_hash, role=role.value)
            )
        record = self.find_by_identity(identity)
        if record is None:
            raise InternalError("Seeded account missing after update.")
        return record

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_record(row) -> CredentialRecord:
    return CredentialRecord(
        id=row.id,
        identity=row.username,
        secret_hash=row.secret_hash,
        role=Role(row.role),
        created_at=row.created_at,
    )
