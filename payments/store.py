"""
payments/store.py -- SQLAlchemy-backed persistence for payment records.

Uses SQLAlchemy Core (not ORM) so the dataclass in payments/models.py remains
the authoritative domain representation.

Pattern: Repository + Data Mapper. PaymentStore is the repository;
_row_to_payment is the mapper. Route handlers never touch SQL directly.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = PaymentStore("sqlite:///securepay.db")
    payment_id = store.create(payment)
    store.list_recent()
    store.mark_verified(payment_id)
    store.close()
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table
from sqlalchemy.engine import Engine

from core.db import make_engine
from payments.models import Payment, PaymentStatus

# Listing cap for the staff overview.
LIST_LIMIT = 200

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_payments = Table(
    "payments",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("account_number", String(18), nullable=False),
    Column("amount", String(13), nullable=False),  # decimal string, up to 9+1+2
    Column("currency", String(3), nullable=False),
    Column("swift_code", String(11), nullable=False),
    Column("payee", String(70), nullable=False),
    Column("status", String(20), nullable=False, server_default=PaymentStatus.PENDING.value),
    Column("created_by", String(32)),
    Column("created_at", String(32), nullable=False),
    Column("verified_at", String(32)),
    Column("submitted_at", String(32)),
)


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class PaymentStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        metadata.create_all(self.engine)

    def create(self, payment: Payment) -> int:
        """Insert a new payment in PENDING state and return its ID."""
        with self.engine.begin() as conn:
            result = conn.execute(
                _payments.insert().values(
                    account_number=payment.account_number,
                    amount=payment.amount,
                    currency=payment.currency,
                    swift_code=payment.swift_code,
                    payee=payment.payee,
                    status=PaymentStatus.PENDING.value,
                    created_by=payment.created_by,
                    created_at=_now_iso(),
                )
            )
            return result.inserted_primary_key[0]

    def get(self, payment_id: int) -> Optional[Payment]:
        with self.engine.connect() as conn:
            row = conn.execute(_payments.select().where(_payments.c.id == payment_id)).fetchone()
        return _row_to_payment(row) if row is not None else None

    def list_recent(self, limit: int = LIST_LIMIT) -> list[Payment]:
        """Return up to `limit` payments, newest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _payments.select().order_by(_payments.c.created_at.desc(), _payments.c.id.desc()).limit(limit)
            ).fetchall()
        return [_row_to_payment(r) for r in rows]

    def mark_verified(self, payment_id: int) -> Optional[Payment]:
        """Set status VERIFIED and stamp verified_at. Returns None if not found."""
        return self._set_status(payment_id, PaymentStatus.VERIFIED, verified_at=_now_iso())

    def mark_submitted(self, payment_id: int) -> Optional[Payment]:
        """Set status SUBMITTED and stamp submitted_at. Returns None if not found."""
        return self._set_status(payment_id, PaymentStatus.SUBMITTED, submitted_at=_now_iso())

    def _set_status(self, payment_id: int, status: PaymentStatus, **stamps: str) -> Optional[Payment]:
        with self.engine.begin() as conn:
            result = conn.execute(
                _payments.update().where(_payments.c.id == payment_id).values(status=status.value, **stamps)
            )
        if result.rowcount == 0:
            return None
        return self.get(payment_id)

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_payment(row) -> Payment:
    return Payment(
        id=row.id,
        account_number=row.account_number,
        amount=row.amount,
        currency=row.currency,
        swift_code=row.swift_code,
        payee=row.payee,
        status=PaymentStatus(row.status),
        created_by=row.created_by,
        created_at=row.created_at,
        verified_at=row.verified_at,
        submitted_at=row.submitted_at,
    )
