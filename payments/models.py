"""
payments/models.py -- Domain dataclasses for payment records.

These are pure data containers with zero logic. Status transitions live in
payments/store.py; field validation happens in core/validation.py before a
Payment is ever constructed from request data.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    SUBMITTED = "SUBMITTED"


@dataclass
class Payment:
    """An international payment captured for staff verification.

    amount is kept as the validated decimal string (never a float) so cents
    are not lost in storage.

    id is None before the record is written to the database.
    """

    account_number: str
    amount: str
    currency: str
    swift_code: str
    payee: str
    status: PaymentStatus = PaymentStatus.PENDING
    created_by: Optional[str] = None  # username from the access token
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601, set by store on insert
    verified_at: Optional[str] = None
    submitted_at: Optional[str] = None
