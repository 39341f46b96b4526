"""
core/validation.py -- Field validation policies for credentials and payments.

Every inbound field is checked against exactly one rule before any store or
hashing work happens. Rules look at their own value only; there are no
cross-field checks (password confirmation is a client-side concern).

Pure module: no I/O, no logging, no global state. validate() returns a
Verdict; require() and require_all() raise core.errors.ValidationError so the
API layer can turn the first rejection into a 400.

Rejection reasons are fixed strings. A rejected value is never copied into a
reason -- it would reflect attacker-controlled input back to the caller.

Rules where the web client and the server disagree (the server wins):
  account_number -- digits only, 6-18 (server rule; the client's uppercase
                    alphanumeric >= 10 rule is not applied).
  swift_code     -- 8 or 11 uppercase alphanumerics (ISO 9362 BIC length; the
                    client's 4-letter rule is not applied).

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or payments/.
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Mapping, Optional

from core.errors import ValidationError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,32}$")
ACCOUNT_NUMBER_PATTERN = re.compile(r"^[0-9]{6,18}$")
AMOUNT_PATTERN = re.compile(r"^\d{1,9}(?:\.\d{1,2})?$")
SWIFT_PATTERN = re.compile(r"^[A-Z0-9]{8}(?:[A-Z0-9]{3})?$")
PAYEE_PATTERN = re.compile(r"^[A-Za-z][A-Za-z '\-]{1,69}$")

SUPPORTED_CURRENCIES = frozenset({"USD", "EUR", "GBP", "ZAR", "JPY", "AUD", "CAD"})

PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
STRONG_PASSWORD_MIN_LENGTH = 10

AMOUNT_MAX = Decimal("999999999")

GENERIC_REASON = "Invalid value"


# ---------------------------------------------------------------------------
# Verdict
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Verdict:
    """Outcome of one field check. reason is None when ok is True."""

    field: str
    ok: bool
    reason: Optional[str] = None

    @classmethod
    def accept(cls, field: str) -> "Verdict":
        return cls(field=field, ok=True)

    @classmethod
    def reject(cls, field: str, reason: str = GENERIC_REASON) -> "Verdict":
        return cls(field=field, ok=False, reason=reason)


# A rule answers None when the value passes, or a rejection reason.
Rule = Callable[[Any], Optional[str]]


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def _check_username(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not USERNAME_PATTERN.fullmatch(value):
        return "Username must be 3-32 characters: letters, digits, '_', '.' or '-'"
    return None


def _check_password(value: Any) -> Optional[str]:
    # Shape only. Strength is enforced at registration, so older accounts
    # created under a weaker policy can still log in.
    if not isinstance(value, str) or not PASSWORD_MIN_LENGTH <= len(value) <= PASSWORD_MAX_LENGTH:
        return f"Password must be {PASSWORD_MIN_LENGTH}-{PASSWORD_MAX_LENGTH} characters"
    return None


def _check_strong_password(value: Any) -> Optional[str]:
    reason = "Password does not meet strength policy"
    if not isinstance(value, str):
        return reason
    if not STRONG_PASSWORD_MIN_LENGTH <= len(value) <= PASSWORD_MAX_LENGTH:
        return reason
    has_upper = any("A" <= c <= "Z" for c in value)
    has_lower = any("a" <= c <= "z" for c in value)
    has_digit = any("0" <= c <= "9" for c in value)
    has_symbol = any(not c.isascii() or not c.isalnum() for c in value)
    if not (has_upper and has_lower and has_digit and has_symbol):
        return reason
    return None


def _check_account_number(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not ACCOUNT_NUMBER_PATTERN.fullmatch(value):
        return "Account number must be 6-18 digits"
    return None


def _check_amount(value: Any) -> Optional[str]:
    reason = "Amount must be a positive number with at most 9 integer and 2 decimal digits"
    # bool is an int subclass; True is not an amount.
    if isinstance(value, bool):
        return reason
    if isinstance(value, (int, float)):
        value = str(value)
    if not isinstance(value, str) or not AMOUNT_PATTERN.fullmatch(value):
        return reason
    try:
        amount = Decimal(value)
    except InvalidOperation:
        return reason
    if amount <= 0 or amount > AMOUNT_MAX:
        return reason
    return None


def _check_currency(value: Any) -> Optional[str]:
    if not isinstance(value, str) or value not in SUPPORTED_CURRENCIES:
        return "Unsupported currency"
    return None


def _check_swift_code(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not SWIFT_PATTERN.fullmatch(value):
        return "SWIFT code must be 8 or 11 uppercase letters or digits"
    return None


def _check_payee(value: Any) -> Optional[str]:
    if not isinstance(value, str) or not PAYEE_PATTERN.fullmatch(value) or value != value.strip():
        return "Payee name must be 2-70 letters, spaces, hyphens or apostrophes"
    return None


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------

DEFAULT_POLICY: Mapping[str, Rule] = {
    "username": _check_username,
    "password": _check_password,
    "password_strong": _check_strong_password,
    "account_number": _check_account_number,
    "amount": _check_amount,
    "currency": _check_currency,
    "swift_code": _check_swift_code,
    "payee": _check_payee,
}


def validate(field: str, value: Any, policy: Mapping[str, Rule] = DEFAULT_POLICY) -> Verdict:
    """Check one value against the rule registered for field.

    Raises KeyError for a field the policy does not know -- that is a
    programming error, not bad input.
    """
    rule = policy[field]
    reason = rule(value)
    if reason is None:
        return Verdict.accept(field)
    return Verdict.reject(field, reason)


def require(
    field: str,
    value: Any,
    policy: Mapping[str, Rule] = DEFAULT_POLICY,
    label: Optional[str] = None,
) -> None:
    """Raise ValidationError when value fails the rule for field.

    label overrides the field name reported to the caller, e.g. the
    "password_strong" rule is reported against the "password" field.
    """
    verdict = validate(field, value, policy)
    if not verdict.ok:
        raise ValidationError(label or verdict.field, verdict.reason or GENERIC_REASON)


def require_all(values: Mapping[str, Any], policy: Mapping[str, Rule] = DEFAULT_POLICY) -> None:
    """Validate each (field, value) pair in order, raising on the first rejection."""
    for field, value in values.items():
        require(field, value, policy)


def normalize_amount(value: Any) -> str:
    """Return a validated amount as a two-decimal string, e.g. 1500 -> "1500.00".

    Call only after the "amount" rule has accepted value.
    """
    return str(Decimal(str(value)).quantize(Decimal("0.01")))
