"""Unit tests for core/validation.py -- field policies.

Covers:
- username and login-password shape rules
- strong password policy used at registration
- payment fields: account number, amount, currency, SWIFT code, payee
- require() / require_all() raise ValidationError naming the field
- rejection reasons never contain the rejected value
- normalize_amount() renders two decimals
"""

import pytest

from core import validation
from core.errors import ValidationError

# ---------------------------------------------------------------------------
# Credentials
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("value", ["alice_01", "bob", "j.doe-2", "A" * 32])
def test_username_accepts_valid(value):
    assert validation.validate("username", value).ok


@pytest.mark.parametrize("value", ["ab", "A" * 33, "alice 01", "alice@corp", "", "alice_01\n", None, 42])
def test_username_rejects_invalid(value):
    verdict = validation.validate("username", value)
    assert not verdict.ok
    assert verdict.field == "username"


def test_login_password_is_shape_only():
    assert validation.validate("password", "lowercaseonly").ok
    assert not validation.validate("password", "short").ok
    assert not validation.validate("password", "x" * 129).ok


@pytest.mark.parametrize("value", ["Tr0ub4dor&3!", "Abcdefgh1!", "Zz9~zzzzzz"])
def test_strong_password_accepts(value):
    assert validation.validate("password_strong", value).ok


@pytest.mark.parametrize(
    "value",
    [
        "Tr0ub4d&3",  # too short
        "tr0ub4dor&3!",  # no upper
        "TR0UB4DOR&3!",  # no lower
        "Troubador&!!",  # no digit
        "Tr0ub4dor33x",  # no symbol
        "A1!" + "a" * 126,  # too long
    ],
)
def test_strong_password_rejects(value):
    assert not validation.validate("password_strong", value).ok


@pytest.mark.parametrize("value", ["Abcdefgh1 ", "Abcdefgh1\u00e9", "Abcdefgh1\t"])
def test_strong_password_symbol_can_be_any_non_ascii_alnum(value):
    assert validation.validate("password_strong", value).ok


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


class TestAmount:
    @pytest.mark.parametrize("value", ["1", "0.01", "1500.50", "999999999", "999999999.00", 1500, 12.5])
    def test_accepts(self, value):
        assert validation.validate("amount", value).ok

    @pytest.mark.parametrize(
        "value",
        ["0", "0.00", "-5", "1000000000.00", "1000000000", "1.234", "1e5", "abc", "", " 10", True, None],
    )
    def test_rejects(self, value):
        assert not validation.validate("amount", value).ok

    def test_over_maximum_names_amount_field(self):
        with pytest.raises(ValidationError) as exc_info:
            validation.require("amount", "1000000000.00")
        assert exc_info.value.field == "amount"
        assert exc_info.value.status_code == 400

    def test_normalize_amount(self):
        assert validation.normalize_amount("1500") == "1500.00"
        assert validation.normalize_amount(12.5) == "12.50"
        assert validation.normalize_amount("0.1") == "0.10"


class TestPaymentFields:
    def test_account_number(self):
        assert validation.validate("account_number", "123456").ok
        assert validation.validate("account_number", "1" * 18).ok
        assert not validation.validate("account_number", "12345").ok
        assert not validation.validate("account_number", "1" * 19).ok
        assert not validation.validate("account_number", "12345A").ok

    def test_currency(self):
        assert validation.validate("currency", "USD").ok
        assert validation.validate("currency", "ZAR").ok
        assert not validation.validate("currency", "usd").ok
        assert not validation.validate("currency", "XXX").ok

    def test_swift_code(self):
        assert validation.validate("swift_code", "DEUTDEFF").ok
        assert validation.validate("swift_code", "DEUTDEFF500").ok
        assert not validation.validate("swift_code", "deutdeff").ok
        assert not validation.validate("swift_code", "DEUTDEF").ok
        assert not validation.validate("swift_code", "DEUTDEFF5").ok

    def test_payee(self):
        assert validation.validate("payee", "Jane O'Neil-Smith").ok
        assert not validation.validate("payee", "J").ok
        assert not validation.validate("payee", "Jane2").ok
        assert not validation.validate("payee", "Jane ").ok
        assert not validation.validate("payee", "<script>").ok


# ---------------------------------------------------------------------------
# require / require_all
# ---------------------------------------------------------------------------


def test_require_all_stops_at_first_failure():
    with pytest.raises(ValidationError) as exc_info:
        validation.require_all(
            {
                "account_number": "123456",
                "amount": "abc",
                "currency": "nope",
            }
        )
    assert exc_info.value.field == "amount"


def test_require_label_overrides_reported_field():
    with pytest.raises(ValidationError) as exc_info:
        validation.require("password_strong", "weak", label="password")
    assert exc_info.value.field == "password"
    assert exc_info.value.message == "Invalid password"


def test_rejection_never_echoes_value():
    hostile = "<img src=x onerror=alert(1)>"
    # The login-password rule is shape only and accepts this value.
    for field in set(validation.DEFAULT_POLICY) - {"password"}:
        verdict = validation.validate(field, hostile)
        assert not verdict.ok
        assert hostile not in (verdict.reason or "")


def test_unknown_field_is_a_programming_error():
    with pytest.raises(KeyError):
        validation.validate("shoe_size", "42")
