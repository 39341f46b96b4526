"""
API request and response models for SecurePay Gate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
payments/models.py, which own the internal domain representation. Route
handlers map between the two.

Request models only enforce transport shape (types and generous size caps).
The field policies -- username pattern, password strength, amount bounds,
SWIFT format -- live in core/validation.py and are applied by the service
and route layer, so every rejection comes back as the same 400 envelope.

Payment fields use camelCase on the wire (accountNumber, swiftCode) to match
the existing client; populate_by_name lets handlers build them with
snake_case keyword arguments.
"""

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from auth.models import Claims, LoginResult
from payments.models import Payment

# ---------------------------------------------------------------------------
# Auth -- request models
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Request body for POST /auth/register and POST /auth/login.

    The caps only bound the work a single request can cause; the real
    policies are applied by AuthService.
    """

    username: str = Field(max_length=256)
    password: str = Field(max_length=1024)


# ---------------------------------------------------------------------------
# Auth -- response models
# ---------------------------------------------------------------------------


class RegisterResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    ok: bool = True


class LoginResponse(BaseModel):
    """Response body for a successful POST /auth/login."""

    model_config = ConfigDict(frozen=True)

    token: str
    token_type: str = "bearer"
    expires_in: int
    username: str
    role: str

    @classmethod
    def from_result(cls, result: LoginResult) -> "LoginResponse":
        return cls(
            token=result.token,
            expires_in=result.expires_in,
            username=result.username,
            role=result.role.value,
        )


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    subject: str
    username: str
    role: str
    expires_at: int

    @classmethod
    def from_claims(cls, claims: Claims) -> "MeResponse":
        return cls(
            subject=claims.subject,
            username=claims.username,
            role=claims.role.value,
            expires_at=claims.expires_at,
        )


# ---------------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------------


class PaymentCreate(BaseModel):
    """Request body for POST /payments.

    amount accepts a JSON string or number; both are checked against the same
    decimal policy before anything is stored.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=False)

    account_number: str = Field(alias="accountNumber", max_length=64)
    amount: Union[str, int, float]
    currency: str = Field(max_length=16)
    swift_code: str = Field(alias="swiftCode", max_length=32)
    payee: str = Field(max_length=128)


class PaymentResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: int
    account_number: str = Field(alias="accountNumber")
    amount: str
    currency: str
    swift_code: str = Field(alias="swiftCode")
    payee: str
    status: str
    created_by: Optional[str] = Field(default=None, alias="createdBy")
    created_at: str = Field(alias="createdAt")
    verified_at: Optional[str] = Field(default=None, alias="verifiedAt")
    submitted_at: Optional[str] = Field(default=None, alias="submittedAt")

    @classmethod
    def from_payment(cls, payment: Payment) -> "PaymentResponse":
        """Factory Method -- the mapping lives here, next to the output model."""
        return cls(
            id=payment.id,
            account_number=payment.account_number,
            amount=payment.amount,
            currency=payment.currency,
            swift_code=payment.swift_code,
            payee=payment.payee,
            status=payment.status.value,
            created_by=payment.created_by,
            created_at=payment.created_at,
            verified_at=payment.verified_at,
            submitted_at=payment.submitted_at,
        )


# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Envelope returned on every 4xx/5xx.

    error is the human-readable message, code the machine-readable one, and
    field names the offending input on validation failures.
    """

    model_config = ConfigDict(frozen=True)

    error: str
    code: str
    field: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
