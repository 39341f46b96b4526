"""
api/routes/payments.py -- Staff payment record endpoints.

Routes (all require a valid bearer token):
  GET  /payments                     -- newest first, at most 200
  POST /payments                     -- capture a payment (validated)
  POST /payments/{payment_id}/verify -- mark VERIFIED
  POST /payments/{payment_id}/submit -- mark SUBMITTED

Every financial field is checked against core/validation.py before the store
is touched; the first rejection becomes a 400 naming the field. A non-integer
payment_id, or one outside 1..2**63-1, is rejected by FastAPI's path
parsing and rendered as the same 400.

POST /payments is additionally rate-limited per client address through the
shared slowapi limiter.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Path, Request

from api.limiter import PAYMENTS_RATE_LIMIT, limiter
from api.models import PaymentCreate, PaymentResponse
from auth.dependencies import get_current_claims
from auth.models import Claims
from core import validation
from core.errors import InternalError, NotFoundError
from payments.models import Payment
from payments.store import PaymentStore

router = APIRouter(dependencies=[Depends(get_current_claims)])

# Bounded to the SQLite INTEGER range so oversized ids fail as a 400.
PaymentId = Annotated[int, Path(gt=0, le=2**63 - 1)]


@router.get("/payments", response_model=list[PaymentResponse])
def list_payments(request: Request) -> list[PaymentResponse]:
    store: PaymentStore = request.app.state.payment_store
    return [PaymentResponse.from_payment(p) for p in store.list_recent()]


@router.post("/payments", response_model=PaymentResponse, status_code=201)
# Innermost, so the router registers slowapi's wrapper and the limit is enforced.
@limiter.limit(PAYMENTS_RATE_LIMIT)
def create_payment(
    request: Request,
    body: PaymentCreate,
    claims: Claims = Depends(get_current_claims),
) -> PaymentResponse:
    """Validate and store a new PENDING payment."""
    validation.require_all(
        {
            "account_number": body.account_number,
            "amount": body.amount,
            "currency": body.currency,
            "swift_code": body.swift_code,
            "payee": body.payee,
        }
    )
    store: PaymentStore = request.app.state.payment_store
    payment_id = store.create(
        Payment(
            account_number=body.account_number,
            amount=validation.normalize_amount(body.amount),
            currency=body.currency,
            swift_code=body.swift_code,
            payee=body.payee,
            created_by=claims.username,
        )
    )
    created = store.get(payment_id)
    if created is None:
        raise InternalError("Payment missing after write.")
    return PaymentResponse.from_payment(created)


@router.post("/payments/{payment_id}/verify", response_model=PaymentResponse)
def verify_payment(request: Request, payment_id: PaymentId) -> PaymentResponse:
    store: PaymentStore = request.app.state.payment_store
    payment = store.mark_verified(payment_id)
    if payment is None:
        raise NotFoundError()
    return PaymentResponse.from_payment(payment)


@router.post("/payments/{payment_id}/submit", response_model=PaymentResponse)
def submit_payment(request: Request, payment_id: PaymentId) -> PaymentResponse:
    store: PaymentStore = request.app.state.payment_store
    payment = store.mark_submitted(payment_id)
    if payment is None:
        raise NotFoundError()
    return PaymentResponse.from_payment(payment)
