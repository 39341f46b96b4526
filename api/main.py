"""
api/main.py -- FastAPI application factory for SecurePay Gate.

Run with:  uvicorn asgi:app --reload

create_app(settings) assembles the whole service from one Settings object:
the password hasher, token issuer, throttle guard and the auth router (whose
register route depends on settings.registration_enabled) are all built here,
once. Stores are opened in the lifespan so their connections are released
symmetrically on shutdown. Tests pass their own stores in.

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. SlowAPIMiddleware     -- enforces per-route limits from api.limiter

Every failure leaves through one of the exception handlers below and is
rendered as the ErrorResponse envelope. Nothing escapes unlogged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorResponse, HealthResponse
from api.routes.auth import build_auth_router
from api.routes.payments import router as payments_router
from auth.hashing import PasswordHasher
from auth.service import AuthService
from auth.store import CredentialStore
from auth.throttle import ThrottleGuard
from auth.tokens import TokenIssuer
from core.config import Settings, get_settings
from core.errors import AuthError, GateError, RateLimitError
from payments.store import PaymentStore

__version__ = "1.0.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("securepay.api")

_GENERIC_500 = "An unexpected error occurred."


def _error_response(status_code: int, message: str, code: str, field: str | None = None) -> JSONResponse:
    response = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message, code=code, field=field).model_dump(),
    )
    response.headers["Cache-Control"] = "no-store"
    return response


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


async def gate_error_handler(request: Request, exc: GateError) -> JSONResponse:
    """Render the core error taxonomy.

    5xx detail is logged server-side only; the caller gets a generic message.
    """
    if exc.status_code >= 500:
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(exc.status_code, _GENERIC_500, exc.code)

    response = _error_response(exc.status_code, exc.message, exc.code, getattr(exc, "field", None))
    if isinstance(exc, RateLimitError):
        response.headers["Retry-After"] = str(exc.retry_after)
    elif isinstance(exc, AuthError):
        response.headers["WWW-Authenticate"] = "Bearer"
    return response


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 when a slowapi route limit is exceeded.

    Kept sync: besides the exception middleware, SlowAPIMiddleware may call
    it directly for app-wide limits, and it does not await the result.
    """
    response = _error_response(429, "Too many requests", "rate_limited")
    response.headers["Retry-After"] = str(int(getattr(exc, "retry_after", 60)))
    return response


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 naming the first bad field. The submitted value is never echoed."""
    field = None
    errors = exc.errors()
    if errors:
        loc = [part for part in errors[0].get("loc", ()) if isinstance(part, str) and part != "body"]
        field = loc[-1] if loc else None
    message = f"Invalid {field}" if field else "Invalid request"
    return _error_response(400, message, "validation_error", field)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Unknown routes, wrong methods and other framework-level HTTP errors."""
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return _error_response(exc.status_code, message, f"http_{exc.status_code}")


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, _GENERIC_500, "internal_error")


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    credential_store: CredentialStore | None = None,
    payment_store: PaymentStore | None = None,
) -> FastAPI:
    """Build the application from settings, read once here and never again.

    Stores passed in are used as-is and left open on shutdown (the caller
    owns them); stores the app opens itself are closed in the lifespan.
    """
    settings = settings if settings is not None else get_settings()

    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)
    issuer = TokenIssuer(settings.secret_key, lifetime_seconds=settings.token_expire_seconds)
    throttle = ThrottleGuard(
        window_seconds=settings.throttle_window_seconds,
        delay_after=settings.throttle_delay_after,
        delay_seconds=settings.throttle_delay_ms / 1000,
        block_after=settings.throttle_block_after,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Open stores and build the AuthService; close owned stores on shutdown."""
        logger.info("SecurePay Gate starting up")
        owned: list = []
        users = credential_store
        if users is None:
            users = CredentialStore(settings.database_url)
            owned.append(users)
        payments = payment_store
        if payments is None:
            payments = PaymentStore(settings.database_url)
            owned.append(payments)

        app.state.credential_store = users
        app.state.payment_store = payments
        app.state.auth_service = AuthService(
            users,
            hasher,
            issuer,
            registration_enabled=settings.registration_enabled,
        )
        logger.info(
            "Auth initialized (registration_enabled=%s, token_lifetime=%ss, bcrypt_rounds=%d)",
            settings.registration_enabled,
            settings.token_expire_seconds,
            settings.bcrypt_rounds,
        )

        yield

        for store in owned:
            store.close()
        logger.info("SecurePay Gate shutdown complete")

    app = FastAPI(
        title="SecurePay Gate",
        description="Credential issuance and request validation for the payments API.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.throttle = throttle
    # SlowAPI looks for app.state.limiter by convention.
    app.state.limiter = limiter

    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=3600,
    )
    app.add_middleware(SlowAPIMiddleware)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response

    app.add_exception_handler(GateError, gate_error_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    app.include_router(build_auth_router(settings.registration_enabled), tags=["Auth"])
    app.include_router(payments_router, tags=["Payments"])

    # Defined on the app (not in a router) so it is always reachable. No rate
    # limit -- health checks from load balancers must not be throttled.
    @app.get("/health", tags=["Health"])
    def health(request: Request) -> HealthResponse:
        """Return liveness, version and database reachability."""
        database = "ok"
        try:
            with request.app.state.credential_store.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            logger.exception("Health check: database unreachable")
            database = "error"
        return HealthResponse(
            status="healthy" if database == "ok" else "degraded",
            version=__version__,
            components={"app": "ok", "database": database},
        )

    return app
