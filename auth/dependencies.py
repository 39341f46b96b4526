"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication and throttling.

get_current_claims() guards protected routes: it reads the
"Authorization: Bearer <token>" header, verifies the token through the
AuthService on app.state, and hands the verified Claims to the handler.
Missing header, wrong scheme, bad signature and expiry all raise an
AuthError subclass, which the API exception handler renders as 401.

throttle_auth() runs the ThrottleGuard in front of the login and register
handlers. FastAPI resolves dependencies before it raises body validation
errors, so throttling happens before any field policy is evaluated.

Layer rule: no imports from payments/.
  auth/dependencies.py may import from fastapi (for Request) because this
  module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

import asyncio

from fastapi import Request

from auth.models import Claims
from auth.service import AuthService
from auth.throttle import ThrottleGuard
from core.errors import InvalidTokenError

# Usernames beyond this length cannot be valid; cap the bucket key size.
_MAX_BUCKET_NAME = 64


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return None
    token = token.strip()
    return token or None


def get_current_claims(request: Request) -> Claims:
    """Require a valid bearer token. Raises InvalidTokenError / TokenExpiredError.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: Claims = Depends(get_current_claims)): ...
    """
    token = _bearer_token(request)
    if token is None:
        raise InvalidTokenError()
    service: AuthService = request.app.state.auth_service
    return service.authenticate_token(token)


def _client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def _submitted_username(request: Request) -> str | None:
    """Best-effort read of "username" from a JSON body. None when absent or unparsable."""
    try:
        body = await request.json()
    except ValueError:
        return None
    if not isinstance(body, dict):
        return None
    username = body.get("username")
    if not isinstance(username, str) or not username:
        return None
    return username[:_MAX_BUCKET_NAME]


async def throttle_auth(request: Request) -> None:
    """Count the attempt per source address and per username; delay or reject.

    The delay is awaited, not slept, so a throttled client holds no worker
    thread while it waits.
    """
    guard: ThrottleGuard = request.app.state.throttle
    buckets = [f"ip:{_client_address(request)}"]
    username = await _submitted_username(request)
    if username is not None:
        buckets.append(f"user:{username}")

    decision = guard.hit(*buckets)
    if decision.delay_seconds > 0:
        await asyncio.sleep(decision.delay_seconds)
    decision.raise_for_state()
