"""
api/routes/auth.py -- Registration, login and identity endpoints.

Routes:
  POST /auth/register   -- create an EMPLOYEE account (only when enabled)
  POST /auth/login      -- password login; returns a bearer token
  GET  /auth/me         -- claims of the presented token (requires auth)

The router is built by build_auth_router() at application startup. Whether
registration is enabled is decided there, once: when it is off, the register
route is a body-less stub that answers 403 for any payload, so no field
policy, store call or hash ever runs on that path.

Security:
  Login and register pass through throttle_auth (delay after 3 attempts per
      minute, 429 after 5) before the body is looked at.
  Login failures are a single generic 401 for unknown users, wrong
      passwords and malformed input alike. See auth/service.py.
  Cache-Control: no-store on credential responses so tokens are not cached
      by intermediaries.
  Handlers are sync so bcrypt runs in the threadpool, off the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.models import CredentialsRequest, ErrorResponse, LoginResponse, MeResponse, RegisterResponse
from auth.dependencies import get_current_claims, throttle_auth
from auth.models import Claims
from auth.service import AuthService
from core.errors import RegistrationDisabledError

# Auth policy:
# - POST /auth/register: public, throttled; 403 stub when registration is off
# - POST /auth/login:    public, throttled
# - GET  /auth/me:       requires auth (get_current_claims)


def build_auth_router(registration_enabled: bool) -> APIRouter:
    """Return the auth router with the register route chosen by configuration."""
    router = APIRouter()

    if registration_enabled:

        @router.post(
            "/auth/register",
            response_model=RegisterResponse,
            status_code=201,
            dependencies=[Depends(throttle_auth)],
        )
        def register(request: Request, body: CredentialsRequest, response: Response) -> RegisterResponse:
            """Create an EMPLOYEE account. 400 on policy failure, 409 if the username is taken."""
            service: AuthService = request.app.state.auth_service
            service.register(body.username, body.password)
            response.headers["Cache-Control"] = "no-store"
            return RegisterResponse()

    else:

        @router.post(
            "/auth/register",
            status_code=403,
            response_model=ErrorResponse,
            responses={403: {"model": ErrorResponse}},
        )
        async def register_disabled() -> ErrorResponse:
            """Registration is switched off for this deployment."""
            raise RegistrationDisabledError()

    @router.post(
        "/auth/login",
        response_model=LoginResponse,
        dependencies=[Depends(throttle_auth)],
        responses={401: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    )
    def login(request: Request, body: CredentialsRequest, response: Response) -> LoginResponse:
        """Exchange a username and password for a bearer token.

        Returns the same 401 for an unknown username and a wrong password.
        """
        service: AuthService = request.app.state.auth_service
        result = service.login(body.username, body.password)
        response.headers["Cache-Control"] = "no-store"
        return LoginResponse.from_result(result)

    @router.get("/auth/me", response_model=MeResponse)
    async def me(claims: Claims = Depends(get_current_claims)) -> MeResponse:
        """Return the identity carried by the presented token."""
        return MeResponse.from_claims(claims)

    return router
