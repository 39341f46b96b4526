"""
core/errors.py -- Error taxonomy shared by the auth core and the HTTP boundary.

Every failure the core can signal is one of these classes. The API layer maps
them onto the JSON error envelope in a single exception handler, so route
handlers raise and never build error responses by hand.

Caller-facing messages are fixed strings. None of them embed user input: a
rejected field value or a submitted identity must never be reflected back.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or payments/.
"""

from typing import Optional


class GateError(Exception):
    """Base class. status_code / code / message describe the HTTP rendering."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(GateError):
    """A field failed its validation policy. User-correctable."""

    status_code = 400
    code = "validation_error"

    def __init__(self, field: str, reason: str = "Invalid value") -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}")


class AuthError(GateError):
    """Bad credentials or a bad token. Always generic towards the caller."""

    status_code = 401
    code = "bad_credentials"
    message = "Invalid credentials"


class InvalidTokenError(AuthError):
    code = "invalid_token"
    message = "Invalid or missing token"


class TokenExpiredError(AuthError):
    code = "token_expired"
    message = "Token expired"


class RateLimitError(GateError):
    """Too many attempts in the current throttle window."""

    status_code = 429
    code = "rate_limited"
    message = "Too many attempts, please try again later"

    def __init__(self, retry_after: int = 60) -> None:
        self.retry_after = retry_after
        super().__init__()


class DuplicateIdentityError(GateError):
    status_code = 409
    code = "conflict"
    message = "Username is not available"


class RegistrationDisabledError(GateError):
    status_code = 403
    code = "registration_disabled"
    message = "Registration disabled"


class NotFoundError(GateError):
    status_code = 404
    code = "not_found"
    message = "Not found"


class InternalError(GateError):
    """Unexpected store or crypto failure. Detail goes to the log, not the caller."""
