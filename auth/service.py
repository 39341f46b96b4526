"""
auth/service.py -- Registration and login orchestration.

AuthService glues the leaf components together in the order every auth
request follows: validation -> credential store (+ hasher) -> token issuer.
Throttling happens one step earlier, at the HTTP boundary, because it keys on
the source address.

It is constructed once at startup from Settings (see api/main.py). In
particular registration_enabled is a constructor argument: the service never
reads the environment per call.

Security:
  Generic failures. Unknown username, wrong password, and a login payload that
      fails the shape check all raise the same AuthError("Invalid credentials").
      Nothing in the response tells an attacker which one happened.

  Timing equalization. login() always performs exactly one bcrypt verify.
      When the username is unknown it verifies against a dummy hash computed
      at construction with the same cost, so response time does not reveal
      whether the account exists.

  No plaintext in logs. Log lines name the username at most, never a secret.

Layer rule: no imports from api/ or payments/.
"""

from __future__ import annotations

import logging

from auth.hashing import PasswordHasher
from auth.models import Claims, CredentialRecord, LoginResult, Role
from auth.store import CredentialStore
from auth.tokens import TokenIssuer
from core import validation
from core.errors import AuthError, RegistrationDisabledError, ValidationError

logger = logging.getLogger("securepay.auth")

_DUMMY_SECRET = "securepay_timing_dummy"


class AuthService:
    """Register and authenticate staff credentials.

    Usage:
        service = AuthService(store, PasswordHasher(12), TokenIssuer(key), registration_enabled=False)
        result = service.login("alice_01", "Tr0ub4dor&3!")
        claims = service.authenticate_token(result.token)
    """

    def __init__(
        self,
        store: CredentialStore,
        hasher: PasswordHasher,
        issuer: TokenIssuer,
        registration_enabled: bool = False,
    ) -> None:
        self.store = store
        self.hasher = hasher
        self.issuer = issuer
        self.registration_enabled = registration_enabled
        # Computed once so the first unknown-user login is not measurably
        # slower than later ones.
        self._dummy_hash = hasher.hash(_DUMMY_SECRET)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, identity: str, secret: str) -> CredentialRecord:
        """Create a new EMPLOYEE credential.

        Raises:
            RegistrationDisabledError -- registration is switched off; nothing
                else is evaluated and the store is not touched.
            ValidationError -- username shape or password strength.
            DuplicateIdentityError -- the username is taken (store-enforced).
        """
        if not self.registration_enabled:
            raise RegistrationDisabledError()

        validation.require("username", identity)
        validation.require("password_strong", secret, label="password")

        record = self.store.create(identity, self.hasher.hash(secret), Role.EMPLOYEE)
        logger.info("Registered account %s (id=%s)", record.identity, record.id)
        return record

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------

    def _check_credentials(self, identity: str, secret: str) -> CredentialRecord | None:
        try:
            validation.require("username", identity)
            validation.require("password", secret)
        except ValidationError:
            # Still pay for one bcrypt round so malformed input is not a
            # faster path than a real mismatch.
            self.hasher.verify(secret if isinstance(secret, str) else "", self._dummy_hash)
            return None

        record = self.store.find_by_identity(identity)
        if record is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self.hasher.verify(secret, self._dummy_hash)
            return None
        if not self.hasher.verify(secret, record.secret_hash):
            return None
        return record

    def login(self, identity: str, secret: str) -> LoginResult:
        """Verify a username/password pair and mint an access token.

        Raises AuthError for every failure, with the same message.
        """
        record = self._check_credentials(identity, secret)
        if record is None:
            logger.info("Failed login attempt")
            raise AuthError()

        if self.hasher.needs_rehash(record.secret_hash):
            logger.info("Account %s has a hash below the current work factor", record.identity)

        token = self.issuer.issue(subject=str(record.id), username=record.identity, role=record.role)
        logger.info("Issued token for %s", record.identity)
        return LoginResult(
            token=token,
            username=record.identity,
            role=record.role,
            expires_in=self.issuer.lifetime_seconds,
        )

    # ------------------------------------------------------------------
    # Protected requests
    # ------------------------------------------------------------------

    def authenticate_token(self, token: str) -> Claims:
        """Verify a bearer token. Raises InvalidTokenError or TokenExpiredError."""
        return self.issuer.verify(token)
