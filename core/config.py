"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for SecurePay Gate happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. secret_key -> SECRET_KEY, registration_enabled -> REGISTRATION_ENABLED).

  Read once, then immutable: the app factory copies these values into the
      objects it builds at startup (TokenIssuer, PasswordHasher, ThrottleGuard,
      AuthService). Nothing consults the environment per request.

Security notes:
  SECRET_KEY shorter than 32 chars is rejected outright. JWT signing relies on
  key entropy -- a short key weakens every token.

  In production mode (DEBUG not set or false), a missing SECRET_KEY is a hard
  startup failure. Rotating SECRET_KEY invalidates every outstanding token.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or payments/.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("securepay.config")

_DEFAULT_DB_URL = f"sqlite:///{Path(__file__).resolve().parent.parent / 'securepay.db'}"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file. The model_validator enforces
    production-safety rules at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Core
    # ------------------------------------------------------------------

    debug: bool = False
    # Empty string is the sentinel for "not configured". The model_validator
    # below either generates a dev key or raises, so callers never see "".
    secret_key: str = ""
    database_url: str = _DEFAULT_DB_URL

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    token_expire_seconds: int = Field(default=8 * 3600, gt=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)
    # Off unless explicitly enabled, matching the staff-only deployment model.
    registration_enabled: bool = False
    # Only read by seed.py; the running service never uses it.
    seed_password: str = ""

    # ------------------------------------------------------------------
    # Throttling
    # ------------------------------------------------------------------

    throttle_window_seconds: int = Field(default=60, gt=0)
    throttle_delay_after: int = Field(default=3, ge=0)
    throttle_delay_ms: int = Field(default=500, ge=0)
    throttle_block_after: int = Field(default=5, ge=1)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    cors_origins: list[str] = ["https://localhost:5173"]
    allowed_hosts: list[str] = ["localhost", "127.0.0.1", "*.localhost", "testserver"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Enforce the SECRET_KEY policy.

        Dev mode (DEBUG=true): auto-generate a random key with a warning.
            Tokens will not survive restart -- acceptable for local dev.

        Production mode: refuse to start if SECRET_KEY is missing.

        Both modes: reject keys shorter than 32 characters.
        """
        if not self.secret_key:
            if self.debug:
                self.secret_key = secrets.token_hex(32)
                logger.warning("Using auto-generated SECRET_KEY. Tokens will not persist across restarts.")
            else:
                raise ValueError(
                    "SECRET_KEY is required in production mode. "
                    "Set SECRET_KEY in your environment or .env file. "
                    "To run in development mode, set DEBUG=true."
                )
        if len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        return self

    @model_validator(mode="after")
    def validate_throttle_thresholds(self) -> "Settings":
        if self.throttle_block_after < self.throttle_delay_after:
            raise ValueError("THROTTLE_BLOCK_AFTER must not be lower than THROTTLE_DELAY_AFTER.")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables, or construct Settings(...)
    directly and hand it to api.main.create_app().
    """
    return Settings()
