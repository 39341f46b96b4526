"""
tests/conftest.py -- Shared test fixtures for SecurePay Gate tests.

This module provides:
  - make_settings(): Settings tuned for tests (cheap bcrypt, no throttle delay)
  - _make_test_stores(): isolated in-memory DBs for credentials + payments
  - gate_client / closed_gate_client: module-scoped TestClients, registration
    enabled and disabled respectively
  - client / closed_client: the same clients with throttle and rate-limit
    counters cleared before every test
  - slow_client: a per-test client whose throttle delay is real
  - issue_token: registers a fresh account on `client` and returns its token

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker
thread. The named URI format (file:name?mode=memory&cache=shared&uri=true)
shares one in-memory instance across all connections in the same process.

The DEBUG env var must be set before any core import so a bare Settings()
never raises for a missing SECRET_KEY.
"""

from __future__ import annotations

import os
from collections.abc import Generator

# CRITICAL: Set DEBUG before any core/auth import so Settings() can
# auto-generate SECRET_KEY in dev mode instead of raising ValueError.
os.environ.setdefault("DEBUG", "true")

import pytest
from fastapi.testclient import TestClient

from api.limiter import limiter
from api.main import create_app
from auth.store import CredentialStore
from core.config import Settings
from payments.store import PaymentStore

TEST_SECRET_KEY = "test-secret-key-that-is-long-enough-for-hs256"
STRONG_PASSWORD = "Tr0ub4dor&3!"


def make_settings(**overrides) -> Settings:
    """Settings for tests: bcrypt at its minimum cost and no throttle sleep."""
    values = {
        "secret_key": TEST_SECRET_KEY,
        "bcrypt_rounds": 4,
        "throttle_delay_ms": 0,
        "registration_enabled": True,
    }
    values.update(overrides)
    return Settings(**values)


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[CredentialStore, PaymentStore]:
    """Create isolated named shared-memory SQLite stores for test isolation.

    Args:
        db_suffix: Unique string appended to the DB name so test modules
                   don't share state (e.g. 'open', 'closed').
    """
    auth_url = f"sqlite:///file:test_auth_{db_suffix}?mode=memory&cache=shared&uri=true"
    payments_url = f"sqlite:///file:test_payments_{db_suffix}?mode=memory&cache=shared&uri=true"
    return CredentialStore(auth_url), PaymentStore(payments_url)


def _reset_counters(client: TestClient) -> None:
    client.app.state.throttle.reset()
    limiter.reset()


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def gate_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient for an app with registration enabled.

    The stores are named after the requesting module so each test module
    starts from an empty database.
    """
    credentials, payments = _make_test_stores(f"open_{request.module.__name__}")
    app = create_app(make_settings(), credential_store=credentials, payment_store=payments)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
    credentials.close()
    payments.close()


@pytest.fixture(scope="module")
def closed_gate_client(request) -> Generator[TestClient, None, None]:
    """Yield a TestClient for an app with registration disabled (the default)."""
    credentials, payments = _make_test_stores(f"closed_{request.module.__name__}")
    app = create_app(
        make_settings(registration_enabled=False),
        credential_store=credentials,
        payment_store=payments,
    )
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
    credentials.close()
    payments.close()


@pytest.fixture
def client(gate_client: TestClient) -> TestClient:
    """gate_client with throttle buckets and route limits cleared.

    Every TestClient request comes from the same source address, so without
    the reset the throttle would start blocking a few tests into a module.
    """
    _reset_counters(gate_client)
    return gate_client


@pytest.fixture
def closed_client(closed_gate_client: TestClient) -> TestClient:
    _reset_counters(closed_gate_client)
    return closed_gate_client


@pytest.fixture
def slow_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient whose throttle really sleeps (200ms) from the 4th attempt."""
    credentials, payments = _make_test_stores("slow")
    app = create_app(make_settings(throttle_delay_ms=200), credential_store=credentials, payment_store=payments)
    with TestClient(app, raise_server_exceptions=True) as client:
        limiter.reset()
        yield client
    credentials.close()
    payments.close()


@pytest.fixture
def issue_token(client: TestClient):
    """Return a function that registers username, logs in, and returns the token."""

    def _issue(username: str, password: str = STRONG_PASSWORD) -> str:
        resp = client.post("/auth/register", json={"username": username, "password": password})
        assert resp.status_code == 201, resp.text
        resp = client.post("/auth/login", json={"username": username, "password": password})
        assert resp.status_code == 200, resp.text
        return resp.json()["token"]

    return _issue
