"""
tests/test_health.py -- Integration tests for GET /health and app-wide behaviour.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'ok' against the test store
  - No authentication required, and not subject to the auth throttle
  - Unknown routes come back in the same error envelope
"""

from __future__ import annotations

from api.main import __version__


def test_health_returns_200_with_components(client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == __version__
    assert data["components"]["app"] == "ok"
    assert data["components"]["database"] == "ok"


def test_health_no_auth_required(client):
    """Health endpoint is accessible without any authentication headers."""
    resp = client.get("/health", headers={})
    assert resp.status_code == 200


def test_health_is_not_throttled(client):
    for _ in range(10):
        assert client.get("/health").status_code == 200


def test_unknown_route_uses_error_envelope(client):
    resp = client.get("/no/such/route")
    assert resp.status_code == 404
    data = resp.json()
    assert set(data) == {"error", "code", "field"}
    assert data["code"] == "http_404"
