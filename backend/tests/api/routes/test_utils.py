"""Tests for /api/utils routes (liveness and health-check)."""

from unittest.mock import patch

from fastapi.testclient import TestClient


def test_liveness(client: TestClient) -> None:
    r = client.get("/api/utils/liveness/")
    assert r.status_code == 200
    assert r.json() is True


def test_health_check_returns_200_when_ready(client: TestClient) -> None:
    """GET /health-check/ returns 200 with true when the database and routes are up."""
    r = client.get("/api/utils/health-check/")
    assert r.status_code == 200
    assert r.json() is True


def test_health_check_returns_503_when_readiness_fails(client: TestClient) -> None:
    with patch(
        "tenantgate.api.routes.utils.readiness_check",
        return_value=(False, ["database"]),
    ):
        r = client.get("/api/utils/health-check/")
    assert r.status_code == 503
    data = r.json()
    assert data["success"] is False
    assert data["data"] == ["database"]


def test_health_check_reports_database_failure(client: TestClient) -> None:
    with patch("tenantgate.core.health.check_database", return_value=False):
        r = client.get("/api/utils/health-check/")
    assert r.status_code == 503
    assert "database" in r.json()["data"]


def test_pass_through_exception_handlers() -> None:
    from fastapi.exceptions import RequestValidationError

    from tenantgate.main import app

    assert Exception in app.exception_handlers
    # Pass-through routes take no parameters; FastAPI's default 422 handler stays
    assert app.exception_handlers[RequestValidationError].__module__.startswith("fastapi")
