from fastapi.testclient import TestClient

from easyprop.core.config import settings
from easyprop.db.base import get_db
from easyprop.main import app


def test_health_check(anonymous_client):
    response = anonymous_client.get("/api/v1/health/")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": settings.PROJECT_NAME}


def test_detailed_health_check(anonymous_client, mocker):
    mocker.patch("easyprop.api.endpoints.health.check_connection", return_value=True)

    response = anonymous_client.get("/api/v1/health/detailed")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["components"]["database"] == "connected"
    assert set(data["components"]) == {"database", "cache", "storage", "email", "auth"}


def test_detailed_health_check_degraded(anonymous_client, mocker):
    mocker.patch("easyprop.api.endpoints.health.check_connection", return_value=False)

    data = anonymous_client.get("/api/v1/health/detailed").json()

    assert data["status"] == "degraded"
    assert data["components"]["database"] == "unavailable"


def test_unhandled_errors_return_structured_500(db, mocker):
    mocker.patch("easyprop.api.endpoints.health.check_connection", side_effect=RuntimeError("boom"))
    app.dependency_overrides[get_db] = lambda: db
    try:
        response = TestClient(app, raise_server_exceptions=False).get("/api/v1/health/detailed")
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 500
    assert response.json()["detail"]["error_code"] == "INTERNAL_SERVER_ERROR"
