from datetime import datetime, timedelta

from qsuite.models.schemas import InteractionLogEntry


def test_health_check(test_client):
    """Test health check endpoint"""
    response = test_client.get("/api/v1/health")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] == "healthy"
    assert "timestamp" in data
    assert "version" in data
    assert "environment" in data


def test_readiness_check(test_client):
    """Test readiness check endpoint"""
    response = test_client.get("/api/v1/health/readiness")
    assert response.status_code == 200

    data = response.json()
    assert data["status"] in ("ready", "not_ready")
    assert data["checks"]["database"] == "ok"
    assert set(data["checks"]) == {"database", "ai_provider", "auth"}
    assert "timestamp" in data


def test_openapi_lists_ai_routes(test_client):
    paths = test_client.get("/api/v1/openapi.json").json()["paths"]

    assert "/api/v1/ai/generate-tests" in paths
    assert "/api/v1/ai/chat" in paths
    assert "/api/v1/test-cases/bulk" in paths


def test_timestamps_are_timezone_aware(test_client):
    data = test_client.get("/api/v1/health").json()

    timestamp = datetime.fromisoformat(data["timestamp"].replace("Z", "+00:00"))
    assert timestamp.utcoffset() == timedelta(0)
    assert InteractionLogEntry(user_id="u", message="m", response="r", context_type="c").created_at.tzinfo is not None
