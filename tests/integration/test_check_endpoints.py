"""Integration tests for /check endpoints through the full middleware chain."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

from fastapi import status
from fastapi.testclient import TestClient

from src.domain.exceptions import CacheUnavailableError
from src.infrastructure.workers.pool import WorkerPool
from tests.helpers import logged_request


class TestEchoEndpoint:
    """Test POST /check/echo."""

    def test_echoes_json_and_logs_one_record(
        self, client: TestClient, request_logger: MagicMock
    ) -> None:
        """Test the end-to-end echo scenario.

        Arrange: App with RequestID, NoCacheHeader and RequestLogger middleware
        Act: POST {"a":1} as JSON
        Assert: Body echoed; no-cache and request id headers set;
            exactly one log record with both bodies decoded
        """
        # Act
        response = client.post(
            "/check/echo", content=b'{"a":1}', headers={"Content-Type": "application/json"}
        )

        # Assert
        assert response.status_code == status.HTTP_200_OK
        assert response.content == b'{"a":1}'
        assert response.headers["content-type"] == "application/json"
        assert response.headers["Cache-Control"] == "no-cache,no-store,must-revalidate"
        assert response.headers["Pragma"] == "no-cache"
        assert response.headers["Expires"] == "0"

        fields = logged_request(request_logger)
        assert fields["method"] == "POST"
        assert fields["uri"] == "http://testserver/check/echo"
        assert fields["status_code"] == 200
        assert fields["request_body"] == {"a": 1}
        assert fields["response_body"] == {"a": 1}
        assert fields["request_id"] == response.headers["X-Request-ID"]

    def test_echoes_xml(self, client: TestClient, request_logger: MagicMock) -> None:
        """Test XML bodies are echoed and logged as trees."""
        payload = b"<ping><seq>1</seq></ping>"

        response = client.post("/check/echo", content=payload, headers={"Content-Type": "text/xml"})

        assert response.content == payload
        assert logged_request(request_logger)["response_body"] == {"ping": {"seq": "1"}}

    def test_echo_without_content_type(self, client: TestClient) -> None:
        """Test untyped bodies are echoed as octet streams."""
        response = client.post("/check/echo", content=b"raw")

        assert response.content == b"raw"
        assert response.headers["content-type"] == "application/octet-stream"

    def test_echo_queues_audit_task(self, client: TestClient, app: Any) -> None:
        """Test each echo submits one task to the worker pool."""
        pool: WorkerPool = app.state.container.worker_pool()

        client.post("/check/echo", json={"a": 1})
        client.post("/check/echo", json={"a": 2})

        assert pool.get_metrics()["submitted"] == 2


class TestStatusAndInfo:
    """Test GET /check/status and GET /check/info."""

    def test_status_returns_empty_200(self, client: TestClient) -> None:
        """Test the probe returns no body."""
        response = client.get("/check/status")

        assert response.status_code == status.HTTP_200_OK
        assert response.content == b""

    def test_info_returns_configured_version(self, client: TestClient) -> None:
        """Test the version comes from settings."""
        response = client.get("/check/info")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"version": "9.9.9"}


class TestViewCounter:
    """Test GET /check/view."""

    def test_returns_incremented_count(self, client: TestClient, mock_cache: AsyncMock) -> None:
        """Test the counter value from Redis is returned."""
        mock_cache.incr = AsyncMock(return_value=42)

        response = client.get("/check/view")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"count": 42}
        mock_cache.incr.assert_awaited_once_with("views")

    def test_cache_unavailable_returns_503(
        self, client: TestClient, mock_cache: AsyncMock, request_logger: MagicMock
    ) -> None:
        """Test a Redis outage maps to 503 and is still logged.

        Arrange: Cache increment raises CacheUnavailableError
        Act: GET /check/view
        Assert: 503 error body; request record has status 503
        """
        # Arrange
        mock_cache.incr = AsyncMock(side_effect=CacheUnavailableError("Redis is not connected"))

        # Act
        response = client.get("/check/view")

        # Assert
        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json() == {
            "error": {
                "code": "CACHE_UNAVAILABLE",
                "message": "Redis is not connected",
                "details": None,
            }
        }
        assert logged_request(request_logger)["status_code"] == 503


class TestUnknownRoutes:
    """Test requests that match no route."""

    def test_not_found_is_logged(self, client: TestClient, request_logger: MagicMock) -> None:
        """Test 404s pass through every middleware."""
        response = client.get("/nope")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert "X-Request-ID" in response.headers
        assert logged_request(request_logger)["status_code"] == 404
