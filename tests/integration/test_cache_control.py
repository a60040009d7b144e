"""Integration tests for NoCacheHeaderMiddleware."""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from src.presentation.api.middleware.cache_control import NO_CACHE_HEADERS, NoCacheHeaderMiddleware


@pytest.fixture
def client() -> TestClient:
    """Create test client for an app that tries to enable caching."""
    app = FastAPI()
    app.add_middleware(NoCacheHeaderMiddleware)

    @app.get("/cacheable")
    async def cacheable() -> JSONResponse:
        return JSONResponse({"ok": True}, headers={"Cache-Control": "public, max-age=3600"})

    @app.get("/missing")
    async def missing() -> None:
        raise HTTPException(status_code=404, detail="gone")

    return TestClient(app)


class TestNoCacheHeaders:
    """Test every response forbids caching."""

    @pytest.mark.parametrize(("header", "value"), list(NO_CACHE_HEADERS.items()))
    def test_sets_no_cache_headers(self, client: TestClient, header: str, value: str) -> None:
        """Test each no-cache header is present with its exact value."""
        response = client.get("/cacheable")

        assert response.headers[header] == value

    def test_overrides_handler_cache_control(self, client: TestClient) -> None:
        """Test handler-supplied Cache-Control is replaced, not duplicated."""
        response = client.get("/cacheable")

        assert response.headers.get_list("Cache-Control") == ["no-cache,no-store,must-revalidate"]

    def test_applies_to_error_responses(self, client: TestClient) -> None:
        """Test error responses are not cacheable either."""
        response = client.get("/missing")

        assert response.status_code == 404
        assert response.headers["Pragma"] == "no-cache"
        assert response.headers["Expires"] == "0"
