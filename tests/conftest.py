"""Global test configuration and fixtures.

Fixture Scoping Strategy:
- session: test settings (immutable)
- function: app instance, clients, mocked cache and request logger
"""

import logging
from collections.abc import AsyncGenerator, Generator
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import structlog
from dependency_injector import providers
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from src.infrastructure.config import Settings
from src.presentation.api import create_app


# ============================================================================
# Session-Scoped Fixtures
# ============================================================================


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings shared by all tests.

    Returns:
        Settings instance configured for testing
    """
    return Settings(
        app_env="testing",
        app_name="basic-api-test",
        app_version="9.9.9",
        debug=True,
        log_level="DEBUG",
        log_output="discard",
        worker_pool_size=8,
        # Cache: Disabled in tests to avoid connection issues
        cache_enabled=False,
        redis_url="redis://localhost:6379/1",
        shutdown_timeout=5,
    )


# ============================================================================
# Function-Scoped Fixtures
# ============================================================================


@pytest.fixture
def mock_cache() -> AsyncMock:
    """Create a mock Redis cache.

    Returns:
        AsyncMock: Mocked RedisCache
    """
    cache = AsyncMock()
    cache.connect = AsyncMock()
    cache.disconnect = AsyncMock()
    cache.health_check = AsyncMock(return_value=True)
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock(return_value=True)
    cache.incr = AsyncMock(return_value=1)
    cache.get_metrics = MagicMock(return_value={"hits": 0, "misses": 0, "errors": 0})
    return cache


@pytest.fixture
def request_logger() -> MagicMock:
    """Logger receiving request_completed events from the logging middleware."""
    return MagicMock()


@pytest.fixture
def app(test_settings: Settings, mock_cache: AsyncMock, request_logger: MagicMock) -> Any:
    """Create FastAPI application with mocked dependencies.

    Args:
        test_settings: Test configuration (session-scoped)
        mock_cache: Mocked cache
        request_logger: Mocked request logger

    Returns:
        FastAPI application instance with mocked dependencies
    """
    app = create_app(request_logger=request_logger)

    app.state.container.config.override(providers.Object(test_settings))
    app.state.container.cache.override(providers.Object(mock_cache))

    return app


@pytest.fixture
def client(app: Any) -> Generator[TestClient]:
    """Create test client; entering it runs the app lifespan (worker pool start/stop).

    Yields:
        TestClient: Synchronous test client
    """
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
async def async_client(app: Any) -> AsyncGenerator[AsyncClient]:
    """Create async test client (no lifespan events).

    Yields:
        AsyncClient: Async HTTP client
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def restore_logging() -> Generator[None]:
    """Close handlers installed by a test and reset structlog."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)
    structlog.reset_defaults()
