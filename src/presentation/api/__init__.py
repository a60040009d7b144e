"""FastAPI application factory and configuration."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from starlette.concurrency import run_in_threadpool

from src.container import Container
from src.infrastructure.config import get_settings
from src.infrastructure.logging.config import configure_logging, get_logger
from src.infrastructure.telemetry import configure_opentelemetry, instrument_fastapi
from src.presentation.api.middleware.cache_control import NoCacheHeaderMiddleware
from src.presentation.api.middleware.error_handling import setup_exception_handlers
from src.presentation.api.middleware.logging import RequestLoggerMiddleware
from src.presentation.api.middleware.request_context import RequestIDMiddleware
from src.presentation.api.routes import api_router


logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    """Application lifespan events."""
    container: Container = app.state.container
    settings = container.config()

    # Startup
    logger.info("application_startup", app_name=app.title, version=app.version)

    try:
        await container.cache().connect()
        logger.info("cache_initialized")
    except Exception as e:
        logger.error("cache_initialization_failed", error=str(e))

    container.worker_pool().start()

    yield

    # Shutdown: drain queued background tasks before closing clients they may use
    await run_in_threadpool(
        container.worker_pool().shutdown, wait=True, timeout=settings.shutdown_timeout
    )

    try:
        await container.http_client().close()
    except Exception as e:
        logger.error("http_client_close_failed", error=str(e))

    try:
        await container.cache().disconnect()
        logger.info("cache_disconnected")
    except Exception as e:
        logger.error("cache_disconnect_failed", error=str(e))

    logger.info("application_shutdown")


def create_app(request_logger: Any | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        request_logger: Logger for per-request ``request_completed`` events;
            defaults to the logging middleware's module logger

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    # Configure OpenTelemetry (before logging)
    configure_opentelemetry(settings)

    # Configure logging (with trace context)
    configure_logging(settings)

    # Create and wire dependency injection container
    container = Container()
    container.wire(
        modules=[
            "src.presentation.api.routes.check",
            "src.presentation.api.routes.health",
        ]
    )

    tags_metadata = [
        {
            "name": "health",
            "description": "Health check and monitoring endpoints.",
        },
        {
            "name": "check",
            "description": """
Service check endpoints.

- **echo**: returns the request body unchanged
- **status**: empty 200 response for probes
- **info**: running version
- **view**: Redis-backed view counter
            """,
        },
    ]

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
# basic-api

A minimal HTTP API scaffold.

### Observability
- **Request Logging**: one JSON record per request with method, client, URI,
  status, timing and decoded JSON/XML request and response bodies
- **Request IDs**: `X-Request-ID` propagated or generated per request
- **OpenTelemetry**: optional distributed tracing with OTLP export

### Background Work
- **Worker Pool**: bounded FIFO queue drained by a single background worker
        """,
        openapi_tags=tags_metadata,
        lifespan=lifespan,
    )

    # Store container in app state for access if needed
    app.state.container = container

    # Instrument FastAPI with OpenTelemetry
    if settings.otel_enabled:
        instrument_fastapi(app)

    # Setup exception handlers
    setup_exception_handlers(app)

    # Setup middleware (last added runs first):
    # RequestID -> NoCacheHeader -> RequestLogger -> routes
    app.add_middleware(RequestLoggerMiddleware, logger=request_logger)
    app.add_middleware(NoCacheHeaderMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Include routers
    app.include_router(api_router)

    return app
