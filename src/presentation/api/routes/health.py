"""Health check endpoints for monitoring and orchestration."""

from typing import Annotated

from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, status

from src.container import Container
from src.infrastructure.cache.redis_cache import RedisCache
from src.infrastructure.config import Settings
from src.infrastructure.workers.pool import PoolState, WorkerPool
from src.presentation.schemas.check import HealthResponse


router = APIRouter(tags=["health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health Check",
    description="""
Check if the API and its dependencies are operational.

This endpoint reports on:
- Application status (unhealthy when the worker pool is not running)
- Redis connectivity (`disabled` when caching is turned off)
- Worker pool state, queue depth and task counters
    """,
)
@inject
async def health_check(
    cache: Annotated[RedisCache, Depends(Provide[Container.cache])],
    worker_pool: Annotated[WorkerPool, Depends(Provide[Container.worker_pool])],
    settings: Annotated[Settings, Depends(Provide[Container.config])],
) -> HealthResponse:
    """Health check endpoint using DI container.

    Args:
        cache: Injected Redis cache from DI container
        worker_pool: Injected background worker pool
        settings: Application settings

    Returns:
        Health status including dependency states
    """
    if not settings.cache_enabled:
        redis_status = "disabled"
    else:
        redis_status = "healthy" if await cache.health_check() else "unhealthy"

    return HealthResponse(
        status="healthy" if worker_pool.state is PoolState.RUNNING else "unhealthy",
        version=settings.app_version,
        environment=settings.app_env,
        redis=redis_status,
        worker_pool=worker_pool.get_metrics(),
    )


@router.get(
    "/",
    status_code=status.HTTP_200_OK,
    summary="API Root",
)
async def root() -> dict[str, str]:
    """Root endpoint providing API information and navigation links."""
    return {
        "message": "Welcome to basic-api",
        "docs": "/docs",
        "health": "/health",
    }
