"""Dependency injection container configuration."""

from dependency_injector import containers, providers

from src.external.http_client import HttpClient
from src.infrastructure.cache.redis_cache import RedisCache
from src.infrastructure.config import get_settings
from src.infrastructure.workers.pool import WorkerPool


class Container(containers.DeclarativeContainer):
    """Application dependency injection container.

    Clients are built from settings and owned here instead of living in
    module globals, so tests can override any of them per app instance.
    """

    wiring_config = containers.WiringConfiguration(
        modules=[
            "src.presentation.api.routes.check",
            "src.presentation.api.routes.health",
        ]
    )

    # Configuration
    config = providers.Singleton(get_settings)

    # Infrastructure
    cache = providers.Singleton(RedisCache, settings=config)
    worker_pool = providers.Singleton(
        WorkerPool,
        capacity=config.provided.worker_pool_size,
    )

    # External Services
    http_client = providers.Singleton(HttpClient, settings=config)
