"""Redis client wrapper with JSON values and simple metrics."""

import json
from dataclasses import dataclass
from typing import Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from src.domain.exceptions import CacheUnavailableError
from src.infrastructure.config import Settings
from src.infrastructure.logging.config import get_logger


logger = get_logger(__name__)


@dataclass
class CacheMetrics:
    """Cache performance metrics."""

    hits: int = 0
    misses: int = 0
    errors: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert metrics to dictionary."""
        return {"hits": self.hits, "misses": self.misses, "errors": self.errors}


class RedisCache:
    """Async Redis wrapper owned by the DI container.

    ``get``/``set`` degrade to a miss/False when Redis is unavailable, while
    ``incr`` raises ``CacheUnavailableError`` since callers need its result.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize Redis cache.

        Args:
            settings: Application settings
        """
        self._settings = settings
        self._client: aioredis.Redis | None = None
        self._metrics = CacheMetrics()

    @property
    def is_connected(self) -> bool:
        """Whether a client connection has been established."""
        return self._client is not None

    async def connect(self) -> None:
        """Connect to Redis; failures are logged and leave the cache disconnected."""
        if not self._settings.cache_enabled:
            logger.info("cache_disabled")
            return

        try:
            self._client = aioredis.from_url(
                self._settings.redis_url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=self._settings.redis_max_connections,
            )
            await self._client.ping()
            logger.info("redis_connected", url=self._settings.redis_url)
        except (RedisError, OSError) as e:
            logger.error("redis_connection_failed", error=str(e))
            self._client = None

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info("redis_disconnected")

    async def health_check(self) -> bool:
        """Ping Redis.

        Returns:
            True if connected and responsive, False otherwise
        """
        if not self._client:
            return False
        try:
            return bool(await self._client.ping())
        except (RedisError, OSError) as e:
            logger.warning("redis_health_check_failed", error=str(e))
            return False

    async def get(self, key: str) -> Any | None:
        """Get a JSON value.

        Args:
            key: Cache key

        Returns:
            Decoded value if found, None on miss or error
        """
        if not self._client:
            self._metrics.errors += 1
            return None

        try:
            raw = await self._client.get(key)
        except (RedisError, OSError) as e:
            self._metrics.errors += 1
            logger.error("cache_get_error", key=key, error=str(e))
            return None

        if raw is None:
            self._metrics.misses += 1
            logger.debug("cache_miss", key=key)
            return None

        self._metrics.hits += 1
        try:
            return json.loads(raw)
        except ValueError:
            # Values written by other clients (e.g. INCR counters) may not be JSON
            return raw

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store a JSON-encoded value.

        Args:
            key: Cache key
            value: JSON-serializable value
            ttl: Time to live in seconds (optional)

        Returns:
            True if stored, False otherwise
        """
        if not self._client:
            self._metrics.errors += 1
            return False

        try:
            await self._client.set(key, json.dumps(value), ex=ttl)
        except (RedisError, OSError, TypeError) as e:
            self._metrics.errors += 1
            logger.error("cache_set_error", key=key, error=str(e))
            return False

        logger.debug("cache_set", key=key, ttl=ttl)
        return True

    async def incr(self, key: str, amount: int = 1) -> int:
        """Atomically increment an integer counter.

        Raises:
            CacheUnavailableError: If Redis is not connected or the command fails
        """
        if not self._client:
            raise CacheUnavailableError("Redis is not connected")

        try:
            return int(await self._client.incrby(key, amount))
        except (RedisError, OSError) as e:
            self._metrics.errors += 1
            logger.error("cache_incr_error", key=key, error=str(e))
            raise CacheUnavailableError(f"Failed to increment {key}", details={"key": key}) from e

    def get_metrics(self) -> dict[str, Any]:
        """Get current cache metrics."""
        return self._metrics.to_dict()
