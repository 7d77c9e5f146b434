"""Read-only access to the shared Redis cache.

The cache is populated by the data API's own prefetch jobs; this service
never writes to it. Values are JSON documents; they are read as raw bytes and
decoded here, so one undecodable value only makes its own key a miss.
"""

import json
from typing import Any, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from crm_assistant.core.config import get_settings
from crm_assistant.observability import get_logger
from crm_assistant.observability.constants import LogEvents

logger = get_logger(__name__)

# Global Redis client instance (singleton)
_redis_client: Optional[Redis] = None


def get_redis_client() -> Redis:
    """Get or create the Redis client instance.

    Creating the client does not connect; the pool connects on first use.
    """
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = Redis.from_url(
            settings.redis_url,
            socket_timeout=settings.cache_timeout,
            socket_connect_timeout=settings.cache_timeout,
        )
    return _redis_client


async def close_redis_client() -> None:
    """Close the Redis client connection.

    Should be called during application shutdown.
    """
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None


async def check_redis_health() -> bool:
    """Return True if Redis is reachable and answering PING."""
    try:
        await get_redis_client().ping()
        return True
    except (RedisError, OSError):
        return False


class CacheStore:
    """JSON view over the Redis cache where every problem reads as a miss."""

    def __init__(self, redis: Redis):
        self.redis = redis

    async def get(self, key: str) -> Any | None:
        """Return the decoded value stored under ``key``, or None."""
        values = await self.get_many([key])
        return values[0]

    async def get_many(self, keys: list[str]) -> list[Any | None]:
        """
        Read several keys in one round-trip.

        Args:
            keys: Keys to read

        Returns:
            Decoded values in the same order as ``keys``; absent, malformed
            or unreadable entries are None. An unreachable store yields all
            None.
        """
        if not keys:
            return []

        try:
            raw_values = await self.redis.mget(keys)
        except (RedisError, OSError) as e:
            logger.warning(LogEvents.CACHE_UNAVAILABLE, keys=keys, error=str(e))
            return [None] * len(keys)

        return [self._decode(key, raw) for key, raw in zip(keys, raw_values)]

    def _decode(self, key: str, raw: bytes | None) -> Any | None:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:  # includes UnicodeDecodeError
            logger.warning(LogEvents.CACHE_MALFORMED, key=key)
            return None
