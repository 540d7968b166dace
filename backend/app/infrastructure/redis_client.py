"""
Shared async Redis client for the listing cache and the realtime relay.
Redis is advisory: callers get None when it is disabled or unreachable
and carry on without it.

After a failed connect, get_redis() returns None without trying again
until REDIS_RETRY_SECONDS have passed, so an outage does not add a
connect timeout to every request.
"""

import time
from typing import Optional

import redis.asyncio as redis

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import redis_connection_errors

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None
_retry_after: float = 0.0


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or down."""
    global _redis_client, _retry_after

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        if time.monotonic() < _retry_after:
            return None

        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        try:
            await client.ping()
        except redis.RedisError as e:
            _retry_after = time.monotonic() + settings.REDIS_RETRY_SECONDS
            redis_connection_errors.inc()
            logger.error(
                "redis_connection_failed",
                error=str(e),
                retry_in_seconds=settings.REDIS_RETRY_SECONDS,
            )
            await client.aclose()
            return None
        _redis_client = client
        _retry_after = 0.0
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None
