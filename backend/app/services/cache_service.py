"""
Redis caching service for public event listings.

CACHING STRATEGY
================

What we cache:
  - Public event listing responses (paginated, JSON-serialized)
  - Cache key pattern: "events:list:page={page}&size={size}&status={status}"

Invalidation:
  - On catalog changes (admin create/update/status/delete)
  - On a successful confirmation (available_seats changed)
  - TTL-based expiry as safety net (5 minutes)

  All listing keys share the "events:list:" prefix so they can be SCANned
  and deleted together.

Individual events are never cached: the event page shows the live seat
count, and the reservation path always reads the database.
"""

import json
from typing import Optional

import redis.asyncio as redis

from app.core.config import get_settings
from app.core.logging import get_logger
from app.core.metrics import record_cache_operation
from app.infrastructure.redis_client import get_redis

logger = get_logger(__name__)
settings = get_settings()

EVENT_LIST_PREFIX = "events:list:"


def _make_event_list_key(page: int, page_size: int, status: str) -> str:
    return f"{EVENT_LIST_PREFIX}page={page}&size={page_size}&status={status}"


async def get_cached_events(page: int, page_size: int, status: str) -> Optional[dict]:
    """Retrieve cached event list response."""
    client = await get_redis()
    if not client:
        return None

    key = _make_event_list_key(page, page_size, status)
    try:
        data = await client.get(key)
        if data:
            record_cache_operation("get", hit=True)
            logger.debug("cache_hit", key=key)
            return json.loads(data)
        record_cache_operation("get", hit=False)
        logger.debug("cache_miss", key=key)
    except redis.RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_events(page: int, page_size: int, status: str, data: dict) -> None:
    """Cache event list response with TTL."""
    client = await get_redis()
    if not client:
        return

    key = _make_event_list_key(page, page_size, status)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except redis.RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_event_cache() -> None:
    """Invalidate all cached event listings."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{EVENT_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except redis.RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for monitoring."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
        hits = info.get("keyspace_hits", 0)
        misses = info.get("keyspace_misses", 0)
        return {
            "status": "connected",
            "hits": hits,
            "misses": misses,
            "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
        }
    except redis.RedisError as e:
        return {"status": "error", "error": str(e)}
