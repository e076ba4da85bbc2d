"""
Redis caching service for event listings.

What we cache:
  - Event listing responses (paginated, JSON-serialized), one entry per
    filter combination.
  - Key pattern: "events:list:status={s}&from={d}&to={d}&page={p}&size={n}"

Invalidation:
  - Any event create/update/delete/status change, and any reservation
    transition that moves seats, deletes every "events:list:*" key.
  - TTL-based expiry as safety net.

Single events are never cached: reservation checks need the live counter.

Redis is advisory. Every failure is logged and treated as a miss, so the
API keeps working (uncached) when Redis is down or disabled.
"""

import json
from datetime import datetime
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from booknest.core.config import get_settings
from booknest.core.logging import get_logger
from booknest.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

EVENT_LIST_PREFIX = "events:list:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or unreachable."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        client = redis.from_url(
            settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            retry_on_timeout=True,
        )
        try:
            await client.ping()
        except (RedisError, OSError) as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        _redis_client = client
        logger.info("redis_connected", url=settings.REDIS_URL)

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def make_event_list_key(
    status: Optional[str],
    start_date: Optional[datetime],
    end_date: Optional[datetime],
    page: int,
    page_size: int,
) -> str:
    start = start_date.isoformat() if start_date else ""
    end = end_date.isoformat() if end_date else ""
    return (
        f"{EVENT_LIST_PREFIX}status={status or ''}&from={start}&to={end}"
        f"&page={page}&size={page_size}"
    )


async def get_cached_events(key: str) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
    except RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        record_cache_operation("get", "error")
        return None

    if data:
        logger.debug("cache_hit", key=key)
        record_cache_operation("get", "hit")
        return json.loads(data)

    logger.debug("cache_miss", key=key)
    record_cache_operation("get", "miss")
    return None


async def set_cached_events(key: str, data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
        record_cache_operation("set", "ok")
    except RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))
        record_cache_operation("set", "error")


async def invalidate_event_cache() -> None:
    """Delete all cached event listings (SCAN over the key prefix)."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{EVENT_LIST_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
        record_cache_operation("invalidate", "ok")
    except RedisError as e:
        logger.error("cache_invalidation_error", error=str(e))
        record_cache_operation("invalidate", "error")


async def get_cache_stats() -> dict:
    """Get Redis cache statistics for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled"}

    try:
        info = await client.info("stats")
    except RedisError as e:
        return {"status": "error", "error": str(e)}

    hits = info.get("keyspace_hits", 0)
    misses = info.get("keyspace_misses", 0)
    return {
        "status": "connected",
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / max(hits + misses, 1) * 100, 2),
    }
