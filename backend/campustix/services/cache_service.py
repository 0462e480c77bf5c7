"""
Redis cache for the public event catalog.

What we cache:
  - Paginated catalog listings (JSON), keyed by page, page size, category
    and the upcoming-only flag under the "catalog:events:" prefix

Invalidation:
  - Any publish, edit, delete or ticket purchase drops every catalog key
    (prefix SCAN), since each of them can change what a listing shows
  - TTL expiry as a safety net

What we never cache:
  - Single events, tickets and the moderation queue. Purchases and decisions
    always read the database, so the cache can only make a listing briefly
    stale, never cause an oversell.

Redis being down is not an error: every call degrades to a miss.
"""

import json
from typing import Optional

import redis.asyncio as redis
from campustix.core.config import get_settings
from campustix.core.logging import get_logger
from campustix.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

CATALOG_PREFIX = "catalog:events:"

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled or down."""
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
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            await client.aclose()
            return None
        logger.info("redis_connected", url=settings.REDIS_URL)
        _redis_client = client

    return _redis_client


async def close_redis() -> None:
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def catalog_key(page: int, page_size: int, category: Optional[str], upcoming_only: bool) -> str:
    return (
        f"{CATALOG_PREFIX}page={page}&size={page_size}"
        f"&category={category or '*'}&upcoming={upcoming_only}"
    )


async def get_cached_catalog(
    page: int,
    page_size: int,
    category: Optional[str],
    upcoming_only: bool,
) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = catalog_key(page, page_size, category, upcoming_only)
    try:
        data = await client.get(key)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))
        return None

    record_cache_operation("get", hit=data is not None)
    if data is None:
        logger.debug("cache_miss", key=key)
        return None
    logger.debug("cache_hit", key=key)
    return json.loads(data)


async def set_cached_catalog(
    page: int,
    page_size: int,
    category: Optional[str],
    upcoming_only: bool,
    data: dict,
) -> None:
    client = await get_redis()
    if not client:
        return

    key = catalog_key(page, page_size, category, upcoming_only)
    try:
        await client.setex(key, settings.REDIS_CACHE_TTL, json.dumps(data, default=str))
        record_cache_operation("set", hit=True)
        logger.debug("cache_set", key=key, ttl=settings.REDIS_CACHE_TTL)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_catalog_cache() -> None:
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{CATALOG_PREFIX}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", error=str(e))


async def get_cache_stats() -> dict:
    """Redis statistics for the health endpoint."""
    client = await get_redis()
    if not client:
        return {"status": "disabled" if not settings.REDIS_ENABLED else "unavailable"}

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
    except Exception as e:
        return {"status": "error", "error": str(e)}
