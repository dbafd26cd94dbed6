"""
Redis caching service for room availability lookups.

CACHING STRATEGY
================

What we cache:
  - Responses of GET /rooms/{room_id}/availability (JSON-serialized)
  - Cache key pattern: "availability:room={room_id}:{check_in}:{check_out}"

Why:
  - Guests check the same room/date combinations repeatedly while browsing
  - The answer only changes when a booking on that room is created or
    changes status

Invalidation strategy:
  - On booking creation, cancellation, check-out, no-show: delete every key
    of that room ("availability:room={room_id}:*")
  - Short TTL as safety net (AVAILABILITY_CACHE_TTL, 60s by default)

Why this is safe:
  - The cache only serves the read-only availability endpoint. Booking
    creation never reads it; it re-checks inside its own locked transaction.
    A stale "available" answer costs the guest a 409, never a double booking.

Failure mode:
  - Redis disabled or unreachable -> every call degrades to a miss/no-op.
"""

import json
from datetime import date
from typing import Optional

import redis.asyncio as redis

from innkeeper.core.config import get_settings
from innkeeper.core.logging import get_logger
from innkeeper.core.metrics import record_cache_operation

logger = get_logger(__name__)
settings = get_settings()

_redis_client: Optional[redis.Redis] = None


async def get_redis() -> Optional[redis.Redis]:
    """Get or create Redis connection. Returns None if Redis is disabled."""
    global _redis_client

    if not settings.REDIS_ENABLED:
        return None

    if _redis_client is None:
        try:
            _redis_client = redis.from_url(
                settings.REDIS_URL,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
            )
            await _redis_client.ping()
            logger.info("redis_connected", url=settings.REDIS_URL)
        except Exception as e:
            logger.error("redis_connection_failed", error=str(e))
            _redis_client = None
            return None

    return _redis_client


async def close_redis() -> None:
    """Close Redis connection on shutdown."""
    global _redis_client
    if _redis_client:
        await _redis_client.aclose()
        _redis_client = None


def _room_prefix(room_id: int) -> str:
    return f"availability:room={room_id}:"


def _make_availability_key(room_id: int, check_in: date, check_out: date) -> str:
    return f"{_room_prefix(room_id)}{check_in.isoformat()}:{check_out.isoformat()}"


async def get_cached_availability(room_id: int, check_in: date, check_out: date) -> Optional[dict]:
    client = await get_redis()
    if not client:
        return None

    key = _make_availability_key(room_id, check_in, check_out)
    try:
        data = await client.get(key)
        record_cache_operation("get", hit=data is not None)
        if data:
            return json.loads(data)
    except Exception as e:
        logger.error("cache_get_error", key=key, error=str(e))

    return None


async def set_cached_availability(room_id: int, check_in: date, check_out: date, data: dict) -> None:
    client = await get_redis()
    if not client:
        return

    key = _make_availability_key(room_id, check_in, check_out)
    try:
        await client.setex(key, settings.AVAILABILITY_CACHE_TTL, json.dumps(data, default=str))
        record_cache_operation("set", hit=False)
    except Exception as e:
        logger.error("cache_set_error", key=key, error=str(e))


async def invalidate_room_availability(room_id: int) -> None:
    """Drop every cached availability answer for one room."""
    client = await get_redis()
    if not client:
        return

    try:
        deleted = 0
        async for key in client.scan_iter(match=f"{_room_prefix(room_id)}*", count=100):
            await client.delete(key)
            deleted += 1
        logger.info("cache_invalidated", room_id=room_id, keys_deleted=deleted)
    except Exception as e:
        logger.error("cache_invalidation_error", room_id=room_id, error=str(e))


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
    except Exception as e:
        return {"status": "error", "error": str(e)}
