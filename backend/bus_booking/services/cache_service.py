"""
Redis cache for route lookups.

CACHING STRATEGY
================

What we cache:
  - The trips found for one (origin, destination, date) lookup, JSON-serialized
  - Route key pattern: "trips:route:{origin_key}|{destination_key}|{date}"
  - Each route key has a generation counter ("{route_key}:gen") and the
    trip list lives under "{route_key}:v{generation}"

Why:
  - Route lookups are the most frequent read operation
  - Trip records are immutable once created, so a cached list only goes
    stale when a new trip is added on that route and date

Invalidation strategy:
  - On trip creation: bump the route's generation counter
  - A lookup reads the generation before querying storage and writes its
    result under that generation. If a trip is added in between, the write
    lands on a generation no reader asks for any more, so a list read
    before the insert can never be served after it
  - TTL-based expiry as safety net (REDIS_CACHE_TTL)

Why NOT cache seat availability:
  - Search must show seats consistent with the ledger at read time
  - Availability is always joined from the ledger after the cache lookup

Redis errors and undecodable entries never fail a request: the caller
falls back to storage.
"""

import json
from datetime import date
from typing import Optional

from redis.exceptions import RedisError

from bus_booking.core.config import get_settings
from bus_booking.core.logging import get_logger
from bus_booking.core.metrics import record_cache_operation
from bus_booking.domain.entities import Trip
from bus_booking.infrastructure.redis_client import get_redis

logger = get_logger(__name__)

# Generation counters outlive any cached list by a wide margin
GENERATION_TTL = 7 * 24 * 3600


def make_route_key(origin_key: str, destination_key: str, service_date: date) -> str:
    return f"trips:route:{origin_key}|{destination_key}|{service_date.isoformat()}"


def _generation_key(route_key: str) -> str:
    return f"{route_key}:gen"


async def current_route_key(route_key: str) -> Optional[str]:
    """
    Cache key for the route's current generation.

    Returns None when the cache is disabled or unreachable. Read it before
    querying storage and pass it to set_cached_route afterwards.
    """
    client = await get_redis()
    if not client:
        return None

    try:
        generation = int(await client.get(_generation_key(route_key)) or 0)
    except (RedisError, ValueError) as e:
        logger.error("cache_get_error", key=route_key, error=str(e))
        record_cache_operation("get", "error")
        return None
    return f"{route_key}:v{generation}"


async def get_cached_route(key: str) -> Optional[list[Trip]]:
    """Cached trips for a route lookup, or None on miss/disabled/error."""
    client = await get_redis()
    if not client:
        return None

    try:
        data = await client.get(key)
        if data is None:
            logger.debug("cache_miss", key=key)
            record_cache_operation("get", "miss")
            return None
        trips = [Trip.from_dict(item) for item in json.loads(data)]
    except RedisError as e:
        logger.error("cache_get_error", key=key, error=str(e))
        record_cache_operation("get", "error")
        return None
    except (ValueError, KeyError, TypeError, ArithmeticError) as e:
        logger.error("cache_decode_error", key=key, error=str(e))
        record_cache_operation("get", "error")
        return None

    logger.debug("cache_hit", key=key)
    record_cache_operation("get", "hit")
    return trips


async def set_cached_route(key: str, trips: list[Trip]) -> None:
    client = await get_redis()
    if not client:
        return

    ttl = get_settings().REDIS_CACHE_TTL
    try:
        await client.setex(key, ttl, json.dumps([t.to_dict() for t in trips]))
        logger.debug("cache_set", key=key, ttl=ttl)
        record_cache_operation("set", "ok")
    except RedisError as e:
        logger.error("cache_set_error", key=key, error=str(e))
        record_cache_operation("set", "error")


async def invalidate_route(route_key: str) -> None:
    """Move the route to a new generation; older cached lists are never read again."""
    client = await get_redis()
    if not client:
        return

    generation_key = _generation_key(route_key)
    try:
        generation = await client.incr(generation_key)
        await client.expire(generation_key, GENERATION_TTL)
        logger.info("cache_invalidated", key=route_key, generation=generation)
        record_cache_operation("invalidate", "ok")
    except RedisError as e:
        logger.error("cache_invalidation_error", key=route_key, error=str(e))
        record_cache_operation("invalidate", "error")


async def get_cache_stats() -> dict:
    """Redis cache statistics for the health endpoint."""
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
    except RedisError as e:
        return {"status": "error", "error": str(e)}
