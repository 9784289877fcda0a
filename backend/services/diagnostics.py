"""Diagnostic probes behind /api/examples.

- cache_round_trip: write-then-read on the primary cache, falling back to the
  secondary cache when the primary is unavailable
- service_status: touch every backing service briefly and report it
- count_request: atomic request counter with a sliding one-hour window
"""

from datetime import datetime, timezone
import logging
import random
from typing import Any

from backend.context import AppContext
from backend.errors import ServiceUnavailableError
from backend.stores.redis import (
    KEY_EXAMPLE,
    KEY_EXAMPLE_FALLBACK,
    KEY_HEALTH_CHECK,
    KEY_REQUEST_STATS,
    LOCAL_CACHE,
    TTL_EXAMPLE,
    TTL_EXAMPLE_FALLBACK,
    TTL_HEALTH_CHECK,
    TTL_REQUEST_STATS,
    UPSTASH_CACHE,
)

logger = logging.getLogger("uvicorn.error")

CONNECTED = "connected"
DISCONNECTED = "disconnected"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _sample_payload(environment: str) -> dict[str, Any]:
    return {
        "message": "Hello from the serverless API!",
        "timestamp": _now(),
        "random": random.random(),
        "environment": environment,
    }


async def cache_round_trip(context: AppContext) -> dict[str, Any]:
    """Serve the example payload from cache, populating it on a miss.

    Raises:
        ServiceUnavailableError: Neither cache is reachable.
    """
    payload = _sample_payload(context.settings.environment)

    cached = await context.cache.get(KEY_EXAMPLE)
    if cached.hit:
        return {
            "success": True,
            "message": "Data from Upstash Redis cache",
            "data": cached.value,
            "source": UPSTASH_CACHE,
            "timestamp": _now(),
        }
    if cached.available and (await context.cache.set(KEY_EXAMPLE, payload, TTL_EXAMPLE)).ok:
        return {
            "success": True,
            "message": "Data fetched and cached in Upstash Redis",
            "data": payload,
            "source": "api_and_cached",
            "timestamp": _now(),
        }

    logger.warning("Primary cache unavailable, trying fallback Redis")
    fallback = context.fallback_cache
    cached = await fallback.get(KEY_EXAMPLE_FALLBACK)
    if cached.hit:
        return {
            "success": True,
            "message": "Data from fallback Redis cache",
            "data": cached.value,
            "source": "fallback_redis",
            "timestamp": _now(),
        }
    if cached.available and (await fallback.set(KEY_EXAMPLE_FALLBACK, payload, TTL_EXAMPLE_FALLBACK)).ok:
        return {
            "success": True,
            "message": "Data fetched and cached in fallback Redis",
            "data": payload,
            "source": "api_and_fallback_cached",
            "timestamp": _now(),
        }

    logger.error("Fallback cache also failed")
    raise ServiceUnavailableError("Cache service unavailable")


async def service_status(context: AppContext) -> dict[str, Any]:
    """Report connected/disconnected for every backing service."""
    services: dict[str, Any] = {"api": "running", "timestamp": _now()}

    probe = await context.cache.set(KEY_HEALTH_CHECK, "ok", TTL_HEALTH_CHECK)
    services[UPSTASH_CACHE] = CONNECTED if probe.ok else DISCONNECTED
    if probe.ok:
        await context.cache.delete(KEY_HEALTH_CHECK)

    pong = await context.fallback_cache.ping()
    services[LOCAL_CACHE] = CONNECTED if pong.value else DISCONNECTED

    services["postgres"] = CONNECTED if await context.database.ping() else DISCONNECTED

    return {"success": True, "services": services}


async def count_request(context: AppContext) -> dict[str, Any]:
    """Increment the request counter and slide its expiry window.

    Raises:
        ServiceUnavailableError: The primary cache is unreachable.
    """
    counted = await context.cache.increment(KEY_REQUEST_STATS)
    if not counted.ok:
        raise ServiceUnavailableError("Stats service unavailable")
    await context.cache.expire(KEY_REQUEST_STATS, TTL_REQUEST_STATS)

    return {
        "success": True,
        "stats": {
            "total_requests": counted.value,
            "timestamp": _now(),
            "cache_backend": UPSTASH_CACHE,
        },
    }
