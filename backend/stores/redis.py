"""Redis store: best-effort JSON cache facade.

Handles:
- Connecting the primary (Upstash) and fallback (REDIS_URL) caches
- Get/set/delete/exists/increment/expire/flush over JSON-encoded values
- Degrading to an explicit "unavailable" result instead of raising

The cache is never allowed to fail a request on its own. Every operation
returns a CacheResult; callers branch on `.available` / `.hit`.

TTL policies:
- Example round trip: 60 seconds (primary), 30 seconds (fallback)
- Health probe key: 10 seconds
- Request counter window: 1 hour
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
import json
import logging
from typing import Any, Generic, TypeVar

import redis.asyncio as redis

from backend.settings import Settings

# TTL constants (in seconds)
TTL_EXAMPLE = 60
TTL_EXAMPLE_FALLBACK = 30
TTL_HEALTH_CHECK = 10
TTL_REQUEST_STATS = 3600

# Key names
KEY_EXAMPLE = "example:test"
KEY_EXAMPLE_FALLBACK = "example:test:fallback"
KEY_HEALTH_CHECK = "health:check"
KEY_REQUEST_STATS = "stats:requests"

# Cache names (also the labels reported by the status probe)
UPSTASH_CACHE = "upstash_redis"
LOCAL_CACHE = "local_redis"

logger = logging.getLogger("uvicorn.error")

T = TypeVar("T")

Connector = Callable[[], Awaitable[redis.Redis]]


class CacheStatus(str, Enum):
    OK = "ok"
    MISS = "miss"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    """Outcome of one cache operation."""

    status: CacheStatus
    value: T | None = None

    @property
    def available(self) -> bool:
        return self.status is not CacheStatus.UNAVAILABLE

    @property
    def hit(self) -> bool:
        return self.status is CacheStatus.OK and self.value is not None

    @property
    def ok(self) -> bool:
        return self.status is CacheStatus.OK


def _unavailable(value: T | None = None) -> CacheResult[T]:
    return CacheResult(CacheStatus.UNAVAILABLE, value)


def redis_connector(
    url: str,
    *,
    password: str | None = None,
    connect_timeout: float = 5,
    command_timeout: float = 5,
) -> Connector:
    """Build a connector that opens a client and validates it with PING."""

    async def connect() -> redis.Redis:
        client = redis.from_url(
            url,
            password=password,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=connect_timeout,
            socket_timeout=command_timeout,
        )
        try:
            # Validate connectivity early (especially for `rediss://`).
            await client.ping()
        except Exception:
            await client.aclose()
            raise
        return client

    return connect


class Cache:
    """Best-effort JSON cache over one Redis database."""

    def __init__(self, name: str, connector: Connector | None) -> None:
        self.name = name
        self._connector = connector
        self._client: redis.Redis | None = None
        self._connect_lock = asyncio.Lock()

    @property
    def configured(self) -> bool:
        return self._connector is not None

    @property
    def connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        """Open the client. Raises when credentials are missing or the backend is down."""
        if self._connector is None:
            raise RuntimeError(f"{self.name} credentials not provided")
        async with self._connect_lock:
            if self._client is not None:
                return
            self._client = await self._connector()
            logger.info(f"Connected to {self.name}")

    async def close(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await client.aclose()
            logger.info(f"Disconnected from {self.name}")

    async def _get_client(self) -> redis.Redis | None:
        """Return a live client, making one just-in-time connect attempt if needed."""
        if self._client is not None:
            return self._client
        if self._connector is None:
            return None
        try:
            await self.connect()
        except Exception:
            logger.exception(f"[{self.name}] Connect failed")
            return None
        return self._client

    async def get(self, key: str) -> CacheResult[Any]:
        """Get a JSON value. Undecodable payloads count as a miss."""
        client = await self._get_client()
        if client is None:
            return _unavailable()
        try:
            raw = await client.get(key)
        except Exception:
            logger.exception(f"[{self.name}] Get error for key {key}")
            return _unavailable()
        if raw is None:
            return CacheResult(CacheStatus.MISS)
        try:
            return CacheResult(CacheStatus.OK, json.loads(raw))
        except (TypeError, ValueError):
            logger.warning(f"[{self.name}] Undecodable value for key {key}")
            return CacheResult(CacheStatus.MISS)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> CacheResult[None]:
        """Set a JSON value, with SETEX when a TTL is given.

        Raises:
            TypeError: value isn't JSON-serializable.
        """
        serialized = json.dumps(value)
        client = await self._get_client()
        if client is None:
            return _unavailable()
        try:
            if ttl:
                await client.setex(key, ttl, serialized)
            else:
                await client.set(key, serialized)
        except Exception:
            logger.exception(f"[{self.name}] Set error for key {key}")
            return _unavailable()
        return CacheResult(CacheStatus.OK)

    async def delete(self, key: str) -> CacheResult[None]:
        client = await self._get_client()
        if client is None:
            return _unavailable()
        try:
            await client.delete(key)
        except Exception:
            logger.exception(f"[{self.name}] Delete error for key {key}")
            return _unavailable()
        return CacheResult(CacheStatus.OK)

    async def exists(self, key: str) -> CacheResult[bool]:
        client = await self._get_client()
        if client is None:
            return _unavailable(False)
        try:
            found = await client.exists(key)
        except Exception:
            logger.exception(f"[{self.name}] Exists error for key {key}")
            return _unavailable(False)
        return CacheResult(CacheStatus.OK, found == 1)

    async def increment(self, key: str) -> CacheResult[int]:
        """Atomically increment an integer counter (INCR). Yields 0 when unavailable."""
        client = await self._get_client()
        if client is None:
            return _unavailable(0)
        try:
            count = await client.incr(key)
        except Exception:
            logger.exception(f"[{self.name}] Increment error for key {key}")
            return _unavailable(0)
        return CacheResult(CacheStatus.OK, int(count))

    async def expire(self, key: str, ttl: int) -> CacheResult[None]:
        client = await self._get_client()
        if client is None:
            return _unavailable()
        try:
            await client.expire(key, ttl)
        except Exception:
            logger.exception(f"[{self.name}] Expire error for key {key}")
            return _unavailable()
        return CacheResult(CacheStatus.OK)

    async def flush_all(self) -> CacheResult[None]:
        """Drop every key in the current database (FLUSHDB)."""
        client = await self._get_client()
        if client is None:
            return _unavailable()
        try:
            await client.flushdb()
        except Exception:
            logger.exception(f"[{self.name}] Flush error")
            return _unavailable()
        return CacheResult(CacheStatus.OK)

    async def ping(self) -> CacheResult[bool]:
        client = await self._get_client()
        if client is None:
            return _unavailable(False)
        try:
            await client.ping()
        except Exception:
            logger.warning(f"[{self.name}] Ping failed", exc_info=True)
            return _unavailable(False)
        return CacheResult(CacheStatus.OK, True)


def build_upstash_cache(settings: Settings) -> Cache:
    """Primary cache. Unconfigured without both the REST URL and token."""
    connector = None
    if settings.upstash_configured:
        connector = redis_connector(
            settings.upstash_redis_url,
            password=settings.upstash_redis_rest_token,
            connect_timeout=10,
            command_timeout=5,
        )
    return Cache(UPSTASH_CACHE, connector)


def build_redis_cache(settings: Settings) -> Cache:
    """Fallback cache on REDIS_URL."""
    connector = None
    if settings.redis_configured:
        connector = redis_connector(settings.redis_url, connect_timeout=5, command_timeout=5)
    return Cache(LOCAL_CACHE, connector)
