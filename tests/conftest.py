"""Shared fixtures: SQLite-backed database, in-memory Redis doubles, app clients."""

import asyncio
from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.pool import StaticPool

from backend.context import AppContext
from backend.serverless import create_serverless_app
from backend.settings import Settings
from backend.stores.postgres import Database
from backend.stores.redis import LOCAL_CACHE, UPSTASH_CACHE, Cache

SQLITE_URL = "sqlite+aiosqlite://"


class FakeClock:
    """Manually advanced clock for TTL checks."""

    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRedis:
    """The subset of redis.asyncio.Redis the cache facade uses.

    Set `down = True` to make every command fail like a dropped connection.
    """

    def __init__(self, clock: FakeClock) -> None:
        self.clock = clock
        self.data: dict[str, str] = {}
        self.expires_at: dict[str, float] = {}
        self.down = False
        self.closed = False

    def _check(self) -> None:
        if self.down:
            raise RedisConnectionError("Connection refused")

    def _purge(self, key: str) -> None:
        deadline = self.expires_at.get(key)
        if deadline is not None and self.clock() >= deadline:
            self.data.pop(key, None)
            self.expires_at.pop(key, None)

    def ttl_of(self, key: str) -> float | None:
        deadline = self.expires_at.get(key)
        return None if deadline is None else deadline - self.clock()

    async def ping(self) -> bool:
        self._check()
        return True

    async def get(self, key: str) -> str | None:
        self._check()
        self._purge(key)
        return self.data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._check()
        self.data[key] = str(value)
        self.expires_at.pop(key, None)
        return True

    async def setex(self, key: str, ttl: int, value: str) -> bool:
        await self.set(key, value)
        self.expires_at[key] = self.clock() + ttl
        return True

    async def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            self._purge(key)
            if self.data.pop(key, None) is not None:
                removed += 1
            self.expires_at.pop(key, None)
        return removed

    async def exists(self, *keys: str) -> int:
        self._check()
        for key in keys:
            self._purge(key)
        return sum(1 for key in keys if key in self.data)

    async def incr(self, key: str) -> int:
        self._check()
        self._purge(key)
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    async def expire(self, key: str, ttl: int) -> bool:
        self._check()
        self._purge(key)
        if key not in self.data:
            return False
        self.expires_at[key] = self.clock() + ttl
        return True

    async def flushdb(self) -> bool:
        self._check()
        self.data.clear()
        self.expires_at.clear()
        return True

    async def aclose(self) -> None:
        self.closed = True


class CountingConnector:
    """Connector returning a FakeRedis and counting connect attempts."""

    def __init__(self, client: FakeRedis, delay: float = 0.0) -> None:
        self.client = client
        self.delay = delay
        self.calls = 0
        self.fail = False

    async def __call__(self) -> FakeRedis:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail or self.client.down:
            raise RedisConnectionError("Connection refused")
        return self.client


def make_settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "environment": "test",
        "database_url": SQLITE_URL,
        "redis_url": "redis://localhost:6379/0",
        "upstash_redis_rest_url": "https://example.upstash.io",
        "upstash_redis_rest_token": "token",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def primary_redis(clock: FakeClock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def fallback_redis(clock: FakeClock) -> FakeRedis:
    return FakeRedis(clock)


@pytest.fixture
def primary_connector(primary_redis: FakeRedis) -> CountingConnector:
    return CountingConnector(primary_redis)


@pytest.fixture
def fallback_connector(fallback_redis: FakeRedis) -> CountingConnector:
    return CountingConnector(fallback_redis)


@pytest.fixture
def settings_factory():
    """Build Settings isolated from the process environment and .env."""
    return make_settings


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
async def database() -> AsyncIterator[Database]:
    """Connected in-memory database with the schema created."""
    db = Database(SQLITE_URL, poolclass=StaticPool)
    await db.connect()
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
def context(
    settings: Settings,
    database: Database,
    primary_connector: CountingConnector,
    fallback_connector: CountingConnector,
) -> AppContext:
    return AppContext(
        settings=settings,
        database=database,
        cache=Cache(UPSTASH_CACHE, primary_connector),
        fallback_cache=Cache(LOCAL_CACHE, fallback_connector),
    )


@pytest.fixture
async def client(settings: Settings, context: AppContext) -> AsyncIterator[AsyncClient]:
    """Client for the serverless app, backed by the test context."""
    app = create_serverless_app(settings, context)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
