"""Application context: the backing services of one process.

Built once per process and attached to `app.state.context`. Handlers reach
it through the dependencies below instead of module-level singletons.
"""

from dataclasses import dataclass
import logging

from fastapi import Request

from backend.errors import ServiceUnavailableError
from backend.settings import Settings
from backend.stores.postgres import Database
from backend.stores.redis import Cache, build_redis_cache, build_upstash_cache

logger = logging.getLogger("uvicorn.error")


@dataclass
class AppContext:
    """Backing services shared by every request."""

    settings: Settings
    database: Database
    cache: Cache
    fallback_cache: Cache

    @property
    def services(self) -> list[Database | Cache]:
        """Backing services in connection order."""
        return [self.database, self.cache, self.fallback_cache]

    async def close(self) -> None:
        """Release every service; failures are logged so the others still close."""
        for service in reversed(self.services):
            try:
                await service.close()
            except Exception:
                logger.exception(f"Error closing {service.name}")


def build_context(settings: Settings) -> AppContext:
    """Create (but don't connect) the services the settings describe."""
    return AppContext(
        settings=settings,
        database=Database.from_settings(settings),
        cache=build_upstash_cache(settings),
        fallback_cache=build_redis_cache(settings),
    )


def get_context(request: Request) -> AppContext:
    """Dependency injection for AppContext from app.state.

    Raises:
        RuntimeError: If the context was never attached to the app.
    """
    context = getattr(request.app.state, "context", None)
    if context is None:
        raise RuntimeError("AppContext not initialized. Check app factory.")
    return context


def get_database(request: Request) -> Database:
    """The connected database, or 503 when the store is unreachable."""
    database = get_context(request).database
    if not database.connected:
        raise ServiceUnavailableError("Database not available")
    return database
