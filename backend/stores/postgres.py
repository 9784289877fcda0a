"""PostgreSQL store with async SQLAlchemy.

Handles:
- Connection pool lifecycle (connect once, dispose on shutdown)
- Database session management
- Table bootstrap for development
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from backend.settings import Settings

logger = logging.getLogger("uvicorn.error")


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class Database:
    """Relational store backing service.

    The engine (and its pool) is created by `connect()`; until then the
    database is configured but unusable.
    """

    name = "postgres"

    def __init__(self, url: str, **engine_options: Any) -> None:
        self.url = url
        self.engine_options = engine_options
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.async_database_url,
            echo=False,
            connect_args=settings.asyncpg_connect_args,
            pool_size=5,
            max_overflow=10,
            pool_pre_ping=True,
        )

    @property
    def configured(self) -> bool:
        return bool(self.url)

    @property
    def connected(self) -> bool:
        return self._engine is not None

    async def connect(self) -> None:
        """Create the pool and check out one connection to prove it works."""
        if self._engine is not None:
            return
        engine = create_async_engine(self.url, **self.engine_options)
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            await engine.dispose()
            raise
        self._engine = engine
        self._session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )
        logger.info("Postgres connected")

    async def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        if self._engine is None:
            return False
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            logger.warning("Postgres ping failed", exc_info=True)
            return False
        return True

    async def close(self) -> None:
        """Close database connection pool."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Postgres disconnected")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get database session context manager.

        Usage:
            async with database.session() as session:
                result = await session.execute(query)
        """
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call connect() first.")

        async with self._session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create all tables (for development/testing only)."""
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call connect() first.")

        # Register models on Base.metadata.
        import backend.models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self) -> None:
        """Drop all tables (for testing only)."""
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call connect() first.")

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
