"""FastAPI application entry point (standalone server).

Boilerplate API - user CRUD over PostgreSQL with an optional Redis cache.

Startup connects every configured backing service; any failure aborts
startup so the process exits instead of serving a half-working API.
"""

from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.connections import ConnectionManager
from backend.context import AppContext, build_context
from backend.errors import register_error_handlers
from backend.routes import health
from backend.settings import Settings, get_settings

logger = logging.getLogger("uvicorn.error")


def create_app(settings: Settings | None = None, context: AppContext | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or get_settings()
    context = context or build_context(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan manager.

        Handles startup and shutdown events.
        """
        # Startup
        try:
            await app.state.connections.connect_services(strict=True)
        except Exception:
            logger.exception("Failed to start server")
            await context.close()
            raise
        logger.info(f"Server is running on port {settings.port}")

        yield

        # Shutdown
        await context.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="User CRUD API with optional Redis caching",
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )
    app.state.context = context

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Structured error envelope for every failure
    register_error_handlers(app, settings)

    # Health check endpoints
    app.include_router(health.router)

    # Include API routes
    connections = ConnectionManager(app, context)
    connections.mount_routes()
    app.state.connections = connections

    return app


# Application instance
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "backend.main:app",
        host=settings.host,
        port=settings.port,
        reload=not settings.is_production,
    )
