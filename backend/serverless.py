"""Serverless function app.

Unlike the standalone server there is no startup phase to fail in: every
request first goes through `ConnectionManager.ensure_connections()`, which
connects the configured services and mounts the API routes on the first
request of the process. Backing-service failures degrade the API instead of
crashing the function; /health and /api/health always answer.
"""

import logging

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import RequestResponseEndpoint

from backend.connections import ConnectionManager
from backend.context import AppContext, build_context
from backend.errors import register_error_handlers
from backend.routes import health
from backend.settings import Settings, get_settings

logger = logging.getLogger("uvicorn.error")


def create_serverless_app(
    settings: Settings | None = None,
    context: AppContext | None = None,
) -> FastAPI:
    """Create the function-platform app (routes mounted lazily)."""
    settings = settings or get_settings()
    context = context or build_context(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=None,
        redoc_url=None,
    )
    app.state.context = context

    # Function URLs are called from preview deployments too: reflect any origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app, settings)

    # Liveness works even before (or without) the API routes.
    app.include_router(health.router)

    connections = ConnectionManager(app, context)
    app.state.connections = connections

    @app.middleware("http")
    async def ensure_connections(request: Request, call_next: RequestResponseEndpoint) -> Response:
        await connections.ensure_connections()
        return await call_next(request)

    return app
