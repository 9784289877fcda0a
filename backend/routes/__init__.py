"""API route table.

The table is built in one explicit step: `build_route_table()` returns the
full table, or the degraded variant when building fails. Both are mounted
under /api.
"""

from dataclasses import dataclass
from enum import Enum
import logging

from fastapi import APIRouter, Depends

from backend.context import AppContext, get_context
from backend.routes import examples, users
from backend.routes.degraded import build_degraded_router

logger = logging.getLogger("uvicorn.error")

API_PREFIX = "/api"


class RouteVariant(str, Enum):
    FULL = "full"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class RouteTable:
    variant: RouteVariant
    router: APIRouter
    reason: str | None = None


def build_api_router() -> APIRouter:
    """Assemble every API route. Raises if any part can't be built."""
    api_router = APIRouter()

    @api_router.get("")
    @api_router.get("/")
    async def api_index(context: AppContext = Depends(get_context)) -> dict:
        return {
            "message": "API is working",
            "version": context.settings.app_version,
            "endpoints": {
                "users": f"{API_PREFIX}/users",
                "examples": f"{API_PREFIX}/examples",
                "health": "/health",
            },
        }

    # User CRUD
    api_router.include_router(users.router, prefix="/users", tags=["users"])

    # Diagnostics (cache round trip, service status, request counter)
    api_router.include_router(examples.router, prefix="/examples", tags=["examples"])

    return api_router


def build_route_table() -> RouteTable:
    """Build the full table, falling back to the degraded variant."""
    try:
        return RouteTable(RouteVariant.FULL, build_api_router())
    except Exception as e:
        logger.exception("Failed to build API routes, installing degraded route set")
        return RouteTable(RouteVariant.DEGRADED, build_degraded_router(str(e)), reason=str(e))
