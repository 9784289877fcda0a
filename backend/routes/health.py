"""Liveness endpoints. Never touch a backing service."""

from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends

from backend.context import AppContext, get_context

router = APIRouter(tags=["health"])


def _health(context: AppContext, message: str) -> dict[str, Any]:
    return {
        "status": "OK",
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "environment": context.settings.environment,
    }


@router.get("/health")
async def health_check(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """Health check endpoint."""
    return _health(context, f"{context.settings.app_name} is running")


@router.get("/api/health")
async def api_health_check(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """Same probe under /api, available before the API routes are mounted."""
    return _health(context, "API health")
