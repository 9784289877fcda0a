"""Diagnostic example endpoints.

GET /api/examples/cache-test  - cache round trip with fallback
GET /api/examples/status      - backing service status
GET /api/examples/cache-stats - request counter
"""

from typing import Any

from fastapi import APIRouter, Depends

from backend.context import AppContext, get_context
from backend.schemas import ErrorResponse
from backend.services import diagnostics

router = APIRouter()


@router.get("/cache-test", responses={503: {"model": ErrorResponse}})
async def cache_test(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """Write-then-read the example payload (primary cache, then fallback)."""
    return await diagnostics.cache_round_trip(context)


@router.get("/status")
async def status(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """Report which backing services answer."""
    return await diagnostics.service_status(context)


@router.get("/cache-stats", responses={503: {"model": ErrorResponse}})
async def cache_stats(context: AppContext = Depends(get_context)) -> dict[str, Any]:
    """Count this request in the one-hour window."""
    return await diagnostics.count_request(context)
