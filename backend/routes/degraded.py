"""Degraded route set, installed when the full route table can't be built.

Keeps /api answering (with the reason) and turns /api/users into an explicit
503 instead of a 404.
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse


def build_degraded_router(reason: str) -> APIRouter:
    router = APIRouter()

    @router.get("")
    async def api_index_degraded() -> dict[str, str]:
        return {"message": "API is working (degraded)", "error": reason}

    @router.get("/users")
    async def users_not_ready() -> JSONResponse:
        return JSONResponse(
            status_code=503,
            content={
                "success": False,
                "message": "Users route not ready yet",
                "hint": "Configure DATABASE_URL and wait for backend routes to mount",
            },
        )

    return router
