"""Common schemas used across the API."""

from pydantic import BaseModel, Field


class ErrorDetail(BaseModel):
    """Structured error detail. `stack` and `statusCode` only outside production."""

    message: str
    stack: str | None = None
    status_code: int | None = Field(alias="statusCode", default=None)

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """Standard error response format.

    Format: { "success": false, "error": { "message": str } }
    """

    success: bool = False
    error: ErrorDetail
