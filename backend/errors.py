"""Error taxonomy and the JSON error translator.

Every error that reaches a client is shaped here:

    { "success": false, "error": { "message": str[, "stack": str, "statusCode": int] } }

Stack traces and status codes are only exposed outside production. In
production a 500 is flattened to "Internal Server Error"; other codes keep
their message.
"""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.schemas.common import ErrorDetail, ErrorResponse
from backend.settings import Settings

logger = logging.getLogger("uvicorn.error")

INTERNAL_SERVER_ERROR = "Internal Server Error"


class AppError(Exception):
    """Error carrying an HTTP status code."""

    status_code: int = 500

    def __init__(self, message: str = INTERNAL_SERVER_ERROR, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class ServiceUnavailableError(AppError):
    status_code = 503


class InternalError(AppError):
    status_code = 500


def error_body(exc: BaseException, status_code: int, message: str, *, production: bool) -> dict:
    """Build the error envelope for a response."""
    if production:
        detail = ErrorDetail(message=INTERNAL_SERVER_ERROR if status_code == 500 else message)
    else:
        detail = ErrorDetail(
            message=message,
            stack="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            status_code=status_code,
        )
    return ErrorResponse(error=detail).model_dump(by_alias=True, exclude_none=True)


def _log_error(request: Request, exc: BaseException, status_code: int, message: str) -> None:
    logger.error(
        "[Error] %s %s: %s (status %d)",
        request.method,
        request.url.path,
        message,
        status_code,
        exc_info=(type(exc), exc, exc.__traceback__),
    )


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    """Install the translator as the app's exception handlers."""

    def respond(request: Request, exc: BaseException, status_code: int, message: str) -> JSONResponse:
        _log_error(request, exc, status_code, message)
        return JSONResponse(
            status_code=status_code,
            content=error_body(exc, status_code, message, production=settings.is_production),
        )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return respond(request, exc, exc.status_code, exc.message or INTERNAL_SERVER_ERROR)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        # Malformed bodies are a client error like any other ValidationError.
        first = exc.errors()[0] if exc.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = first.get("msg", "Invalid request")
        if location:
            message = f"{location}: {message}"
        return respond(request, exc, ValidationError.status_code, message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = exc.detail if isinstance(exc.detail, str) else INTERNAL_SERVER_ERROR
        return respond(request, exc, exc.status_code, message)

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all: anything unclassified is a 500."""
        return respond(request, exc, 500, str(exc) or INTERNAL_SERVER_ERROR)
