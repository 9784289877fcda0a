"""Pydantic schemas for API request/response validation."""

from backend.schemas.common import ErrorDetail, ErrorResponse
from backend.schemas.user import (
    UserCreate,
    UserCreatedResponse,
    UserListResponse,
    UserRead,
    UserResponse,
)

__all__ = [
    "ErrorDetail",
    "ErrorResponse",
    "UserCreate",
    "UserCreatedResponse",
    "UserListResponse",
    "UserRead",
    "UserResponse",
]
