"""Schemas for the users endpoints (/api/users)."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserCreate(BaseModel):
    """Request body for creating a user.

    Both fields are optional at the schema level so that a missing field is
    reported with the API's own 400 message rather than a schema error.
    """

    name: str | None = None
    email: str | None = None


class UserRead(BaseModel):
    """A user as returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    is_active: bool
    created_at: datetime


class UserListResponse(BaseModel):
    success: bool = True
    data: list[UserRead]
    count: int


class UserResponse(BaseModel):
    success: bool = True
    data: UserRead


class UserCreatedResponse(BaseModel):
    success: bool = True
    data: UserRead
    message: str = "User created successfully"
