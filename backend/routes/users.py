"""User endpoints.

GET  /api/users       - list users, newest first
GET  /api/users/{id}  - one user
POST /api/users       - create a user

Routers are thin: call services for store logic.
"""

from fastapi import APIRouter, Depends

from backend.context import get_database
from backend.errors import NotFoundError
from backend.schemas import (
    ErrorResponse,
    UserCreate,
    UserCreatedResponse,
    UserListResponse,
    UserRead,
    UserResponse,
)
from backend.services import users as user_service
from backend.stores.postgres import Database

router = APIRouter()


# users.id is a 32-bit INTEGER column
MAX_USER_ID = 2**31 - 1


def _parse_user_id(raw: str) -> int:
    """Ids that aren't plain positive integers in column range can't match any row."""
    if not (raw.isascii() and raw.isdigit()):
        raise NotFoundError("User not found")
    user_id = int(raw)
    if not 1 <= user_id <= MAX_USER_ID:
        raise NotFoundError("User not found")
    return user_id


@router.get("", response_model=UserListResponse)
async def list_users(database: Database = Depends(get_database)) -> UserListResponse:
    """List all users ordered by creation time (newest first)."""
    users = await user_service.list_users(database)
    return UserListResponse(
        data=[UserRead.model_validate(user) for user in users],
        count=len(users),
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_user(user_id: str, database: Database = Depends(get_database)) -> UserResponse:
    """Fetch one user by id.

    Raises:
        NotFoundError 404: No user with that id.
    """
    user = await user_service.get_user(database, _parse_user_id(user_id))
    return UserResponse(data=UserRead.model_validate(user))


@router.post(
    "",
    response_model=UserCreatedResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_user(
    payload: UserCreate,
    database: Database = Depends(get_database),
) -> UserCreatedResponse:
    """Create a user from {name, email}.

    Raises:
        ValidationError 400: name or email missing.
        ConflictError 409: email already exists.
    """
    user = await user_service.create_user(database, payload.name, payload.email)
    return UserCreatedResponse(data=UserRead.model_validate(user))
