"""User service: one store operation per call.

Store errors are translated into the API error taxonomy here so routes stay
thin:
- unique violation on insert -> ConflictError (409)
- any other failure while listing -> InternalError (500)
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from backend.errors import ConflictError, InternalError, NotFoundError, ValidationError
from backend.models import User
from backend.stores.postgres import Database

logger = logging.getLogger("uvicorn.error")

# PostgreSQL SQLSTATE for unique_violation.
UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code is not None:
        return code == UNIQUE_VIOLATION
    # Drivers without SQLSTATE (sqlite) only expose the message.
    return "unique" in str(orig).lower()


async def list_users(database: Database) -> list[User]:
    """All users, newest first."""
    try:
        async with database.session() as session:
            result = await session.execute(
                select(User).order_by(User.created_at.desc(), User.id.desc())
            )
            return list(result.scalars().all())
    except SQLAlchemyError as e:
        logger.error("Get users error", exc_info=True)
        raise InternalError("Failed to fetch users") from e


async def get_user(database: Database, user_id: int) -> User:
    """Fetch one user or raise NotFoundError."""
    async with database.session() as session:
        user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def create_user(database: Database, name: str | None, email: str | None) -> User:
    """Insert a user.

    Raises:
        ValidationError: name or email missing/blank.
        ConflictError: email already registered.
    """
    name = (name or "").strip()
    email = (email or "").strip()
    if not name or not email:
        raise ValidationError("Name and email are required")

    try:
        async with database.session() as session:
            user = User(name=name, email=email)
            session.add(user)
            await session.flush()
            # Load server defaults (id, is_active, created_at) before the session closes.
            await session.refresh(user)
    except IntegrityError as e:
        if _is_unique_violation(e):
            raise ConflictError("Email already exists") from e
        logger.error("Create user error", exc_info=True)
        raise

    logger.info(f"User created: id={user.id}")
    return user
