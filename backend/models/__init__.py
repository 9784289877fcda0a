"""SQLAlchemy ORM models.

Models represent database tables:
- users: registered users (unique email)
"""

from backend.models.user import User

__all__ = ["User"]
