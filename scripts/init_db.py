#!/usr/bin/env python3
"""Create the users table and seed sample rows.

Idempotent: the table is created only if missing and seed rows whose email
already exists are skipped (ON CONFLICT DO NOTHING).

Run (local / CI):
  python -m scripts.init_db

Requires DATABASE_URL (or POSTGRES_URL).
"""

import asyncio
import os
import sys

from sqlalchemy.dialects.postgresql import insert

# Ensure imports work when executed as a script/module
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend.models import User  # noqa: E402
from backend.settings import get_settings  # noqa: E402
from backend.stores.postgres import Database  # noqa: E402

SEED_USERS = [
    {"name": "Zhang San", "email": "zhangsan@example.com"},
    {"name": "Li Si", "email": "lisi@example.com"},
]


async def seed_users(database: Database) -> int:
    """Insert the sample users; return how many rows were new."""
    async with database.session() as session:
        result = await session.execute(
            insert(User)
            .values(SEED_USERS)
            .on_conflict_do_nothing(index_elements=[User.email])
            .returning(User.id)
        )
        return len(result.all())


async def main() -> int:
    settings = get_settings()
    if not settings.postgres_configured:
        print("DATABASE_URL (or POSTGRES_URL) is not set", file=sys.stderr)
        return 1

    database = Database.from_settings(settings)
    await database.connect()
    try:
        await database.create_tables()
        created = await seed_users(database)
        print({"ok": True, "tables": ["users"], "seeded_users": created})
    finally:
        await database.close()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
