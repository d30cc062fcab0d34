"""Script to create the lifecycle tables directly, bypassing migrations.

Useful for local SQLite databases. Use ``scripts/migrate.py`` for PostgreSQL.
"""

import asyncio

from clinicops.database import engine
from clinicops.models import metadata


async def init_db() -> None:
    """Initialize the database by creating all tables."""
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    await engine.dispose()
    print("✓ Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_db())
