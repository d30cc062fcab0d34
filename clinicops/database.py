"""Async engine and session management."""

from collections.abc import AsyncGenerator
from typing import Any

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from clinicops.config import settings

logger = structlog.get_logger(__name__)

ASYNC_DRIVERS = {
    "postgresql://": "postgresql+asyncpg://",
    "sqlite://": "sqlite+aiosqlite://",
}


def get_async_database_url(url: str) -> str:
    """Rewrite a plain ``postgresql://`` or ``sqlite://`` URL to its async driver."""
    for plain, driver in ASYNC_DRIVERS.items():
        if url.startswith(plain):
            return driver + url[len(plain) :]
    return url


def engine_options(url: str) -> dict[str, Any]:
    # SQLite (local runs, tests) takes no pool sizing or server settings
    if url.startswith("sqlite"):
        return {"echo": settings.debug}

    return {
        "echo": settings.debug,
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_recycle": 3600,
        "connect_args": {"server_settings": {"application_name": settings.app_name}},
    }


DATABASE_URL = get_async_database_url(settings.database_url)

engine = create_async_engine(DATABASE_URL, **engine_options(DATABASE_URL))

AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped session; anything left uncommitted is rolled back on error."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def check_database_connection() -> bool:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("database_unavailable", error=str(e))
        return False
    return True
