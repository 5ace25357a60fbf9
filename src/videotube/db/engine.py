"""Async engine, session factory and the per-request session dependency.

Learn: One engine (and connection pool) per process; one AsyncSession per
request. Sessions don't expire objects on commit, so a User loaded by the
session dependency can still be read after the service commits it.
"""

from typing import AsyncIterator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from videotube.config import settings


def build_engine(url: str) -> AsyncEngine:
    """Create an engine with pool options that suit the backend."""
    options = {"echo": settings.debug, "pool_pre_ping": True}
    if make_url(url).get_backend_name() == "sqlite":
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    return create_async_engine(url, **options)


engine = build_engine(settings.database_url)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def get_db() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one session per request, rolled back on error."""
    async with async_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
