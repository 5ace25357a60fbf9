"""Health check endpoint.

Learn: The database is the only hard dependency: without it nothing
works, so it decides between "healthy" and "degraded". Redis only backs
rate limiting and is reported for information.
"""

from fastapi import APIRouter
from sqlalchemy import text

from videotube import __version__
from videotube.cache import get_redis
from videotube.db.engine import engine

router = APIRouter()


async def _check_database() -> str:
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        return f"error: {type(e).__name__}"
    return "ok"


async def _check_redis() -> str:
    try:
        redis = get_redis()
    except RuntimeError:
        return "disabled"
    try:
        await redis.ping()
    except Exception as e:
        return f"error: {type(e).__name__}"
    return "ok"


@router.get("/health")
async def health_check():
    database = await _check_database()
    return {
        "status": "healthy" if database == "ok" else "degraded",
        "server": "ok",
        "version": __version__,
        "database": database,
        "redis": await _check_redis(),
    }
