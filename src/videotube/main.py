"""FastAPI application factory.

Learn: create_app() wires the pieces together: structlog, the middleware
stack, the error envelope handlers, the /api/v1 routers and (with the
local media backend) a static mount for uploaded images. The lifespan
connects Redis when it can and releases the database pool on shutdown.

Run with: uvicorn videotube.main:app
"""

from contextlib import asynccontextmanager
from pathlib import Path

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from redis.exceptions import RedisError

from videotube import __version__
from videotube.api import api_router
from videotube.cache import close_redis, init_redis
from videotube.config import settings
from videotube.db.engine import engine
from videotube.errors import register_error_handlers
from videotube.log import configure_logging
from videotube.middleware.rate_limit import RateLimitMiddleware
from videotube.middleware.request_id import RequestIdMiddleware
from videotube.middleware.security import SecurityHeadersMiddleware

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "videotube.starting",
        version=__version__,
        environment=settings.environment,
        media_backend=settings.media_backend,
    )
    try:
        await init_redis()
    except (RedisError, OSError) as e:
        logger.warning("videotube.rate_limit_disabled", reason=str(e))
    else:
        logger.info("videotube.redis_connected")

    yield

    await close_redis()
    await engine.dispose()
    logger.info("videotube.stopped")


def _install_middleware(app: FastAPI) -> None:
    # Last added runs first: RequestId → SecurityHeaders → RateLimit → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(
        RateLimitMiddleware,
        default_rpm=settings.rate_limit_rpm,
        auth_rpm=settings.rate_limit_auth_rpm,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestIdMiddleware)


def create_app() -> FastAPI:
    configure_logging(
        debug=settings.debug,
        json_logs=settings.environment != "development",
    )

    app = FastAPI(
        title="VideoTube Accounts",
        description="Registration, cookie sessions, rotating tokens and profiles",
        version=__version__,
        lifespan=lifespan,
    )
    _install_middleware(app)
    register_error_handlers(app)
    app.include_router(api_router)

    if settings.media_backend == "local":
        media_root = Path(settings.media_root)
        media_root.mkdir(parents=True, exist_ok=True)
        app.mount("/media", StaticFiles(directory=media_root), name="media")

    return app


app = create_app()
