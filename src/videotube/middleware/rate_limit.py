"""Per-IP fixed-window rate limiting backed by Redis.

Learn: Each (client ip, bucket, minute) gets a counter in Redis:

    videotube:rl:{ip}:{bucket}:{minute}

The credential endpoints (login, register, refresh-token) share a small
"auth" bucket to slow down password guessing; everything else counts
against the larger "api" bucket. Without Redis (not configured, down,
or in tests) requests pass through unlimited.
"""

import time

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from videotube.cache import get_redis
from videotube.errors import error_response

logger = structlog.get_logger()

AUTH_PATHS = (
    "/api/v1/users/login",
    "/api/v1/users/register",
    "/api/v1/users/refresh-token",
)
WINDOW_SECONDS = 60


async def _hit(redis, key: str) -> int:
    """Increment the window counter; the first hit sets its expiry."""
    count = await redis.incr(key)
    if count == 1:
        await redis.expire(key, WINDOW_SECONDS * 2)
    return count


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, default_rpm: int = 100, auth_rpm: int = 10):
        super().__init__(app)
        self.default_rpm = default_rpm
        self.auth_rpm = auth_rpm

    def _bucket(self, path: str) -> tuple[str, int]:
        if path.startswith(AUTH_PATHS):
            return "auth", self.auth_rpm
        return "api", self.default_rpm

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            redis = get_redis()
        except RuntimeError:
            return await call_next(request)

        bucket, limit = self._bucket(request.url.path)
        ip = request.client.host if request.client else "unknown"
        window = int(time.time() // WINDOW_SECONDS)
        key = f"videotube:rl:{ip}:{bucket}:{window}"

        try:
            count = await _hit(redis, key)
        except (RedisError, OSError) as e:
            logger.warning("videotube.rate_limit_unavailable", error=str(e))
            return await call_next(request)

        if count > limit:
            logger.info("videotube.rate_limited", bucket=bucket, ip=ip)
            return error_response(
                429,
                "Rate limit exceeded. Try again later.",
                headers={"Retry-After": str(WINDOW_SECONDS)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(limit)
        response.headers["X-RateLimit-Remaining"] = str(max(0, limit - count))
        return response
