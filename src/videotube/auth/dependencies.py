"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers (or on a whole
router) to extract and validate the current user from the request.

The access token is read from, in order:
1. the accessToken cookie (browsers)
2. an "Authorization: Bearer <token>" header (mobile apps, CLI)

The resolved user is returned and also attached to request.state.user
so middleware and handlers further down can see who is calling.
"""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.db.engine import get_db
from videotube.db.models import User
from videotube.services.token_service import TokenService
from videotube.services.user_store import UserStore

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def extract_access_token(request: Request) -> Optional[str]:
    """Pull the raw access token out of the cookie or Authorization header."""
    token = request.cookies.get(ACCESS_COOKIE)
    if token:
        return token
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the caller (required — 401 if missing or invalid)."""
    tokens = TokenService(UserStore(db))
    user = await tokens.verify_access(extract_access_token(request))
    request.state.user = user
    return user
