"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
- Access token: short-lived (1 day), used for API calls
- Refresh token: long-lived (10 days), used to get a new token pair

Each kind is signed with its own secret, so a refresh token can never
pass as an access token (and vice versa) even before the "type" claim
is checked. A random jti makes every issued token unique.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from videotube.config import settings

ACCESS = "access"
REFRESH = "refresh"


class TokenError(Exception):
    """Raised when token creation/verification fails."""


def _secret_for(token_type: str) -> str:
    if token_type == ACCESS:
        return settings.access_token_secret
    if token_type == REFRESH:
        return settings.refresh_token_secret
    raise TokenError(f"Unknown token type: {token_type}")


def create_access_token(
    user_id: str,
    claims: Optional[dict] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Create a JWT access token.

    Extra claims (username, email, full_name) are embedded for clients
    that want to read them without calling the API.
    """
    now = datetime.now(timezone.utc)
    if expires_minutes is None:
        expires_minutes = settings.access_token_expire_minutes
    expires = now + timedelta(minutes=expires_minutes)
    payload = {
        **(claims or {}),
        "sub": user_id,
        "type": ACCESS,
        "exp": expires,
        "iat": now,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, _secret_for(ACCESS), algorithm=settings.jwt_algorithm)


def create_refresh_token(
    user_id: str,
    expires_days: Optional[int] = None,
) -> str:
    """Create a JWT refresh token."""
    now = datetime.now(timezone.utc)
    if expires_days is None:
        expires_days = settings.refresh_token_expire_days
    expires = now + timedelta(days=expires_days)
    payload = {
        "sub": user_id,
        "type": REFRESH,
        "exp": expires,
        "iat": now,
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, _secret_for(REFRESH), algorithm=settings.jwt_algorithm)


def verify_token(token: str, token_type: str = ACCESS) -> dict:
    """Verify and decode a JWT token of the given type.

    Returns the payload dict on success.
    Raises TokenError on failure.
    """
    if not token:
        raise TokenError("No token provided")
    try:
        payload = jwt.decode(
            token,
            _secret_for(token_type),
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(f"Invalid token: {e}")

    if payload.get("type") != token_type:
        raise TokenError(f"Wrong token type, expected {token_type}")
    return payload
