"""Token issuer — access/refresh token lifecycle.

Learn: Issuance, verification, rotation and revocation all live here:

- issue_tokens() signs a new pair and stores the refresh token on the
  user row, overwriting (and so revoking) the previous one
- verify_access() checks signature, expiry, type, and that the user
  still exists
- verify_refresh() additionally requires the token to equal the stored
  value, which is what makes refresh tokens single-use
- revoke() clears the stored value (logout)

Access tokens are never stored, so they stay valid until they expire.
"""

import uuid

import structlog
from sqlalchemy.exc import SQLAlchemyError

from videotube.auth.jwt import (
    ACCESS,
    REFRESH,
    TokenError,
    create_access_token,
    create_refresh_token,
    verify_token,
)
from videotube.db.models import User
from videotube.errors import InternalError, UnauthorizedError
from videotube.services.user_store import UserStore

logger = structlog.get_logger()


class TokenService:
    """Issues and verifies the access/refresh token pair."""

    def __init__(self, store: UserStore):
        self.store = store

    async def issue_tokens(self, user_id: uuid.UUID | str) -> tuple[str, str]:
        """Sign a new (access, refresh) pair and persist the refresh token."""
        try:
            user = await self.store.get(user_id)
            if not user:
                raise InternalError(
                    "Something went wrong while generating refresh and access token"
                )
            access_token = create_access_token(
                str(user.id),
                claims={
                    "username": user.username,
                    "email": user.email,
                    "full_name": user.full_name,
                },
            )
            refresh_token = create_refresh_token(str(user.id))
            await self.store.set_refresh_token(user, refresh_token)
        except SQLAlchemyError as e:
            await self.store.rollback()
            logger.error("videotube.token_persist_failed", user_id=str(user_id), error=str(e))
            raise InternalError(
                "Something went wrong while generating refresh and access token"
            ) from e

        logger.info("videotube.tokens_issued", user_id=str(user.id))
        return access_token, refresh_token

    async def verify_access(self, token: str | None) -> User:
        """Resolve an access token to its user, or raise UnauthorizedError."""
        if not token:
            raise UnauthorizedError("Unauthorized request. No token provided.")
        try:
            payload = verify_token(token, ACCESS)
        except TokenError as e:
            raise UnauthorizedError(str(e)) from e

        user = await self.store.get(payload["sub"])
        if not user:
            raise UnauthorizedError("Invalid access token")
        return user

    async def verify_refresh(self, token: str | None) -> User:
        """Resolve a refresh token to its user if it is the one on record."""
        if not token:
            raise UnauthorizedError("Unauthorized request. No refresh token provided.")
        try:
            payload = verify_token(token, REFRESH)
        except TokenError as e:
            raise UnauthorizedError(str(e)) from e

        user = await self.store.get(payload["sub"])
        if not user:
            raise UnauthorizedError("Invalid refresh token")

        if token != user.refresh_token:
            logger.warning("videotube.refresh_token_reuse", user_id=str(user.id))
            raise UnauthorizedError("Refresh token is expired or used")
        return user

    async def revoke(self, user: User) -> None:
        """Forget the stored refresh token so none can be redeemed."""
        await self.store.set_refresh_token(user, None)
        logger.info("videotube.tokens_revoked", user_id=str(user.id))
