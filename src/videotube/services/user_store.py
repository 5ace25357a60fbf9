"""Credential store — persistence for user records.

Learn: The store is the only code that touches the users table. Services
receive it explicitly (constructed from the request's AsyncSession), so
there is no global connection anywhere in the business logic. Every
mutating call commits immediately; nothing is batched.
"""

import uuid
from typing import Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.db.models import User


def normalize_identity(value: Optional[str]) -> str:
    """Usernames and emails are stored trimmed and lower-cased."""
    return (value or "").strip().lower()


class UserStore:
    """Async repository for User rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, user_id: uuid.UUID | str) -> Optional[User]:
        if isinstance(user_id, str):
            try:
                user_id = uuid.UUID(user_id)
            except ValueError:
                return None
        return await self.db.get(User, user_id)

    async def find_by_username_or_email(
        self,
        username: Optional[str] = None,
        email: Optional[str] = None,
    ) -> Optional[User]:
        """First user whose username OR email matches (either may be None)."""
        conditions = []
        if username:
            conditions.append(User.username == normalize_identity(username))
        if email:
            conditions.append(User.email == normalize_identity(email))
        if not conditions:
            return None
        result = await self.db.execute(select(User).where(or_(*conditions)))
        return result.scalars().first()

    async def find_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == normalize_identity(email))
        )
        return result.scalars().first()

    async def create(
        self,
        *,
        username: str,
        email: str,
        full_name: str,
        password_hash: str,
        avatar: str,
        cover_image: str = "",
    ) -> User:
        user = User(
            username=normalize_identity(username),
            email=normalize_identity(email),
            full_name=full_name.strip(),
            password_hash=password_hash,
            avatar=avatar,
            cover_image=cover_image,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def save(self, user: User) -> User:
        """Write pending changes on a loaded user through to the database."""
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def set_refresh_token(
        self, user: User, refresh_token: Optional[str]
    ) -> User:
        user.refresh_token = refresh_token
        return await self.save(user)

    async def rollback(self) -> None:
        """Discard a failed write so the session can be used again."""
        await self.db.rollback()
