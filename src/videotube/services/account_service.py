"""Account service — business logic for registration, login and profiles.

Learn: Service layer separates business logic from HTTP routing.
Routes parse requests and set cookies; this class validates input,
talks to the credential store, the token issuer and the media backend,
and raises ApiError subclasses that the app renders as error envelopes.

Every operation is a single shot: validate → (upload) → write through
→ return. Uploads always happen before the user row is touched, and any
failure aborts the whole operation.
"""

from dataclasses import dataclass
from typing import Optional

import structlog

from videotube.auth.password import hash_password, needs_rehash, verify_password
from videotube.config import settings
from videotube.db.models import User
from videotube.errors import (
    BadRequestError,
    ConflictError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
)
from videotube.media import MediaUploader, MediaUploadError
from videotube.schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    RegistrationForm,
    UpdateAccountRequest,
)
from videotube.services.token_service import TokenService
from videotube.services.user_store import UserStore, normalize_identity

logger = structlog.get_logger()


@dataclass
class ImageFile:
    """An uploaded file, already read from the request."""

    filename: str
    content_type: str
    content: bytes


def _blank(value: Optional[str]) -> bool:
    return not value or not value.strip()


class AccountService:
    """Account operations on top of UserStore, TokenService and a media backend."""

    def __init__(self, store: UserStore, uploader: MediaUploader):
        self.store = store
        self.tokens = TokenService(store)
        self.uploader = uploader

    # ─── Images ────────────────────────────────────────

    def _check_image(self, image: ImageFile, label: str) -> None:
        if not image.content:
            raise BadRequestError(f"{label} file is empty")
        if not (image.content_type or "").startswith("image/"):
            raise BadRequestError(f"{label} must be an image")
        if len(image.content) > settings.max_upload_bytes:
            raise BadRequestError(
                f"{label} is larger than {settings.max_upload_bytes} bytes"
            )

    async def _upload(self, image: ImageFile, label: str) -> str:
        try:
            media = await self.uploader.upload(
                image.content, image.filename, image.content_type
            )
        except MediaUploadError as e:
            logger.error("videotube.upload_failed", kind=label, error=str(e))
            raise InternalError(f"{label} upload failed") from e
        return media.url

    # ─── Register ──────────────────────────────────────

    async def register(
        self,
        form: RegistrationForm,
        avatar: Optional[ImageFile],
        cover_image: Optional[ImageFile] = None,
    ) -> User:
        """Create an account. Avatar is mandatory, cover image optional."""
        if any(
            _blank(field)
            for field in (form.full_name, form.username, form.email, form.password)
        ):
            raise BadRequestError("All fields are required")

        existing = await self.store.find_by_username_or_email(
            username=form.username, email=form.email
        )
        if existing:
            raise ConflictError("User with this email or username already exists")

        if avatar is None:
            raise BadRequestError("Avatar file is required")
        self._check_image(avatar, "Avatar")
        if cover_image is not None:
            self._check_image(cover_image, "Cover image")

        avatar_url = await self._upload(avatar, "Avatar")
        cover_url = ""
        if cover_image is not None:
            cover_url = await self._upload(cover_image, "Cover image")

        user = await self.store.create(
            username=form.username,
            email=form.email,
            full_name=form.full_name,
            password_hash=hash_password(form.password),
            avatar=avatar_url,
            cover_image=cover_url,
        )

        created = await self.store.get(user.id)
        if not created:
            raise InternalError("Something went wrong while registering the user")

        logger.info("videotube.user_registered", user_id=str(created.id))
        return created

    # ─── Login / logout / refresh ──────────────────────

    async def login(self, body: LoginRequest) -> tuple[User, str, str]:
        """Check credentials and issue a fresh token pair."""
        if _blank(body.username) and _blank(body.email):
            raise BadRequestError("Username or email is required")
        if _blank(body.password):
            raise BadRequestError("Password is required")

        user = await self.store.find_by_username_or_email(
            username=body.username, email=body.email
        )
        if not user:
            if settings.hide_unknown_accounts:
                raise UnauthorizedError("Invalid user credentials")
            raise NotFoundError("User does not exist")

        if not verify_password(body.password, user.password_hash):
            logger.info("videotube.login_failed", user_id=str(user.id))
            raise UnauthorizedError("Invalid user credentials")

        if needs_rehash(user.password_hash):
            user.password_hash = hash_password(body.password)
            await self.store.save(user)

        access_token, refresh_token = await self.tokens.issue_tokens(user.id)
        logger.info("videotube.user_logged_in", user_id=str(user.id))
        return user, access_token, refresh_token

    async def logout(self, user: User) -> None:
        await self.tokens.revoke(user)

    async def refresh(self, incoming_token: Optional[str]) -> tuple[str, str]:
        """Rotate the pair. The presented token stops working afterwards."""
        if _blank(incoming_token):
            raise UnauthorizedError("Unauthorized request. No refresh token provided.")
        user = await self.tokens.verify_refresh(incoming_token)
        return await self.tokens.issue_tokens(user.id)

    # ─── Password / profile ────────────────────────────

    async def change_password(self, user: User, body: ChangePasswordRequest) -> None:
        if _blank(body.old_password) or _blank(body.new_password):
            raise BadRequestError("Old and new password are required")
        if not verify_password(body.old_password, user.password_hash):
            raise BadRequestError("Invalid old password")

        user.password_hash = hash_password(body.new_password)
        await self.store.save(user)
        logger.info("videotube.password_changed", user_id=str(user.id))

    async def update_account(self, user: User, body: UpdateAccountRequest) -> User:
        if _blank(body.full_name) or _blank(body.email):
            raise BadRequestError("All fields are required")

        email = normalize_identity(body.email)
        if email != user.email:
            owner = await self.store.find_by_email(email)
            if owner and owner.id != user.id:
                raise ConflictError("Email is already in use")

        user.full_name = body.full_name.strip()
        user.email = email
        return await self.store.save(user)

    async def update_avatar(self, user: User, avatar: Optional[ImageFile]) -> User:
        if avatar is None:
            raise BadRequestError("Avatar file is missing")
        self._check_image(avatar, "Avatar")
        user.avatar = await self._upload(avatar, "Avatar")
        return await self.store.save(user)

    async def update_cover_image(
        self, user: User, cover_image: Optional[ImageFile]
    ) -> User:
        if cover_image is None:
            raise BadRequestError("Cover image file is missing")
        self._check_image(cover_image, "Cover image")
        user.cover_image = await self._upload(cover_image, "Cover image")
        return await self.store.save(user)
