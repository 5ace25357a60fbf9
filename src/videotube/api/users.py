"""User account API — registration, session lifecycle, profile updates.

Learn: Routes for the account lifecycle (all under /users):
- POST  /users/register        → multipart form + avatar/coverImage files
- POST  /users/login           → username|email + password → cookies + tokens
- POST  /users/refresh-token   → refresh token (cookie or body) → new pair
- POST  /users/logout          → revoke refresh token, clear cookies
- POST  /users/change-password → oldPassword + newPassword
- GET   /users/current-user    → the authenticated user
- PATCH /users/update-account  → fullName + email
- PATCH /users/avatar          → new avatar file
- PATCH /users/cover-image     → new cover image file

Routes handle HTTP concerns (forms, files, cookies, envelopes);
AccountService handles the rules.
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Form, Request, UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from videotube.auth.dependencies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    get_current_user,
)
from videotube.config import settings
from videotube.db.engine import get_db
from videotube.db.models import User
from videotube.media import MediaUploader, get_media_uploader
from videotube.schemas.common import ApiResponse
from videotube.schemas.user import (
    EMAIL_MAX,
    FULL_NAME_MAX,
    USERNAME_MAX,
    ChangePasswordRequest,
    LoginRequest,
    LoginResult,
    RefreshRequest,
    RegistrationForm,
    TokenPair,
    UpdateAccountRequest,
    UserRead,
)
from videotube.services.account_service import AccountService, ImageFile
from videotube.services.user_store import UserStore

router = APIRouter(prefix="/users")


def _svc(
    db: AsyncSession = Depends(get_db),
    uploader: MediaUploader = Depends(get_media_uploader),
) -> AccountService:
    return AccountService(UserStore(db), uploader)


async def _read_upload(upload: Optional[UploadFile]) -> Optional[ImageFile]:
    """Read an optional multipart file; an empty file field counts as absent.

    At most max_upload_bytes + 1 bytes are read: enough for the service to
    reject an oversized file without holding all of it in memory.
    """
    if upload is None or not upload.filename:
        return None
    content = await upload.read(settings.max_upload_bytes + 1)
    return ImageFile(
        filename=upload.filename,
        content_type=upload.content_type or "",
        content=content,
    )


def _envelope(data, message: str, status_code: int = 200) -> JSONResponse:
    body = ApiResponse(status_code=status_code, data=data, message=message)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True),
    )


def _set_token_cookies(
    response: JSONResponse, access_token: str, refresh_token: str
) -> None:
    options = {
        "httponly": True,
        "secure": settings.cookie_secure,
        "samesite": settings.cookie_samesite,
    }
    response.set_cookie(
        ACCESS_COOKIE,
        access_token,
        max_age=settings.access_token_expire_minutes * 60,
        **options,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        refresh_token,
        max_age=settings.refresh_token_expire_days * 24 * 3600,
        **options,
    )


def _clear_token_cookies(response: JSONResponse) -> None:
    for key in (ACCESS_COOKIE, REFRESH_COOKIE):
        response.delete_cookie(
            key,
            httponly=True,
            secure=settings.cookie_secure,
            samesite=settings.cookie_samesite,
        )


# ─── Register ────────────────────────────────────────────


@router.post("/register", response_model=ApiResponse[UserRead], status_code=201)
async def register(
    full_name: str = Form("", alias="fullName", max_length=FULL_NAME_MAX),
    username: str = Form("", max_length=USERNAME_MAX),
    email: str = Form("", max_length=EMAIL_MAX),
    password: str = Form(""),
    avatar: Optional[UploadFile] = File(None),
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    svc: AccountService = Depends(_svc),
):
    """Create a new account. The avatar image is required."""
    form = RegistrationForm(
        full_name=full_name, username=username, email=email, password=password
    )
    user = await svc.register(
        form,
        avatar=await _read_upload(avatar),
        cover_image=await _read_upload(cover_image),
    )
    return _envelope(
        UserRead.model_validate(user), "User registered successfully", 201
    )


# ─── Login / refresh / logout ────────────────────────────


@router.post("/login", response_model=ApiResponse[LoginResult])
async def login(body: LoginRequest, svc: AccountService = Depends(_svc)):
    """Login with username or email → cookies + token pair."""
    user, access_token, refresh_token = await svc.login(body)
    result = LoginResult(
        user=UserRead.model_validate(user),
        access_token=access_token,
        refresh_token=refresh_token,
    )
    response = _envelope(result, "User logged in successfully")
    _set_token_cookies(response, access_token, refresh_token)
    return response


@router.post("/refresh-token", response_model=ApiResponse[TokenPair])
async def refresh_token(
    request: Request,
    body: Optional[RefreshRequest] = Body(None),
    svc: AccountService = Depends(_svc),
):
    """Exchange the current refresh token for a new pair (rotation)."""
    incoming = request.cookies.get(REFRESH_COOKIE) or (
        body.refresh_token if body else None
    )
    access_token, new_refresh_token = await svc.refresh(incoming)
    response = _envelope(
        TokenPair(access_token=access_token, refresh_token=new_refresh_token),
        "Access token refreshed",
    )
    _set_token_cookies(response, access_token, new_refresh_token)
    return response


@router.post("/logout", response_model=ApiResponse[dict])
async def logout(
    user: User = Depends(get_current_user),
    svc: AccountService = Depends(_svc),
):
    """Revoke the stored refresh token and clear both cookies."""
    await svc.logout(user)
    response = _envelope({}, "User logged out successfully")
    _clear_token_cookies(response)
    return response


# ─── Current user / password / profile ───────────────────


@router.get("/current-user", response_model=ApiResponse[UserRead])
async def current_user(user: User = Depends(get_current_user)):
    return _envelope(UserRead.model_validate(user), "Current user fetched successfully")


@router.post("/change-password", response_model=ApiResponse[dict])
async def change_password(
    body: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    svc: AccountService = Depends(_svc),
):
    await svc.change_password(user, body)
    return _envelope({}, "Password changed successfully")


@router.patch("/update-account", response_model=ApiResponse[UserRead])
async def update_account(
    body: UpdateAccountRequest,
    user: User = Depends(get_current_user),
    svc: AccountService = Depends(_svc),
):
    user = await svc.update_account(user, body)
    return _envelope(UserRead.model_validate(user), "Account details updated successfully")


@router.patch("/avatar", response_model=ApiResponse[UserRead])
async def update_avatar(
    avatar: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    svc: AccountService = Depends(_svc),
):
    user = await svc.update_avatar(user, await _read_upload(avatar))
    return _envelope(UserRead.model_validate(user), "Avatar updated successfully")


@router.patch("/cover-image", response_model=ApiResponse[UserRead])
async def update_cover_image(
    cover_image: Optional[UploadFile] = File(None, alias="coverImage"),
    user: User = Depends(get_current_user),
    svc: AccountService = Depends(_svc),
):
    user = await svc.update_cover_image(user, await _read_upload(cover_image))
    return _envelope(UserRead.model_validate(user), "Cover image updated successfully")
