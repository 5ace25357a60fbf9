"""Pydantic schemas for account operations.

Separate request DTOs (input) from UserRead (output). UserRead is the
only shape a user ever leaves the API in, and it has no password or
refresh token field.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from videotube.schemas.common import CamelModel

# Column widths of the users table
USERNAME_MAX = 50
EMAIL_MAX = 255
FULL_NAME_MAX = 100


class UserRead(CamelModel):
    id: uuid.UUID
    username: str
    email: str
    full_name: str
    avatar: str
    cover_image: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LoginRequest(CamelModel):
    username: Optional[str] = Field(default=None, max_length=USERNAME_MAX)
    email: Optional[str] = Field(default=None, max_length=EMAIL_MAX)
    password: str = ""


class RefreshRequest(CamelModel):
    refresh_token: Optional[str] = None


class ChangePasswordRequest(CamelModel):
    old_password: str = ""
    new_password: str = ""


class UpdateAccountRequest(CamelModel):
    full_name: str = Field(default="", max_length=FULL_NAME_MAX)
    email: str = Field(default="", max_length=EMAIL_MAX)


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str


class LoginResult(TokenPair):
    user: UserRead


class RegistrationForm(CamelModel):
    """Text fields of the multipart registration form."""

    full_name: str = Field(default="", max_length=FULL_NAME_MAX)
    username: str = Field(default="", max_length=USERNAME_MAX)
    email: str = Field(default="", max_length=EMAIL_MAX)
    password: str = Field(default="")
