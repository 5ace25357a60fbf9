"""Test fixtures — a fresh in-memory database and fake media backend per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (aiosqlite). StaticPool
   keeps the single connection alive so every session sees the same data.
2. The app's get_db dependency is overridden to hand out that session, and
   get_media_uploader to hand out a FakeUploader that records uploads.
3. The HTTP client talks to the ASGI app directly over https://test so
   that Secure cookies set by login/refresh are sent back like a browser would.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from videotube.config import settings
from videotube.db.engine import get_db
from videotube.db.models import Base
from videotube.main import app
from videotube.media import (
    MediaUploader,
    MediaUploadError,
    UploadedMedia,
    get_media_uploader,
)
from tests.helpers import PNG_BYTES, unique_identity

TEST_DB_URL = "sqlite+aiosqlite://"


class FakeUploader(MediaUploader):
    """Records uploads and returns predictable URLs."""

    def __init__(self):
        self.uploads: list[tuple[str, str, int]] = []
        self.fail = False

    @property
    def name(self) -> str:
        return "fake"

    async def upload(self, content: bytes, filename: str, content_type: str) -> UploadedMedia:
        if self.fail:
            raise MediaUploadError("fake backend is down")
        self.uploads.append((filename, content_type, len(content)))
        public_id = f"{len(self.uploads)}-{filename}"
        return UploadedMedia(url=f"https://media.test/{public_id}", public_id=public_id)


@pytest.fixture(autouse=True)
def fast_hashing(monkeypatch):
    """bcrypt at 12 rounds makes the suite crawl; 4 is the minimum."""
    monkeypatch.setattr(settings, "bcrypt_rounds", 4)


@pytest_asyncio.fixture()
async def db_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def db_session(db_engine):
    session = AsyncSession(bind=db_engine, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture()
def uploader():
    return FakeUploader()


@pytest_asyncio.fixture()
async def client(db_session, uploader):
    """HTTP client with the app's get_db and media backend overridden."""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_uploader] = lambda: uploader

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def register(client):
    """Async helper: register a user through the API and return the response."""

    async def _register(
        username=None,
        email=None,
        password="password_123",
        full_name="Test User",
        avatar=True,
        cover_image=False,
    ):
        ident = unique_identity()
        data = {
            "fullName": full_name,
            "username": username if username is not None else ident["username"],
            "email": email if email is not None else ident["email"],
            "password": password,
        }
        files = {}
        if avatar:
            files["avatar"] = ("avatar.png", PNG_BYTES, "image/png")
        if cover_image:
            files["coverImage"] = ("cover.png", PNG_BYTES, "image/png")
        return await client.post(
            "/api/v1/users/register", data=data, files=files or None
        )

    return _register


@pytest.fixture()
def login(client):
    """Async helper: log in by username (or email) and return the response."""

    async def _login(username=None, email=None, password="password_123"):
        body = {"password": password}
        if username is not None:
            body["username"] = username
        if email is not None:
            body["email"] = email
        return await client.post("/api/v1/users/login", json=body)

    return _login
