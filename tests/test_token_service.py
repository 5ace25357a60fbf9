"""TokenService against a real (in-memory) user store."""

import uuid

import pytest
from sqlalchemy.exc import SQLAlchemyError

from videotube.auth.jwt import create_refresh_token
from videotube.auth.password import hash_password
from videotube.errors import InternalError, UnauthorizedError
from videotube.services.token_service import TokenService
from videotube.services.user_store import UserStore
from tests.helpers import unique_identity


async def _make_user(store: UserStore):
    ident = unique_identity("tok")
    return await store.create(
        username=ident["username"].upper(),
        email=ident["email"],
        full_name="Token User",
        password_hash=hash_password("password_123"),
        avatar="https://media.test/a.png",
    )


@pytest.mark.asyncio
async def test_store_normalizes_identity(db_session):
    store = UserStore(db_session)
    user = await _make_user(store)
    assert user.username == user.username.lower()
    assert user.refresh_token is None
    assert user.cover_image == ""

    found = await store.find_by_username_or_email(username=f"  {user.username.upper()} ")
    assert found.id == user.id


@pytest.mark.asyncio
async def test_store_get_with_bad_id(db_session):
    store = UserStore(db_session)
    assert await store.get("not-a-uuid") is None
    assert await store.get(uuid.uuid4()) is None


@pytest.mark.asyncio
async def test_issue_stores_refresh_token(db_session):
    store = UserStore(db_session)
    svc = TokenService(store)
    user = await _make_user(store)

    access, refresh = await svc.issue_tokens(user.id)
    assert access != refresh

    stored = await store.get(user.id)
    assert stored.refresh_token == refresh
    assert (await svc.verify_access(access)).id == user.id
    assert (await svc.verify_refresh(refresh)).id == user.id


@pytest.mark.asyncio
async def test_reissue_replaces_refresh_token(db_session):
    store = UserStore(db_session)
    svc = TokenService(store)
    user = await _make_user(store)

    _, first = await svc.issue_tokens(user.id)
    _, second = await svc.issue_tokens(str(user.id))

    with pytest.raises(UnauthorizedError, match="expired or used"):
        await svc.verify_refresh(first)
    assert (await svc.verify_refresh(second)).id == user.id


@pytest.mark.asyncio
async def test_issue_for_unknown_user(db_session):
    svc = TokenService(UserStore(db_session))
    with pytest.raises(InternalError):
        await svc.issue_tokens(uuid.uuid4())


@pytest.mark.asyncio
async def test_issue_persist_failure_keeps_stored_token(db_session, monkeypatch):
    store = UserStore(db_session)
    svc = TokenService(store)
    user = await _make_user(store)
    user_id, email = user.id, user.email
    _, first = await svc.issue_tokens(user_id)

    async def failing_commit():
        raise SQLAlchemyError("disk full")

    with monkeypatch.context() as m:
        m.setattr(db_session, "commit", failing_commit)
        with pytest.raises(InternalError, match="generating refresh and access token"):
            await svc.issue_tokens(user_id)

    stored = await store.find_by_email(email)
    assert stored.refresh_token == first
    assert (await svc.verify_refresh(first)).id == user_id


@pytest.mark.asyncio
async def test_verify_access_missing_token(db_session):
    svc = TokenService(UserStore(db_session))
    with pytest.raises(UnauthorizedError, match="No token provided"):
        await svc.verify_access(None)


@pytest.mark.asyncio
async def test_verify_refresh_for_deleted_user(db_session):
    svc = TokenService(UserStore(db_session))
    token = create_refresh_token(str(uuid.uuid4()))
    with pytest.raises(UnauthorizedError, match="Invalid refresh token"):
        await svc.verify_refresh(token)


@pytest.mark.asyncio
async def test_expired_refresh_token(db_session):
    store = UserStore(db_session)
    svc = TokenService(store)
    user = await _make_user(store)

    token = create_refresh_token(str(user.id), expires_days=-1)
    await store.set_refresh_token(user, token)
    with pytest.raises(UnauthorizedError, match="expired"):
        await svc.verify_refresh(token)


@pytest.mark.asyncio
async def test_revoke(db_session):
    store = UserStore(db_session)
    svc = TokenService(store)
    user = await _make_user(store)

    access, refresh = await svc.issue_tokens(user.id)
    await svc.revoke(user)

    assert (await store.get(user.id)).refresh_token is None
    with pytest.raises(UnauthorizedError):
        await svc.verify_refresh(refresh)
    # access tokens are not stored, so they outlive the session
    assert (await svc.verify_access(access)).id == user.id
