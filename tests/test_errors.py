"""Error envelope rendering, on a throwaway app with the real handlers."""

import pytest
import pytest_asyncio
from fastapi import FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError

from videotube.errors import (
    BadRequestError,
    ConflictError,
    NotFoundError,
    UnauthorizedError,
    register_error_handlers,
)


class Payload(BaseModel):
    count: int


def _app() -> FastAPI:
    app = FastAPI()
    register_error_handlers(app)

    @app.get("/bad")
    async def bad():
        raise BadRequestError("All fields are required", errors=["fullName"])

    @app.get("/unauthorized")
    async def unauthorized():
        raise UnauthorizedError()

    @app.get("/missing")
    async def missing():
        raise NotFoundError("User does not exist")

    @app.get("/conflict")
    async def conflict():
        raise ConflictError()

    @app.get("/http")
    async def http():
        raise HTTPException(status_code=418, detail="short and stout")

    @app.get("/unique")
    async def unique():
        raise IntegrityError(
            "INSERT INTO users", {}, Exception("UNIQUE constraint failed: users.email")
        )

    @app.get("/not-null")
    async def not_null():
        raise IntegrityError(
            "INSERT INTO users", {}, Exception("NOT NULL constraint failed: users.avatar")
        )

    @app.get("/boom")
    async def boom():
        raise RuntimeError("secret internals")

    @app.post("/payload")
    async def payload(body: Payload):
        return body

    return app


@pytest_asyncio.fixture()
async def bare_client():
    transport = ASGITransport(app=_app(), raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.mark.asyncio
async def test_api_error_envelope(bare_client):
    r = await bare_client.get("/bad")
    assert r.status_code == 400
    assert r.json() == {
        "statusCode": 400,
        "message": "All fields are required",
        "success": False,
        "errors": ["fullName"],
    }


@pytest.mark.asyncio
async def test_default_messages(bare_client):
    r = await bare_client.get("/conflict")
    assert r.status_code == 409
    assert r.json()["message"] == "Resource already exists"

    r = await bare_client.get("/missing")
    assert r.status_code == 404
    assert r.json()["message"] == "User does not exist"


@pytest.mark.asyncio
async def test_unauthorized_sets_challenge(bare_client):
    r = await bare_client.get("/unauthorized")
    assert r.status_code == 401
    assert r.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_http_exception_keeps_status(bare_client):
    r = await bare_client.get("/http")
    assert r.status_code == 418
    assert r.json()["message"] == "short and stout"
    assert r.json()["success"] is False


@pytest.mark.asyncio
async def test_unknown_route_is_enveloped(bare_client):
    r = await bare_client.get("/nowhere")
    assert r.status_code == 404
    assert r.json()["statusCode"] == 404


@pytest.mark.asyncio
async def test_validation_error_is_bad_request(bare_client):
    r = await bare_client.post("/payload", json={"count": "many"})
    assert r.status_code == 400
    body = r.json()
    assert body["message"] == "Invalid request payload"
    assert body["errors"][0]["field"] == "count"


@pytest.mark.asyncio
async def test_integrity_errors(bare_client):
    r = await bare_client.get("/unique")
    assert r.status_code == 409

    r = await bare_client.get("/not-null")
    assert r.status_code == 400


@pytest.mark.asyncio
async def test_unexpected_error_hides_details(bare_client):
    r = await bare_client.get("/boom")
    assert r.status_code == 500
    assert r.json()["message"] == "Internal server error"
    assert "secret" not in r.text
