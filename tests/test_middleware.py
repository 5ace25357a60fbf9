"""Tests for middleware — security headers, request IDs, rate limiting.

Learn: Rate limiting is skipped unless a Redis pool is initialized, so
the rate limit tests plug a tiny in-memory stand-in into videotube.cache.
"""

import pytest


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    """Health endpoint returns security headers."""
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["X-Frame-Options"] == "DENY"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert "camera=()" in r.headers["Permissions-Policy"]


@pytest.mark.asyncio
async def test_hsts_on_https(client):
    r = await client.get("/api/v1/health")
    assert r.headers["Strict-Transport-Security"].startswith("max-age=")


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    """HSTS header is NOT set on plain HTTP connections."""
    r = await client.get("http://test/api/v1/health")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_account_responses_not_cached(client, login):
    r = await login(username="nobody")
    assert r.headers["Cache-Control"] == "no-store"


@pytest.mark.asyncio
async def test_request_id_generated(client):
    """Each request gets a unique X-Request-ID header."""
    r1 = await client.get("/api/v1/health")
    r2 = await client.get("/api/v1/health")
    assert "X-Request-ID" in r1.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    """Incoming X-Request-ID is propagated through the response."""
    custom_id = "test-trace-12345"
    r = await client.get("/api/v1/health", headers={"X-Request-ID": custom_id})
    assert r.headers["X-Request-ID"] == custom_id


@pytest.mark.asyncio
async def test_malformed_request_id_replaced(client):
    r = await client.get("/api/v1/health", headers={"X-Request-ID": "bad id; drop table"})
    assert r.headers["X-Request-ID"] != "bad id; drop table"
    assert len(r.headers["X-Request-ID"]) == 32


class InMemoryRedis:
    def __init__(self):
        self.counters: dict[str, int] = {}

    async def incr(self, key):
        self.counters[key] = self.counters.get(key, 0) + 1
        return self.counters[key]

    async def expire(self, key, seconds):
        return True

    async def ping(self):
        return True


@pytest.mark.asyncio
async def test_rate_limit_blocks_credential_endpoints(client, monkeypatch):
    from videotube.config import settings

    monkeypatch.setattr("videotube.cache._redis", InMemoryRedis())

    for _ in range(settings.rate_limit_auth_rpm):
        r = await client.post("/api/v1/users/login", json={})
        assert r.status_code == 400

    r = await client.post("/api/v1/users/login", json={})
    assert r.status_code == 429
    assert r.headers["Retry-After"] == "60"
    body = r.json()
    assert body["statusCode"] == 429
    assert body["success"] is False

    # Other routes use their own bucket
    r = await client.get("/api/v1/health")
    assert r.status_code == 200
    assert r.headers["X-RateLimit-Limit"] == str(settings.rate_limit_rpm)
    assert r.json()["redis"] == "ok"


@pytest.mark.asyncio
async def test_rate_limit_skipped_without_redis(client):
    r = await client.get("/api/v1/health")
    assert "X-RateLimit-Limit" not in r.headers
