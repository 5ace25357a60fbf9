"""
Shared helpers for VideoTube examples.

Handles the health check and a throwaway account (register + login)
so each example can focus on its specific workflow.
"""

import sys
import uuid

import httpx

BASE = "http://localhost:8000/api/v1"

# 1x1 transparent PNG, enough to pass the "must be an image" check
PIXEL_PNG = bytes.fromhex(
    "89504e470d0a1a0a0000000d4948445200000001000000010806000000"
    "1f15c4890000000d49444154789c6360000002000154a24f5d0000000049454e44ae426082"
)


def check_backend() -> None:
    """Verify the backend is reachable and its database is up."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Backend not reachable at {BASE}")
        print("Start it with:  uvicorn videotube.main:app --reload --port 8000")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print("Backend health:")
    print(f"  Database: {'✓' if health['database'] == 'ok' else '✗'}")
    print(f"  Redis:    {'✓' if health['redis'] == 'ok' else '✗'}")

    if health["database"] != "ok":
        print("\nERROR: Database is not connected. Start it with: docker compose up -d")
        sys.exit(1)


def new_identity() -> dict:
    """A unique username/email/password per run so examples are idempotent."""
    run_id = uuid.uuid4().hex[:8]
    return {
        "username": f"demo_{run_id}",
        "email": f"demo-{run_id}@example.com",
        "fullName": f"Demo User {run_id}",
        "password": "demo-password-123",
    }


def register(client: httpx.Client, identity: dict) -> dict:
    """Register an account with a generated avatar; returns the user."""
    resp = client.post(
        "/users/register",
        data=identity,
        files={"avatar": ("avatar.png", PIXEL_PNG, "image/png")},
    )
    if resp.status_code != 201:
        print(f"ERROR: Registration failed: {resp.status_code} {resp.text}")
        sys.exit(1)
    return resp.json()["data"]


def login(client: httpx.Client, identity: dict) -> dict:
    """Log in by username; the client keeps the session cookies."""
    resp = client.post(
        "/users/login",
        json={"username": identity["username"], "password": identity["password"]},
    )
    if resp.status_code != 200:
        print(f"ERROR: Login failed: {resp.status_code} {resp.text}")
        sys.exit(1)
    return resp.json()["data"]
