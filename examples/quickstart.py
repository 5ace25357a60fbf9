#!/usr/bin/env python3
"""
VideoTube Quickstart — the whole account lifecycle in one script.

Registers → logs in → reads the current user → updates the profile →
rotates tokens → changes the password → logs out.
Run with: python examples/quickstart.py

Requires: pip install httpx
Backend must be running: http://localhost:8000 with
VIDEOTUBE_MEDIA_BACKEND=local and VIDEOTUBE_COOKIE_SECURE=false
(so cookies travel over plain http).
"""

import sys

import httpx

from _common import BASE, PIXEL_PNG, check_backend, login, new_identity, register


def main():
    check_backend()
    identity = new_identity()
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Register ──────────────────────────────────────────────────
    print("\n1. Registering...")
    user = register(client, identity)
    print(f"   User:   {user['username']} ({user['id'][:8]}...)")
    print(f"   Avatar: {user['avatar']}")

    # ── Duplicate registration is rejected ────────────────────────
    resp = client.post(
        "/users/register",
        data=identity,
        files={"avatar": ("avatar.png", PIXEL_PNG, "image/png")},
    )
    print(f"   Registering again → {resp.status_code} {resp.json()['message']}")

    # ── Login ─────────────────────────────────────────────────────
    print("\n2. Logging in...")
    session = login(client, identity)
    print(f"   Access token:  {session['accessToken'][:24]}...")
    print(f"   Refresh token: {session['refreshToken'][:24]}...")
    print(f"   Cookies set:   {sorted(client.cookies.keys())}")

    # ── Current user (cookie auth) ────────────────────────────────
    print("\n3. Fetching current user...")
    resp = client.get("/users/current-user")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   {resp.json()['data']['fullName']} <{resp.json()['data']['email']}>")

    # ── Update profile ────────────────────────────────────────────
    print("\n4. Updating account details and cover image...")
    resp = client.patch("/users/update-account", json={
        "fullName": "Renamed Demo User",
        "email": identity["email"],
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    resp = client.patch(
        "/users/cover-image",
        files={"coverImage": ("cover.png", PIXEL_PNG, "image/png")},
    )
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   Cover: {resp.json()['data']['coverImage']}")

    # ── Rotate tokens ─────────────────────────────────────────────
    print("\n5. Refreshing tokens...")
    old_refresh = session["refreshToken"]
    resp = client.post("/users/refresh-token")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print("   New pair issued")

    resp = httpx.post(
        f"{BASE}/users/refresh-token",
        json={"refreshToken": old_refresh},
        timeout=10,
    )
    print(f"   Reusing the old refresh token → {resp.status_code} {resp.json()['message']}")

    # ── Change password ───────────────────────────────────────────
    print("\n6. Changing password...")
    resp = client.post("/users/change-password", json={
        "oldPassword": identity["password"],
        "newPassword": "a-brand-new-password",
    })
    assert resp.status_code == 200, f"Failed: {resp.text}"
    print(f"   {resp.json()['message']}")

    # ── Logout ────────────────────────────────────────────────────
    print("\n7. Logging out...")
    resp = client.post("/users/logout")
    assert resp.status_code == 200, f"Failed: {resp.text}"
    resp = client.post("/users/refresh-token")
    print(f"   Refresh after logout → {resp.status_code}")

    print("\n✓ Done")
    return 0


if __name__ == "__main__":
    sys.exit(main())
