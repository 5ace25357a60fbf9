"""VideoTube CLI — drive the account API from a terminal.

Usage:
    videotube register alice --email a@example.com --full-name "Alice" --avatar me.png
    videotube login alice                 # or: videotube login a@example.com
    videotube whoami                      # Current user
    videotube refresh                     # Rotate the token pair
    videotube change-password
    videotube logout

Tokens from login/refresh are cached in a JSON credentials file
(~/.videotube/credentials.json, or $VIDEOTUBE_CREDENTIALS).
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import mimetypes
import os
import sys
from pathlib import Path
from typing import Optional

import click
import httpx

from videotube import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("VIDEOTUBE_API_URL", DEFAULT_API_URL).rstrip("/")


def _credentials_path() -> Path:
    override = os.environ.get("VIDEOTUBE_CREDENTIALS")
    if override:
        return Path(override)
    return Path.home() / ".videotube" / "credentials.json"


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the VideoTube backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0, headers=headers)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _load_credentials() -> dict:
    path = _credentials_path()
    if not path.exists():
        return {}
    try:
        return json.loads(path.read_text())
    except (OSError, ValueError):
        return {}


def _save_credentials(data: dict) -> None:
    path = _credentials_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2))
    path.chmod(0o600)


def _clear_credentials() -> None:
    path = _credentials_path()
    if path.exists():
        path.unlink()


def _require_token(kind: str = "accessToken") -> str:
    token = _load_credentials().get(kind)
    if not token:
        click.secho("Not logged in. Run `videotube login` first.", fg="red", err=True)
        sys.exit(1)
    return token


def _unwrap(resp: httpx.Response) -> dict | None:
    """Return the envelope's data, or print its message and exit non-zero."""
    try:
        body = resp.json()
    except ValueError:
        body = {"message": resp.text}
    if resp.status_code >= 400:
        message = body.get("message") or f"HTTP {resp.status_code}"
        click.secho(f"Error ({resp.status_code}): {message}", fg="red", err=True)
        sys.exit(1)
    return body.get("data")


def _file_part(path: Path) -> tuple[str, bytes, str]:
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return path.name, path.read_bytes(), content_type


def _print_user(user: dict) -> None:
    click.secho(f"{user['username']}  <{user['email']}>", bold=True)
    click.echo(f"  Name:   {user['fullName']}")
    click.echo(f"  Id:     {user['id']}")
    click.echo(f"  Avatar: {user['avatar']}")
    if user.get("coverImage"):
        click.echo(f"  Cover:  {user['coverImage']}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="videotube")
def main():
    """VideoTube — manage your account from the command line."""


@main.command()
@click.argument("username")
@click.option("--email", required=True)
@click.option("--full-name", required=True)
@click.option("--avatar", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--cover-image", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.password_option()
def register(username: str, email: str, full_name: str, avatar: Path,
             cover_image: Optional[Path], password: str):
    """Create a new account."""
    _run(_register_impl(username, email, full_name, avatar, cover_image, password))


async def _register_impl(username: str, email: str, full_name: str, avatar: Path,
                         cover_image: Optional[Path], password: str):
    files = {"avatar": _file_part(avatar)}
    if cover_image:
        files["coverImage"] = _file_part(cover_image)

    async with _client() as c:
        r = await c.post("/api/v1/users/register", data={
            "username": username,
            "email": email,
            "fullName": full_name,
            "password": password,
        }, files=files)
    user = _unwrap(r)
    click.secho("Registered.", fg="green")
    _print_user(user)


@main.command()
@click.argument("identifier")
@click.password_option(confirmation_prompt=False)
def login(identifier: str, password: str):
    """Log in with a username or email."""
    _run(_login_impl(identifier, password))


async def _login_impl(identifier: str, password: str):
    key = "email" if "@" in identifier else "username"
    async with _client() as c:
        r = await c.post("/api/v1/users/login", json={key: identifier, "password": password})
    data = _unwrap(r)
    _save_credentials({
        "accessToken": data["accessToken"],
        "refreshToken": data["refreshToken"],
        "username": data["user"]["username"],
    })
    click.secho(f"Logged in as {data['user']['username']}.", fg="green")


@main.command()
def whoami():
    """Show the logged-in user."""
    _run(_whoami_impl())


async def _whoami_impl():
    async with _client(_require_token()) as c:
        r = await c.get("/api/v1/users/current-user")
    _print_user(_unwrap(r))


@main.command()
def refresh():
    """Exchange the cached refresh token for a new token pair."""
    _run(_refresh_impl())


async def _refresh_impl():
    refresh_token = _require_token("refreshToken")
    async with _client() as c:
        r = await c.post("/api/v1/users/refresh-token", json={"refreshToken": refresh_token})
    data = _unwrap(r)
    creds = _load_credentials()
    creds.update(accessToken=data["accessToken"], refreshToken=data["refreshToken"])
    _save_credentials(creds)
    click.secho("Tokens refreshed.", fg="green")


@main.command("change-password")
@click.option("--old-password", prompt=True, hide_input=True)
@click.option("--new-password", prompt=True, hide_input=True, confirmation_prompt=True)
def change_password(old_password: str, new_password: str):
    """Change the account password."""
    _run(_change_password_impl(old_password, new_password))


async def _change_password_impl(old_password: str, new_password: str):
    async with _client(_require_token()) as c:
        r = await c.post("/api/v1/users/change-password", json={
            "oldPassword": old_password,
            "newPassword": new_password,
        })
    _unwrap(r)
    click.secho("Password changed.", fg="green")


@main.command()
def logout():
    """Revoke the session and forget cached tokens."""
    _run(_logout_impl())


async def _logout_impl():
    async with _client(_require_token()) as c:
        r = await c.post("/api/v1/users/logout")
    _unwrap(r)
    _clear_credentials()
    click.secho("Logged out.", fg="green")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
