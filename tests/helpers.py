"""Shared test data."""

import uuid

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def unique_identity(prefix: str = "user") -> dict:
    suffix = uuid.uuid4().hex[:8]
    return {"username": f"{prefix}_{suffix}", "email": f"{prefix}-{suffix}@example.com"}
