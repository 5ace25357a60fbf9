"""Media uploader registry — pluggable image storage backends.

The registry provides a simple interface:
    uploader = get_uploader("cloudinary")
    media = await uploader.upload(content, "me.png", "image/png")

The active backend comes from settings.media_backend and reaches routes
through the get_media_uploader dependency (tests override it).
"""

from videotube.config import settings
from videotube.media.base import MediaUploader, MediaUploadError, UploadedMedia
from videotube.media.cloudinary import CloudinaryUploader
from videotube.media.local import LocalUploader

__all__ = [
    "MediaUploader",
    "MediaUploadError",
    "UploadedMedia",
    "get_media_uploader",
    "get_uploader",
    "list_uploaders",
    "register_uploader",
]

# ─── Registry ──────────────────────────────────────────────

_UPLOADERS: dict[str, type[MediaUploader]] = {
    "cloudinary": CloudinaryUploader,
    "local": LocalUploader,
}


def get_uploader(name: str) -> MediaUploader:
    """Get an uploader instance by name.

    Raises ValueError if the backend is not registered.
    """
    cls = _UPLOADERS.get(name)
    if not cls:
        available = ", ".join(sorted(_UPLOADERS.keys()))
        raise ValueError(f"Unknown media backend '{name}'. Available: {available}")
    return cls()


def list_uploaders() -> list[str]:
    """List registered backend names."""
    return sorted(_UPLOADERS.keys())


def register_uploader(name: str, uploader_cls: type[MediaUploader]) -> None:
    """Register a custom backend (e.g. S3) without touching this module."""
    _UPLOADERS[name] = uploader_cls


def get_media_uploader() -> MediaUploader:
    """FastAPI dependency — the configured media backend."""
    return get_uploader(settings.media_backend)
