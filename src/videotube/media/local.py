"""Local directory backend — for development without a Cloudinary account.

Files are written under settings.media_root with a random name that
keeps the original extension. Serve that directory (or mount it with
StaticFiles) at settings.media_base_url.
"""

import asyncio
import uuid
from pathlib import Path
from typing import Optional

from videotube.config import settings
from videotube.media.base import MediaUploader, MediaUploadError, UploadedMedia


class LocalUploader(MediaUploader):
    def __init__(
        self,
        root: Optional[str] = None,
        base_url: Optional[str] = None,
    ):
        self.root = Path(root or settings.media_root)
        self.base_url = (base_url or settings.media_base_url).rstrip("/")

    @property
    def name(self) -> str:
        return "local"

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> UploadedMedia:
        suffix = Path(filename or "").suffix.lower()
        public_id = f"{uuid.uuid4().hex}{suffix}"
        target = self.root / public_id
        try:
            await asyncio.to_thread(self._write, target, content)
        except OSError as e:
            raise MediaUploadError(f"Could not store {filename}: {e}") from e
        return UploadedMedia(url=f"{self.base_url}/{public_id}", public_id=public_id)

    @staticmethod
    def _write(target: Path, content: bytes) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(content)
