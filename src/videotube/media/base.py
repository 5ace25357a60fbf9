"""Media uploader base — pluggable interface for image storage backends.

Learn: Avatars and cover images don't live in the database. They are
pushed to a media backend first and only the resulting public URL is
stored on the user row. Each backend knows how to:
1. Accept raw file bytes plus the client-supplied filename/content type
2. Store them somewhere reachable over HTTP
3. Return the public URL (and an id the backend can use to find it again)
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


class MediaUploadError(Exception):
    """Raised when a backend fails to store a file."""


@dataclass
class UploadedMedia:
    """Result of a successful upload."""

    url: str
    public_id: str


class MediaUploader(ABC):
    """Abstract base for media upload backends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry name of this backend."""

    @abstractmethod
    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> UploadedMedia:
        """Store the file and return where it can be fetched.

        Raises MediaUploadError on failure.
        """
