"""Cloudinary backend — signed uploads over the REST API.

Learn: Cloudinary's upload endpoint takes a multipart form with the file
and a signature. The signature is SHA-1 over the signed params sorted by
name and joined as "k=v&k=v", with the API secret appended. We talk to
it with httpx instead of the vendor SDK so the call stays async.
"""

import hashlib
import time
from typing import Optional

import httpx
import structlog

from videotube.config import settings
from videotube.media.base import MediaUploader, MediaUploadError, UploadedMedia

logger = structlog.get_logger()

API_BASE = "https://api.cloudinary.com/v1_1"


def sign_params(params: dict[str, str], api_secret: str) -> str:
    """Compute the Cloudinary request signature for the given params."""
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k])
    return hashlib.sha1(f"{to_sign}{api_secret}".encode("utf-8")).hexdigest()


class CloudinaryUploader(MediaUploader):
    """Upload images to Cloudinary with resource_type=auto."""

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        folder: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.cloud_name = cloud_name or settings.cloudinary_cloud_name
        self.api_key = api_key or settings.cloudinary_api_key
        self.api_secret = api_secret or settings.cloudinary_api_secret
        self.folder = settings.cloudinary_folder if folder is None else folder
        self._transport = transport
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "cloudinary"

    @property
    def upload_url(self) -> str:
        return f"{API_BASE}/{self.cloud_name}/auto/upload"

    async def upload(
        self,
        content: bytes,
        filename: str,
        content_type: str,
    ) -> UploadedMedia:
        if not (self.cloud_name and self.api_key and self.api_secret):
            raise MediaUploadError("Cloudinary credentials are not configured")

        params = {"timestamp": str(int(time.time()))}
        if self.folder:
            params["folder"] = self.folder
        data = {
            **params,
            "api_key": self.api_key,
            "signature": sign_params(params, self.api_secret),
        }
        files = {"file": (filename, content, content_type)}

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self._timeout
            ) as client:
                resp = await client.post(self.upload_url, data=data, files=files)
        except httpx.HTTPError as e:
            logger.warning("media.cloudinary_unreachable", error=str(e))
            raise MediaUploadError(f"Cloudinary request failed: {e}") from e

        if resp.status_code != 200:
            try:
                detail = resp.json().get("error", {}).get("message", resp.text)
            except ValueError:
                detail = resp.text
            logger.warning(
                "media.cloudinary_rejected", status=resp.status_code, error=detail
            )
            raise MediaUploadError(f"Cloudinary upload failed: {detail}")

        body = resp.json()
        url = body.get("secure_url") or body.get("url")
        if not url:
            raise MediaUploadError("Cloudinary response did not include a URL")

        logger.info("media.uploaded", backend=self.name, public_id=body.get("public_id"))
        return UploadedMedia(url=url, public_id=body.get("public_id", ""))
