"""Cloud storage for the media library.

Overview
--------
Uploads go to Cloudinary through the official SDK. Deletion understands both
providers a file can live in: Cloudinary (``destroy`` by public id) and
Vercel Blob (HTTP ``delete`` by blob URL). The Cloudinary SDK is blocking, so
its calls run in the threadpool.

Errors
------
Every provider failure is raised as ``IntegrationError``. Callers decide
whether a failure is fatal; file deletion, for one, only logs it.
"""

from __future__ import annotations

import io
import logging
from typing import Any, Dict, Optional

import cloudinary.uploader
import httpx
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from serviceos.core.database.entities.files import File, MediaType, StorageProvider
from serviceos.core.errors import IntegrationError
from serviceos.server.core.config import BlobConfig, CloudinaryConfig

logger = logging.getLogger(__name__)

DOCUMENT_MIME_MARKERS = ("pdf", "msword", "vnd.openxmlformats")


def get_media_type(mime_type: Optional[str]) -> MediaType:
    """Classify a mime type into the library's media types."""
    mime = (mime_type or "").lower()
    if mime.startswith("image/"):
        return MediaType.IMAGE
    if mime.startswith("video/"):
        return MediaType.VIDEO
    if mime.startswith("audio/"):
        return MediaType.AUDIO
    if mime.startswith("text/") or any(marker in mime for marker in DOCUMENT_MIME_MARKERS):
        return MediaType.DOCUMENT
    return MediaType.OTHER


def get_resource_type(mime_type: Optional[str]) -> str:
    """Cloudinary resource type for a mime type: ``image``, ``video`` or ``raw``."""
    mime = (mime_type or "").lower()
    if mime.startswith("image/"):
        return "image"
    if mime.startswith("video/"):
        return "video"
    return "raw"


def thumbnail_url(url: str, width: int = 300, height: int = 300) -> str:
    """Cloudinary delivery URL cropped to ``width`` x ``height``; other URLs pass through."""
    if "/upload/" not in url:
        return url
    return url.replace("/upload/", f"/upload/w_{width},h_{height},c_fill,f_auto,q_auto/", 1)


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


class UploadResult(BaseModel):
    """What the storage provider reports for a stored object."""

    public_id: str
    secure_url: str
    bytes: int
    resource_type: str
    width: Optional[int] = None
    height: Optional[int] = None


class MediaStorage:
    """Upload to Cloudinary and delete from Cloudinary or Vercel Blob."""

    def __init__(
        self,
        cloudinary_config: CloudinaryConfig,
        blob_config: BlobConfig,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.cloudinary_config = cloudinary_config
        self.blob_config = blob_config
        self._http = http_client
        self._logger = logger

    def _cloudinary_options(self) -> Dict[str, Any]:
        config = self.cloudinary_config
        if not (config.cloud_name and config.api_key and config.api_secret):
            raise IntegrationError("Cloudinary is not configured")
        return {
            "cloud_name": config.cloud_name,
            "api_key": config.api_key,
            "api_secret": config.api_secret,
            "secure": True,
        }

    def media_folder(self, organization_id: str, folder: Optional[str] = None) -> str:
        """Cloudinary folder of an organization's media, e.g. ``servible/<org>/media/general``."""
        return f"{self.cloudinary_config.root_folder}/{organization_id}/media/{folder or 'general'}"

    async def upload(self, data: bytes, *, folder: str, mime_type: Optional[str]) -> UploadResult:
        """Store ``data`` in Cloudinary under ``folder``.

        Raises:
            IntegrationError: Cloudinary is not configured or rejected the upload.
        """
        options = self._cloudinary_options()
        resource_type = get_resource_type(mime_type)
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.upload,
                io.BytesIO(data),
                folder=folder,
                resource_type=resource_type,
                **options,
            )
        except Exception as e:
            raise IntegrationError(f"Cloudinary upload failed: {e}") from e
        self._logger.debug(f"Uploaded {result.get('public_id')} ({result.get('bytes')} bytes) to Cloudinary")
        return UploadResult(
            public_id=result["public_id"],
            secure_url=result["secure_url"],
            bytes=result.get("bytes", len(data)),
            resource_type=result.get("resource_type", resource_type),
            width=result.get("width"),
            height=result.get("height"),
        )

    async def delete(self, file: File) -> None:
        """Remove the stored object behind ``file``.

        Raises:
            IntegrationError: The provider is unconfigured or the deletion failed.
        """
        if not file.storage_key:
            return
        if file.storage_provider == StorageProvider.CLOUDINARY:
            await self._destroy_cloudinary(file.storage_key, get_resource_type(file.mime_type))
        elif file.storage_provider == StorageProvider.VERCEL_BLOB:
            await self._delete_blob(file.storage_key)

    async def _destroy_cloudinary(self, public_id: str, resource_type: str) -> None:
        options = self._cloudinary_options()
        try:
            result = await run_in_threadpool(
                cloudinary.uploader.destroy, public_id, resource_type=resource_type, invalidate=True, **options
            )
        except Exception as e:
            raise IntegrationError(f"Cloudinary destroy failed: {e}") from e
        if result.get("result") not in ("ok", "not found"):
            raise IntegrationError(f"Cloudinary destroy failed: {result}", details=result)

    async def _delete_blob(self, url: str) -> None:
        token = self.blob_config.read_write_token
        if not token:
            raise IntegrationError("Vercel Blob is not configured")
        client = self._http or httpx.AsyncClient(timeout=10.0)
        try:
            r = await client.post(
                f"{self.blob_config.api_url.rstrip('/')}/delete",
                json={"urls": [url]},
                headers={"Authorization": f"Bearer {token}"},
            )
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise IntegrationError(
                f"Vercel Blob delete failed: {e.response.status_code}",
                upstream_status=e.response.status_code,
                details=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise IntegrationError(f"Vercel Blob delete failed: {e}") from e
        finally:
            if self._http is None:
                await client.aclose()
