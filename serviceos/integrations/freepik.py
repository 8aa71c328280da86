"""Freepik stock photo API client.

Overview
--------
Thin async HTTP client over the parts of the Freepik API the media library
uses: photo search and download links. Authentication is the
``x-freepik-api-key`` header.

Errors
------
All HTTP errors are raised as ``IntegrationError`` with the upstream status
code and body.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Literal, Optional, Tuple

import httpx
from pydantic import BaseModel, Field

from serviceos.core.errors import IntegrationError
from serviceos.server.core.config import FreepikConfig

Orientation = Literal["landscape", "portrait", "square"]
License = Literal["freemium", "premium"]
DownloadSize = Literal["small", "medium", "large", "original"]


class StockImage(BaseModel):
    id: int
    title: str = ""
    url: str = ""
    thumbnail_url: str = ""
    author: str = ""
    licenses: List[str] = Field(default_factory=lambda: ["freemium"])
    orientation: str = "landscape"


class StockSearchResult(BaseModel):
    images: List[StockImage]
    current_page: int
    last_page: int
    total: int


class FreepikClient:
    """Async client for the Freepik resources API."""

    def __init__(self, config: FreepikConfig, *, client: Optional[httpx.AsyncClient] = None) -> None:
        self.base_url = config.base_url.rstrip("/")
        self.api_key = config.api_key
        self._client = client or httpx.AsyncClient(timeout=config.timeout, follow_redirects=True)
        self._logger = logging.getLogger(__name__)

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise IntegrationError("Freepik is not configured")
        return {"x-freepik-api-key": self.api_key, "Accept": "application/json"}

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            r = await self._client.get(f"{self.base_url}{path}", params=params, headers=self._headers())
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise IntegrationError(
                f"Freepik API error {e.response.status_code}",
                upstream_status=e.response.status_code,
                details=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise IntegrationError(f"Freepik request failed: {e}") from e
        return r.json()

    async def search(
        self,
        query: str,
        *,
        page: int = 1,
        limit: int = 20,
        orientation: Optional[Orientation] = None,
        license: Optional[License] = None,
    ) -> StockSearchResult:
        """Search stock photos.

        API
        ---
        - Method/Path: ``GET /resources``
        - Query: ``term``, ``page``, ``limit``, ``filters[content_type][photo]=1``
          plus optional orientation and license filters

        Returns:
            ``StockSearchResult`` with the page of images and paging metadata.
        """
        params: Dict[str, Any] = {
            "term": query,
            "page": page,
            "limit": limit,
            "filters[content_type][photo]": 1,
        }
        if orientation:
            params[f"filters[orientation][{orientation}]"] = 1
        if license:
            params[f"filters[license][{license}]"] = 1

        data = await self._get("/resources", params)
        images = [self._to_image(item) for item in data.get("data") or []]
        meta = data.get("meta") or {}
        return StockSearchResult(
            images=images,
            current_page=meta.get("current_page") or page,
            last_page=meta.get("last_page") or 1,
            total=meta.get("total") or len(images),
        )

    async def download_link(self, resource_id: str, size: DownloadSize = "small") -> Tuple[str, str]:
        """Signed download URL of a resource.

        Returns:
            ``(filename, url)``; the filename defaults to ``freepik-<id>.jpg``.
        """
        data = (await self._get(f"/resources/{resource_id}/download", {"size": size})).get("data") or {}
        url = data.get("url")
        if not url:
            raise IntegrationError("No download URL returned from Freepik")
        return data.get("filename") or f"freepik-{resource_id}.jpg", url

    async def fetch(self, url: str) -> Tuple[bytes, str]:
        """Download a file from a signed URL.

        Returns:
            ``(content, content_type)``
        """
        try:
            r = await self._client.get(url)
            r.raise_for_status()
        except httpx.HTTPError as e:
            raise IntegrationError("Failed to download image from Freepik") from e
        return r.content, r.headers.get("content-type", "image/jpeg").split(";")[0]

    @staticmethod
    def _to_image(item: Dict[str, Any]) -> StockImage:
        image = item.get("image") or {}
        licenses = item.get("licenses")
        return StockImage(
            id=item["id"],
            title=item.get("title") or "",
            url=item.get("url") or "",
            thumbnail_url=(image.get("source") or {}).get("url") or "",
            author=(item.get("author") or {}).get("name") or "",
            licenses=(
                [entry.get("type", "freemium") for entry in licenses] if isinstance(licenses, list) else ["freemium"]
            ),
            orientation=image.get("orientation") or item.get("orientation") or "landscape",
        )
