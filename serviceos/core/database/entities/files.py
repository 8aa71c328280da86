"""
File library entity.

Every uploaded or imported media item is one row; the binary lives in cloud
storage and is referenced by ``storage_provider`` plus ``storage_key``.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from sqlalchemy import JSON
from sqlmodel import Field

from ..base import TenantBase


class MediaType(str, Enum):
    IMAGE = "IMAGE"
    DOCUMENT = "DOCUMENT"
    VIDEO = "VIDEO"
    AUDIO = "AUDIO"
    OTHER = "OTHER"


class StorageProvider(str, Enum):
    CLOUDINARY = "CLOUDINARY"
    VERCEL_BLOB = "VERCEL_BLOB"
    EXTERNAL = "EXTERNAL"


class AiStatus(str, Enum):
    """Progress of the LLM description of a file."""

    PENDING = "PENDING"
    ANALYZING = "ANALYZING"
    COMPLETE = "COMPLETE"
    FAILED = "FAILED"


class File(TenantBase, table=True):
    """Media library item.

    Table: files
    """

    __tablename__ = "files"

    name: str = Field(description="Display name")
    file_name: str = Field(description="Original file name")
    mime_type: str
    size: int = Field(default=0, ge=0, description="Size in bytes")
    url: str
    storage_provider: StorageProvider = Field(default=StorageProvider.CLOUDINARY)
    storage_key: Optional[str] = Field(default=None, description="Public id or blob URL in the storage provider")
    media_type: MediaType = Field(default=MediaType.OTHER, index=True)
    folder: Optional[str] = Field(default=None, index=True)
    tags: List[str] = Field(default_factory=list, sa_type=JSON)
    ai_description: Optional[str] = Field(default=None)
    ai_status: AiStatus = Field(default=AiStatus.PENDING)
    client_id: Optional[str] = Field(default=None, foreign_key="clients.id", index=True)
    width: Optional[int] = Field(default=None)
    height: Optional[int] = Field(default=None)
    source: Optional[str] = Field(default=None, description="Where the file came from, e.g. upload or freepik")

    def __repr__(self) -> str:
        return f"File(id={self.id}, name={self.name}, media_type={self.media_type})"
