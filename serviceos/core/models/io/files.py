"""
File library I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from serviceos.core.database.entities.files import AiStatus, MediaType, StorageProvider
from serviceos.core.database.repositories.files import normalize_tags

from .common import PartialUpdate


class FileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    file_name: str
    mime_type: str
    size: int
    url: str
    storage_provider: StorageProvider
    media_type: MediaType
    folder: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    ai_description: Optional[str] = None
    ai_status: AiStatus
    client_id: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    source: Optional[str] = None
    created_at: datetime


class FileUpdate(PartialUpdate):
    not_nullable = ("name", "tags")

    name: Optional[str] = Field(default=None, min_length=1)
    folder: Optional[str] = None
    tags: Optional[List[str]] = None
    client_id: Optional[str] = None
    ai_description: Optional[str] = None

    @field_validator("tags")
    @classmethod
    def _normalize(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return normalize_tags(value) if value is not None else None


class FileListResponse(BaseModel):
    files: List[FileRead]
    total: int
    page: int
    total_pages: int


class SmartSearchRequest(BaseModel):
    query: str = Field(min_length=1)
    limit: int = Field(default=40, gt=0, le=200)


class SmartSearchResponse(BaseModel):
    files: List[FileRead]
    total: int
    keywords: List[str]


class FreepikImportRequest(BaseModel):
    resource_id: str = Field(min_length=1, description="Freepik resource id")
    folder: Optional[str] = None
    name: Optional[str] = None
