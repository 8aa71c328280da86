"""
Site builder I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from serviceos.core.database.entities.sites import SiteStatus

from .common import PartialUpdate

SUBDOMAIN_PATTERN = r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$"


class SiteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    subdomain: str
    description: Optional[str] = None
    status: SiteStatus
    portal_enabled: bool
    created_at: datetime
    updated_at: datetime
    page_count: Optional[int] = None


class SiteCreate(BaseModel):
    name: str = Field(min_length=1)
    subdomain: str = Field(pattern=SUBDOMAIN_PATTERN)
    description: Optional[str] = None


class SiteUpdate(PartialUpdate):
    not_nullable = ("name", "subdomain", "status", "portal_enabled")

    name: Optional[str] = Field(default=None, min_length=1)
    subdomain: Optional[str] = Field(default=None, pattern=SUBDOMAIN_PATTERN)
    description: Optional[str] = None
    status: Optional[SiteStatus] = None
    portal_enabled: Optional[bool] = None


class PageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    site_id: str
    title: str
    slug: str
    content: Dict[str, Any]
    is_homepage: bool
    is_published: bool
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PageCreate(BaseModel):
    title: str = Field(min_length=1)
    slug: str = Field(min_length=1)
    is_published: bool = False
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class PageUpdate(PartialUpdate):
    not_nullable = ("title", "slug", "content", "is_published")

    title: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = Field(default=None, min_length=1)
    content: Optional[Dict[str, Any]] = Field(default=None, description='Page body as {"blocks": [...]}')
    is_published: Optional[bool] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None


class NavigationItemIn(BaseModel):
    label: str = Field(min_length=1)
    href: str = Field(min_length=1)


class NavigationItemRead(NavigationItemIn):
    model_config = ConfigDict(from_attributes=True)

    id: str
    position: int


class ThemeUpdate(BaseModel):
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    background_color: Optional[str] = None
    text_color: Optional[str] = None
    heading_font: Optional[str] = None
    body_font: Optional[str] = None


class ThemeRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    site_id: str
    primary_color: str
    secondary_color: str
    background_color: str
    text_color: str
    heading_font: str
    body_font: str
