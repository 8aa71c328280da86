"""
Site builder entity models.

A site is served on its own subdomain and made of pages whose content is a
list of blocks. Each site has one theme and an ordered navigation menu.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, UniqueConstraint
from sqlmodel import Field

from ..base import TenantBase, TimestampedBase


class SiteStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"


class Site(TenantBase, table=True):
    """Table: sites"""

    __tablename__ = "sites"

    name: str
    subdomain: str = Field(index=True, unique=True)
    description: Optional[str] = Field(default=None)
    status: SiteStatus = Field(default=SiteStatus.DRAFT)
    portal_enabled: bool = Field(default=False, description="Whether clients can sign in to the portal here")

    def __repr__(self) -> str:
        return f"Site(id={self.id}, subdomain={self.subdomain})"


class SiteTheme(TimestampedBase, table=True):
    """Table: site_themes"""

    __tablename__ = "site_themes"

    site_id: str = Field(foreign_key="sites.id", unique=True)
    primary_color: str = Field(default="#2563eb")
    secondary_color: str = Field(default="#64748b")
    background_color: str = Field(default="#ffffff")
    text_color: str = Field(default="#0f172a")
    heading_font: str = Field(default="Inter")
    body_font: str = Field(default="Inter")


class Page(TimestampedBase, table=True):
    """Table: pages"""

    __tablename__ = "pages"
    __table_args__ = (UniqueConstraint("site_id", "slug"),)

    site_id: str = Field(foreign_key="sites.id", index=True)
    title: str
    slug: str
    content: Dict[str, Any] = Field(default_factory=lambda: {"blocks": []}, sa_type=JSON)
    is_homepage: bool = Field(default=False)
    is_published: bool = Field(default=False)
    meta_title: Optional[str] = Field(default=None)
    meta_description: Optional[str] = Field(default=None)


class NavigationItem(TimestampedBase, table=True):
    """Table: navigation_items"""

    __tablename__ = "navigation_items"

    site_id: str = Field(foreign_key="sites.id", index=True)
    label: str
    href: str
    position: int = Field(default=0)
