"""
Blog I/O models for API requests and responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from serviceos.core.database.entities.blog import BlogPost, PostStatus

from .common import PartialUpdate


class BlogPostRead(BaseModel):
    """Schema for reading a blog post with its category and tag names."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    slug: str
    excerpt: Optional[str] = None
    html: str = ""
    status: PostStatus
    featured: bool
    cover_image_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    published_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    categories: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    site_ids: Optional[List[str]] = Field(default=None, description="Sites the post is published on")

    @classmethod
    def from_entity(
        cls,
        post: BlogPost,
        categories: Optional[List[str]] = None,
        tags: Optional[List[str]] = None,
        site_ids: Optional[List[str]] = None,
    ) -> "BlogPostRead":
        return cls(
            **post.model_dump(exclude={"content", "organization_id"}),
            html=(post.content or {}).get("html", ""),
            categories=categories or [],
            tags=tags or [],
            site_ids=site_ids,
        )


class BlogPostCreate(BaseModel):
    """Schema for creating a blog post via API."""

    title: str = Field(min_length=1)
    slug: Optional[str] = Field(default=None, description="Derived from the title when omitted")
    html: str = Field(default="", description="Post body as HTML")
    excerpt: Optional[str] = None
    status: PostStatus = PostStatus.DRAFT
    featured: bool = False
    cover_image_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    categories: List[str] = Field(default_factory=list, description="Category names, created when missing")
    tags: List[str] = Field(default_factory=list, description="Tag names, created when missing")


class BlogPostUpdate(PartialUpdate):
    """Schema for updating a blog post; ``categories``/``tags`` replace the current ones when given."""

    not_nullable = ("title", "slug", "html", "status", "featured")

    title: Optional[str] = Field(default=None, min_length=1)
    slug: Optional[str] = Field(default=None, min_length=1)
    html: Optional[str] = None
    excerpt: Optional[str] = None
    status: Optional[PostStatus] = None
    featured: Optional[bool] = None
    cover_image_url: Optional[str] = None
    meta_title: Optional[str] = None
    meta_description: Optional[str] = None
    categories: Optional[List[str]] = None
    tags: Optional[List[str]] = None


class PublishRequest(BaseModel):
    site_ids: Optional[List[str]] = Field(
        default=None, description="Sites to publish on; every site of the organization when omitted"
    )


class TaxonomyCreate(BaseModel):
    name: str = Field(min_length=1)
    slug: Optional[str] = None


class TaxonomyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    slug: str


class BlogStats(BaseModel):
    total: int
    by_status: Dict[str, int] = Field(alias="byStatus")

    model_config = ConfigDict(populate_by_name=True)
