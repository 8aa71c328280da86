"""
Blog entity models.

Posts belong to an organization and are linked to categories and tags through
association tables. A publication row marks a post as live on one site.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, UniqueConstraint
from sqlmodel import Field

from ..base import Base, TenantBase, utc_now_naive


class PostStatus(str, Enum):
    """Publication state of a blog post."""

    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    SCHEDULED = "SCHEDULED"
    ARCHIVED = "ARCHIVED"


class BlogPost(TenantBase, table=True):
    """Blog article.

    Table: blog_posts
    """

    __tablename__ = "blog_posts"
    __table_args__ = (UniqueConstraint("organization_id", "slug"),)

    title: str
    slug: str = Field(index=True)
    excerpt: Optional[str] = Field(default=None)
    content: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON, description='Rendered body as {"html": ...}')
    status: PostStatus = Field(default=PostStatus.DRAFT, index=True)
    featured: bool = Field(default=False)
    cover_image_url: Optional[str] = Field(default=None)
    meta_title: Optional[str] = Field(default=None)
    meta_description: Optional[str] = Field(default=None)
    published_at: Optional[datetime] = Field(default=None, sa_type=DateTime)

    def __repr__(self) -> str:
        return f"BlogPost(id={self.id}, slug={self.slug}, status={self.status})"


class BlogCategory(TenantBase, table=True):
    """Table: blog_categories"""

    __tablename__ = "blog_categories"
    __table_args__ = (UniqueConstraint("organization_id", "slug"),)

    name: str
    slug: str


class BlogTag(TenantBase, table=True):
    """Table: blog_tags"""

    __tablename__ = "blog_tags"
    __table_args__ = (UniqueConstraint("organization_id", "slug"),)

    name: str
    slug: str


class BlogPostCategory(Base, table=True):
    """Association between posts and categories."""

    __tablename__ = "blog_post_categories"

    post_id: str = Field(foreign_key="blog_posts.id", primary_key=True)
    category_id: str = Field(foreign_key="blog_categories.id", primary_key=True)


class BlogPostTag(Base, table=True):
    """Association between posts and tags."""

    __tablename__ = "blog_post_tags"

    post_id: str = Field(foreign_key="blog_posts.id", primary_key=True)
    tag_id: str = Field(foreign_key="blog_tags.id", primary_key=True)


class BlogPostPublication(Base, table=True):
    """A post published on one site.

    Table: blog_post_publications
    """

    __tablename__ = "blog_post_publications"

    post_id: str = Field(foreign_key="blog_posts.id", primary_key=True)
    site_id: str = Field(foreign_key="sites.id", primary_key=True)
    published_at: datetime = Field(default_factory=utc_now_naive, sa_type=DateTime)
