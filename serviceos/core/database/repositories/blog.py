"""
Blog repositories.

Posts, their categories and tags, and publication of posts onto the
organization's sites. Used by the blog API routes and by the blog assistant's
tools alike.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Generic, Iterable, List, Optional, Tuple, Type, TypeVar

from sqlalchemy import func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from serviceos.core.errors import ConflictError, NotFoundError
from serviceos.core.text import to_slug

from ..base import utc_now_naive
from ..entities.blog import (
    BlogCategory,
    BlogPost,
    BlogPostCategory,
    BlogPostPublication,
    BlogPostTag,
    BlogTag,
    PostStatus,
)
from ..entities.sites import Site
from .base import TenantRepository

TaxonomyType = TypeVar("TaxonomyType", BlogCategory, BlogTag)

# Category names and tag names of a post.
PostTaxonomy = Tuple[List[str], List[str]]

SEARCH_LIMIT = 20


class TaxonomyRepository(TenantRepository[TaxonomyType], Generic[TaxonomyType]):
    """Shared behavior of blog categories and tags, both unique by slug."""

    def __init__(
        self,
        session: AsyncSession,
        model: Type[TaxonomyType],
        link_model: Type[BlogPostCategory] | Type[BlogPostTag],
        link_column: str,
        organization_id: str,
    ) -> None:
        super().__init__(session, model, organization_id)
        self.link_model = link_model
        self.link_column = link_column

    async def list_all(self) -> List[TaxonomyType]:
        result = await self.session.exec(self.scoped().order_by(self.model.name))
        return list(result.all())

    async def get_by_slug(self, slug: str) -> Optional[TaxonomyType]:
        result = await self.session.exec(self.scoped().where(self.model.slug == slug))
        return result.one_or_none()

    async def add(self, name: str, slug: Optional[str] = None) -> TaxonomyType:
        slug = to_slug(slug or name)
        if await self.get_by_slug(slug) is not None:
            raise ConflictError(f"A {self.label.lower()} with this slug already exists")
        return await self.create(self.model(name=name.strip(), slug=slug, organization_id=self.organization_id))

    async def find_or_create(self, names: Iterable[str]) -> List[TaxonomyType]:
        """Resolve names to rows by slug, flushing the missing ones without committing."""
        found: Dict[str, TaxonomyType] = {}
        for name in names:
            slug = to_slug(name)
            if not slug or slug in found:
                continue
            row = await self.get_by_slug(slug)
            if row is None:
                row = self.model(name=name.strip(), slug=slug, organization_id=self.organization_id)
                self.session.add(row)
            found[slug] = row
        await self.session.flush()
        return list(found.values())

    async def delete(self, entity_id: str) -> bool:
        entity = await self.get_by_id(entity_id)
        if entity is None:
            return False
        links = await self.session.exec(
            select(self.link_model).where(getattr(self.link_model, self.link_column) == entity_id)
        )
        for link in links.all():
            await self.session.delete(link)
        await self.session.delete(entity)
        await self.session.commit()
        return True


class BlogCategoryRepository(TaxonomyRepository[BlogCategory]):
    label = "Category"

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        super().__init__(session, BlogCategory, BlogPostCategory, "category_id", organization_id)


class BlogTagRepository(TaxonomyRepository[BlogTag]):
    label = "Tag"

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        super().__init__(session, BlogTag, BlogPostTag, "tag_id", organization_id)


class BlogPostRepository(TenantRepository[BlogPost]):
    """Repository for blog posts of one organization."""

    label = "Post"

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        super().__init__(session, BlogPost, organization_id)
        self.categories = BlogCategoryRepository(session, organization_id)
        self.tags = BlogTagRepository(session, organization_id)

    async def search(
        self,
        query: Optional[str] = None,
        status: Optional[PostStatus] = None,
        category: Optional[str] = None,
        tag: Optional[str] = None,
        featured: Optional[bool] = None,
        limit: Optional[int] = SEARCH_LIMIT,
    ) -> List[BlogPost]:
        """Posts matching every given criterion, newest first.

        Args:
            query: Substring of the title, excerpt or slug
            status: Exact status
            category: Category name or slug
            tag: Tag name or slug
            featured: Featured flag
            limit: Maximum rows; ``None`` for all
        """
        stmt = self.scoped()
        if query:
            pattern = f"%{query.strip()}%"
            stmt = stmt.where(
                or_(BlogPost.title.ilike(pattern), BlogPost.excerpt.ilike(pattern), BlogPost.slug.ilike(pattern))
            )
        if status is not None:
            stmt = stmt.where(BlogPost.status == status)
        if featured is not None:
            stmt = stmt.where(BlogPost.featured == featured)
        if category:
            stmt = stmt.where(
                BlogPost.id.in_(
                    select(BlogPostCategory.post_id)
                    .join(BlogCategory, BlogCategory.id == BlogPostCategory.category_id)
                    .where(BlogCategory.organization_id == self.organization_id, BlogCategory.slug == to_slug(category))
                )
            )
        if tag:
            stmt = stmt.where(
                BlogPost.id.in_(
                    select(BlogPostTag.post_id)
                    .join(BlogTag, BlogTag.id == BlogPostTag.tag_id)
                    .where(BlogTag.organization_id == self.organization_id, BlogTag.slug == to_slug(tag))
                )
            )
        stmt = stmt.order_by(BlogPost.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def recent(self, limit: int = 5) -> List[BlogPost]:
        return await self.search(limit=limit)

    async def stats(self) -> Dict[str, Any]:
        """``{"total": n, "byStatus": {status: count}}`` over all posts."""
        result = await self.session.exec(
            select(BlogPost.status, func.count())
            .where(BlogPost.organization_id == self.organization_id)
            .group_by(BlogPost.status)
        )
        by_status = {PostStatus(status).value: count for status, count in result.all()}
        return {"total": sum(by_status.values()), "byStatus": by_status}

    async def taxonomy(self, post_ids: Iterable[str]) -> Dict[str, PostTaxonomy]:
        """Category and tag names for each post id."""
        ids = list(post_ids)
        names: Dict[str, PostTaxonomy] = {post_id: ([], []) for post_id in ids}
        if not ids:
            return names
        categories = await self.session.exec(
            select(BlogPostCategory.post_id, BlogCategory.name)
            .join(BlogCategory, BlogCategory.id == BlogPostCategory.category_id)
            .where(BlogPostCategory.post_id.in_(ids))
            .order_by(BlogCategory.name)
        )
        for post_id, name in categories.all():
            names[post_id][0].append(name)
        tags = await self.session.exec(
            select(BlogPostTag.post_id, BlogTag.name)
            .join(BlogTag, BlogTag.id == BlogPostTag.tag_id)
            .where(BlogPostTag.post_id.in_(ids))
            .order_by(BlogTag.name)
        )
        for post_id, name in tags.all():
            names[post_id][1].append(name)
        return names

    async def slug_taken(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        stmt = self.scoped().where(BlogPost.slug == slug)
        if exclude_id is not None:
            stmt = stmt.where(BlogPost.id != exclude_id)
        result = await self.session.exec(stmt)
        return result.first() is not None

    async def unique_slug(self, value: str) -> str:
        """Slug for ``value``, suffixed with a millisecond timestamp when already used."""
        slug = to_slug(value) or "post"
        if await self.slug_taken(slug):
            slug = f"{slug}-{int(time.time() * 1000)}"
        return slug

    async def create_post(
        self,
        title: str,
        html: str = "",
        slug: Optional[str] = None,
        categories: Iterable[str] = (),
        tags: Iterable[str] = (),
        status: PostStatus = PostStatus.DRAFT,
        **fields: Any,
    ) -> BlogPost:
        """Insert a post, creating any missing categories and tags.

        Args:
            title: Post title
            html: Body HTML, stored as ``{"html": html}``
            slug: Desired slug; derived from the title when omitted
            categories: Category names
            tags: Tag names
            status: Initial status
            **fields: Further ``BlogPost`` columns (excerpt, featured, meta_title, ...)
        """
        post = BlogPost(
            organization_id=self.organization_id,
            title=title,
            slug=await self.unique_slug(slug or title),
            content={"html": html},
            status=status,
            published_at=utc_now_naive() if status == PostStatus.PUBLISHED else None,
            **fields,
        )
        self.session.add(post)
        await self.session.flush()
        await self._link_taxonomy(post.id, categories, tags)
        await self.session.commit()
        await self.session.refresh(post)
        return post

    async def update_post(
        self,
        post_id: str,
        changes: Dict[str, Any],
        categories: Optional[Iterable[str]] = None,
        tags: Optional[Iterable[str]] = None,
    ) -> BlogPost:
        """Apply column changes and, when given, replace the categories or tags."""
        post = await self.get_or_raise(post_id)
        if "slug" in changes:
            changes["slug"] = to_slug(changes["slug"])
            if await self.slug_taken(changes["slug"], exclude_id=post.id):
                raise ConflictError("A post with this slug already exists")
        if "html" in changes:
            changes["content"] = {"html": changes.pop("html")}
        for key, value in changes.items():
            setattr(post, key, value)
        if categories is not None:
            await self._clear_links(BlogPostCategory, post.id)
        if tags is not None:
            await self._clear_links(BlogPostTag, post.id)
        await self._link_taxonomy(post.id, categories or (), tags or ())
        return await self.update(post)

    async def publish(self, post_id: str, site_ids: Optional[Iterable[str]] = None) -> Tuple[BlogPost, List[str]]:
        """Publish a post on the given sites, or on every site of the organization.

        Returns:
            The post and the ids of the sites it is now published on.
        """
        post = await self.get_or_raise(post_id)
        sites_stmt = select(Site.id).where(Site.organization_id == self.organization_id)
        if site_ids is not None:
            wanted = list(site_ids)
            sites_stmt = sites_stmt.where(Site.id.in_(wanted))
        result = await self.session.exec(sites_stmt)
        target_ids = list(result.all())
        if site_ids is not None and len(target_ids) != len(set(wanted)):
            raise NotFoundError("Site not found")

        await self._clear_links(BlogPostPublication, post.id)
        now = utc_now_naive()
        for site_id in target_ids:
            self.session.add(BlogPostPublication(post_id=post.id, site_id=site_id, published_at=now))
        post.status = PostStatus.PUBLISHED
        post.published_at = now
        return await self.update(post), target_ids

    async def unpublish(self, post_id: str) -> BlogPost:
        post = await self.get_or_raise(post_id)
        await self._clear_links(BlogPostPublication, post.id)
        post.status = PostStatus.DRAFT
        post.published_at = None
        return await self.update(post)

    async def published_site_ids(self, post_id: str) -> List[str]:
        result = await self.session.exec(
            select(BlogPostPublication.site_id).where(BlogPostPublication.post_id == post_id)
        )
        return list(result.all())

    async def delete_post(self, post_id: str) -> BlogPost:
        """Remove a post together with its links and publications."""
        post = await self.get_or_raise(post_id)
        for link_model in (BlogPostCategory, BlogPostTag, BlogPostPublication):
            await self._clear_links(link_model, post.id)
        await self.session.delete(post)
        await self.session.commit()
        return post

    async def _clear_links(self, link_model: Any, post_id: str) -> None:
        result = await self.session.exec(select(link_model).where(link_model.post_id == post_id))
        for link in result.all():
            await self.session.delete(link)
        await self.session.flush()

    async def _link_taxonomy(self, post_id: str, categories: Iterable[str], tags: Iterable[str]) -> None:
        for category in await self.categories.find_or_create(categories):
            self.session.add(BlogPostCategory(post_id=post_id, category_id=category.id))
        for tag in await self.tags.find_or_create(tags):
            self.session.add(BlogPostTag(post_id=post_id, tag_id=tag.id))
