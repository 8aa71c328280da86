"""
API endpoints for the blog.

Posts with their categories and tags, publication of posts onto the
organization's sites, and blog statistics.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Query, status

from serviceos.core.database.entities.blog import BlogPost, PostStatus
from serviceos.core.database.repositories.blog import BlogPostRepository
from serviceos.core.logging_config import get_logger
from serviceos.core.models.io.blog import (
    BlogPostCreate,
    BlogPostRead,
    BlogPostUpdate,
    BlogStats,
    PublishRequest,
    TaxonomyCreate,
    TaxonomyRead,
)
from serviceos.server.services.deps import SessionDep, TenantDep

logger = get_logger(__name__)

router = APIRouter(tags=["blog"])


async def _read(posts: BlogPostRepository, post: BlogPost) -> BlogPostRead:
    categories, tags = (await posts.taxonomy([post.id]))[post.id]
    return BlogPostRead.from_entity(post, categories, tags, site_ids=await posts.published_site_ids(post.id))


async def _read_many(posts: BlogPostRepository, found: List[BlogPost]) -> List[BlogPostRead]:
    taxonomy = await posts.taxonomy(post.id for post in found)
    return [BlogPostRead.from_entity(post, *taxonomy[post.id]) for post in found]


@router.get(
    "/posts",
    response_model=List[BlogPostRead],
    summary="List Posts",
    description="List posts newest first, optionally filtered by status and a search over title, excerpt and slug.",
)
async def list_posts(
    session: SessionDep,
    tenant: TenantDep,
    status_filter: Optional[PostStatus] = Query(default=None, alias="status"),
    search: Optional[str] = None,
) -> List[BlogPostRead]:
    posts = BlogPostRepository(session, tenant.organization_id)
    return await _read_many(posts, await posts.search(query=search, status=status_filter, limit=None))


@router.get("/posts/recent", response_model=List[BlogPostRead], summary="Recent Posts")
async def recent_posts(
    session: SessionDep, tenant: TenantDep, limit: int = Query(default=5, gt=0, le=50)
) -> List[BlogPostRead]:
    posts = BlogPostRepository(session, tenant.organization_id)
    return await _read_many(posts, await posts.recent(limit=limit))


@router.get("/stats", response_model=BlogStats, summary="Blog Statistics")
async def blog_stats(session: SessionDep, tenant: TenantDep) -> BlogStats:
    return BlogStats.model_validate(await BlogPostRepository(session, tenant.organization_id).stats())


@router.get(
    "/posts/{post_id}",
    response_model=BlogPostRead,
    summary="Get Post",
    responses={404: {"description": "Post not found"}},
)
async def get_post(post_id: str, session: SessionDep, tenant: TenantDep) -> BlogPostRead:
    posts = BlogPostRepository(session, tenant.organization_id)
    return await _read(posts, await posts.get_or_raise(post_id))


@router.post(
    "/posts",
    response_model=BlogPostRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Post",
    description=(
        "Create a post. The slug is derived from the title when omitted and suffixed when taken; "
        "missing categories and tags are created."
    ),
)
async def create_post(payload: BlogPostCreate, session: SessionDep, tenant: TenantDep) -> BlogPostRead:
    posts = BlogPostRepository(session, tenant.organization_id)
    post = await posts.create_post(**payload.model_dump())
    logger.info(f"Created post {post.id} for organization {tenant.organization_id}")
    return await _read(posts, post)


@router.patch(
    "/posts/{post_id}",
    response_model=BlogPostRead,
    summary="Update Post",
    responses={
        404: {"description": "Post not found"},
        409: {"description": "A post with this slug already exists"},
    },
)
async def update_post(post_id: str, payload: BlogPostUpdate, session: SessionDep, tenant: TenantDep) -> BlogPostRead:
    posts = BlogPostRepository(session, tenant.organization_id)
    changes = payload.model_dump(exclude_unset=True, exclude={"categories", "tags"})
    post = await posts.update_post(post_id, changes, categories=payload.categories, tags=payload.tags)
    return await _read(posts, post)


@router.delete(
    "/posts/{post_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Post",
    responses={404: {"description": "Post not found"}},
)
async def delete_post(post_id: str, session: SessionDep, tenant: TenantDep) -> None:
    await BlogPostRepository(session, tenant.organization_id).delete_post(post_id)


@router.post(
    "/posts/{post_id}/publish",
    response_model=BlogPostRead,
    summary="Publish Post",
    description="Publish a post on the given sites, or on every site of the organization when none are given.",
    responses={404: {"description": "Post or site not found"}},
)
async def publish_post(
    post_id: str, session: SessionDep, tenant: TenantDep, payload: Optional[PublishRequest] = None
) -> BlogPostRead:
    posts = BlogPostRepository(session, tenant.organization_id)
    post, _ = await posts.publish(post_id, site_ids=payload.site_ids if payload else None)
    return await _read(posts, post)


@router.post("/posts/{post_id}/unpublish", response_model=BlogPostRead, summary="Unpublish Post")
async def unpublish_post(post_id: str, session: SessionDep, tenant: TenantDep) -> BlogPostRead:
    posts = BlogPostRepository(session, tenant.organization_id)
    return await _read(posts, await posts.unpublish(post_id))


@router.get("/categories", response_model=List[TaxonomyRead], summary="List Categories")
async def list_categories(session: SessionDep, tenant: TenantDep) -> List[TaxonomyRead]:
    categories = BlogPostRepository(session, tenant.organization_id).categories
    return [TaxonomyRead.model_validate(category) for category in await categories.list_all()]


@router.post(
    "/categories",
    response_model=TaxonomyRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Category",
    responses={409: {"description": "A category with this slug already exists"}},
)
async def create_category(payload: TaxonomyCreate, session: SessionDep, tenant: TenantDep) -> TaxonomyRead:
    categories = BlogPostRepository(session, tenant.organization_id).categories
    return TaxonomyRead.model_validate(await categories.add(payload.name, payload.slug))


@router.delete(
    "/categories/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Category",
    description="Delete a category and detach it from its posts.",
    responses={404: {"description": "Category not found"}},
)
async def delete_category(category_id: str, session: SessionDep, tenant: TenantDep) -> None:
    categories = BlogPostRepository(session, tenant.organization_id).categories
    await categories.get_or_raise(category_id)
    await categories.delete(category_id)


@router.get("/tags", response_model=List[TaxonomyRead], summary="List Tags")
async def list_tags(session: SessionDep, tenant: TenantDep) -> List[TaxonomyRead]:
    tags = BlogPostRepository(session, tenant.organization_id).tags
    return [TaxonomyRead.model_validate(tag) for tag in await tags.list_all()]


@router.post(
    "/tags",
    response_model=TaxonomyRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create Tag",
    responses={409: {"description": "A tag with this slug already exists"}},
)
async def create_tag(payload: TaxonomyCreate, session: SessionDep, tenant: TenantDep) -> TaxonomyRead:
    tags = BlogPostRepository(session, tenant.organization_id).tags
    return TaxonomyRead.model_validate(await tags.add(payload.name, payload.slug))


@router.delete(
    "/tags/{tag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Tag",
    description="Delete a tag and detach it from its posts.",
    responses={404: {"description": "Tag not found"}},
)
async def delete_tag(tag_id: str, session: SessionDep, tenant: TenantDep) -> None:
    tags = BlogPostRepository(session, tenant.organization_id).tags
    await tags.get_or_raise(tag_id)
    await tags.delete(tag_id)
