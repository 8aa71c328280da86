"""Blog assistant.

Searches, creates, publishes, unpublishes and deletes posts of the
organization's blog on behalf of the user, and proposes new topics based on
the business profile.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field
from pydantic_ai.models import Model

from serviceos.core.database.entities.blog import BlogPost, PostStatus
from serviceos.core.database.repositories.blog import BlogPostRepository
from serviceos.core.database.repositories.organizations import OrganizationRepository
from serviceos.core.errors import NotFoundError
from serviceos.core.models.io.assistants import BlogAssistantResponse, ChatTurn
from serviceos.core.monitoring import log_assistant_run

from .loop import run_tool_loop
from .tools import NoArguments, ToolContext, ToolHandler, ToolRegistry, ToolResult

MAX_TOKENS = 4096
RECENT_TITLES = 20


def post_card(post: BlogPost, categories: List[str], tags: List[str]) -> Dict[str, Any]:
    """Post as rendered in the assistant's result panel."""
    return {
        "id": post.id,
        "title": post.title,
        "slug": post.slug,
        "excerpt": post.excerpt,
        "status": post.status.value,
        "featured": post.featured,
        "cover_image_url": post.cover_image_url,
        "published_at": post.published_at.isoformat() if post.published_at else None,
        "created_at": post.created_at.isoformat(),
        "categories": categories,
        "tags": tags,
    }


class SearchPostsInput(BaseModel):
    query: Optional[str] = Field(default=None, description="Text to look for in title, excerpt or slug")
    status: Optional[PostStatus] = Field(default=None, description="Filter by post status")
    category: Optional[str] = Field(default=None, description="Filter by category name (case-insensitive)")
    tag: Optional[str] = Field(default=None, description="Filter by tag name (case-insensitive)")
    featured: Optional[bool] = Field(default=None, description="Filter featured posts only")


class CreateBlogPostInput(BaseModel):
    title: str = Field(description="Blog post title")
    content: str = Field(description="Full post body as semantic HTML (h2, h3, p, ul, ol, li, strong, em, blockquote)")
    slug: Optional[str] = Field(default=None, description="URL slug (lowercase, hyphens only)")
    excerpt: Optional[str] = Field(default=None, description="Short excerpt/summary (1-2 sentences)")
    categories: List[str] = Field(default_factory=list, description="Category names; prefer existing ones")
    tags: List[str] = Field(default_factory=list, description="Tag names; prefer existing ones")
    meta_title: Optional[str] = Field(default=None, description="SEO meta title")
    meta_description: Optional[str] = Field(default=None, description="SEO meta description (max 160 chars)")


class PostIdInput(BaseModel):
    post_id: str = Field(description="The blog post ID")


class SuggestTopicsInput(BaseModel):
    count: int = Field(default=5, ge=1, le=20, description="Number of topics to suggest (default 5)")
    theme: Optional[str] = Field(default=None, description="Optional theme or area to focus topics on")


class SearchPostsHandler(ToolHandler[SearchPostsInput]):
    name = "search_posts"
    description = (
        "Search the organization's blog posts by text, status, category, tag or featured flag. "
        "Returns up to 20 posts, newest first."
    )
    input_schema = SearchPostsInput

    async def execute(self, ctx: ToolContext, args: SearchPostsInput) -> ToolResult:
        posts = BlogPostRepository(ctx.session, ctx.organization_id)
        found = await posts.search(**args.model_dump())
        taxonomy = await posts.taxonomy(post.id for post in found)
        cards = [post_card(post, *taxonomy[post.id]) for post in found]
        summary = {
            "count": len(cards),
            "posts": [
                {key: card[key] for key in ("id", "title", "status", "featured", "categories", "tags")}
                for card in cards
            ],
        }
        return ToolResult.of(summary, post_results=cards)


class GetBlogStatsHandler(ToolHandler[NoArguments]):
    name = "get_blog_stats"
    description = "Get blog post counts grouped by status."
    input_schema = NoArguments

    async def execute(self, ctx: ToolContext, args: NoArguments) -> ToolResult:
        return ToolResult.of(await BlogPostRepository(ctx.session, ctx.organization_id).stats())


class CreateBlogPostHandler(ToolHandler[CreateBlogPostInput]):
    name = "create_blog_post"
    description = (
        "Create a new draft blog post with HTML content. Categories and tags are matched by name "
        "and created when missing."
    )
    input_schema = CreateBlogPostInput

    async def execute(self, ctx: ToolContext, args: CreateBlogPostInput) -> ToolResult:
        post = await BlogPostRepository(ctx.session, ctx.organization_id).create_post(
            title=args.title,
            html=args.content,
            slug=args.slug,
            categories=args.categories,
            tags=args.tags,
            excerpt=args.excerpt,
            meta_title=args.meta_title,
            meta_description=args.meta_description,
        )
        return ToolResult.of(
            {"success": True, "postId": post.id, "title": post.title, "slug": post.slug},
            created_post_id=post.id,
        )


class PublishPostHandler(ToolHandler[PostIdInput]):
    name = "publish_post"
    description = "Publish a draft blog post by its ID on every site of the organization."
    input_schema = PostIdInput

    async def execute(self, ctx: ToolContext, args: PostIdInput) -> ToolResult:
        try:
            post, site_ids = await BlogPostRepository(ctx.session, ctx.organization_id).publish(args.post_id)
        except NotFoundError:
            return ToolResult.error("Post not found")
        return ToolResult.of(
            {
                "success": True,
                "postId": post.id,
                "title": post.title,
                "status": post.status.value,
                "publishedToSites": len(site_ids),
            }
        )


class UnpublishPostHandler(ToolHandler[PostIdInput]):
    name = "unpublish_post"
    description = "Revert a published blog post back to draft status."
    input_schema = PostIdInput

    async def execute(self, ctx: ToolContext, args: PostIdInput) -> ToolResult:
        try:
            post = await BlogPostRepository(ctx.session, ctx.organization_id).unpublish(args.post_id)
        except NotFoundError:
            return ToolResult.error("Post not found")
        return ToolResult.of({"success": True, "postId": post.id, "title": post.title, "status": post.status.value})


class DeletePostHandler(ToolHandler[PostIdInput]):
    name = "delete_post"
    description = "Permanently delete a blog post. Only call after the user explicitly confirmed the deletion."
    input_schema = PostIdInput

    async def execute(self, ctx: ToolContext, args: PostIdInput) -> ToolResult:
        try:
            post = await BlogPostRepository(ctx.session, ctx.organization_id).delete_post(args.post_id)
        except NotFoundError:
            return ToolResult.error("Post not found")
        return ToolResult.of({"success": True, "postId": post.id, "title": post.title, "deleted": True})


class SuggestTopicsHandler(ToolHandler[SuggestTopicsInput]):
    name = "suggest_topics"
    description = "Gather the business context and existing post titles needed to suggest new blog topics."
    input_schema = SuggestTopicsInput

    async def execute(self, ctx: ToolContext, args: SuggestTopicsInput) -> ToolResult:
        recent = await BlogPostRepository(ctx.session, ctx.organization_id).recent(limit=RECENT_TITLES)
        context = await OrganizationRepository(ctx.session, ctx.organization_id).business_context()
        return ToolResult.of(
            {
                "instruction": f"Generate {args.count} blog topic suggestions.",
                "businessContext": {key: value for key, value in context.items() if key != "tone"},
                "existingPosts": [post.title for post in recent],
                "theme": args.theme or "general",
                "note": "Avoid duplicating existing posts. Consider the business context.",
            }
        )


def blog_tools() -> ToolRegistry:
    return ToolRegistry(
        [
            handler.definition()
            for handler in (
                SearchPostsHandler,
                GetBlogStatsHandler,
                CreateBlogPostHandler,
                PublishPostHandler,
                UnpublishPostHandler,
                DeletePostHandler,
                SuggestTopicsHandler,
            )
        ]
    )


async def build_system_prompt(ctx: ToolContext) -> str:
    posts = BlogPostRepository(ctx.session, ctx.organization_id)
    stats = await posts.stats()
    business = await OrganizationRepository(ctx.session, ctx.organization_id).business_context()
    categories = [category.name for category in await posts.categories.list_all()]
    tags = [tag.name for tag in await posts.tags.list_all()]
    by_status = stats["byStatus"]

    return f"""You are an AI Blog Assistant helping manage a blog with {stats["total"]} posts \
({by_status.get("PUBLISHED", 0)} published, {by_status.get("DRAFT", 0)} drafts).

Business context:
- Name: {business["name"]}
- Industry: {business["industry"] or "N/A"}
- Description: {business["description"] or "N/A"}
- Target audience: {business["target_audience"] or "N/A"}
- Tone: {business["tone"] or "professional, friendly"}

Existing categories: {", ".join(categories) or "None"}
Existing tags: {", ".join(tags) or "None"}

Rules:
1. Call search_posts before answering questions about existing posts.
2. The UI renders post cards next to the chat; reply in one or two sentences without repeating post metadata.
3. Reuse the existing categories and tags above when creating posts; only add new ones if nothing fits.
4. Ask the user for explicit confirmation before calling delete_post.
5. Write thorough semantic HTML when creating posts and assign relevant categories and tags.
6. When suggesting topics, consider the business context and avoid topics that existing posts already cover."""


async def chat_with_blog_assistant(
    *,
    model: Union[Model, str],
    messages: List[ChatTurn],
    context: ToolContext,
    max_iterations: int,
    max_tokens: int = MAX_TOKENS,
) -> BlogAssistantResponse:
    """Run the blog assistant on the conversation and report what it did."""
    result = await run_tool_loop(
        model=model,
        system_prompt=await build_system_prompt(context),
        messages=messages,
        registry=blog_tools(),
        context=context,
        max_iterations=max_iterations,
        model_settings={"max_tokens": max_tokens},
    )
    log_assistant_run("blog", context.organization_id, result.iterations, len(result.actions_taken))
    return BlogAssistantResponse(
        content=result.content,
        actions_taken=result.actions_taken,
        post_results=result.artifacts.get("post_results"),
        created_post_id=result.artifacts.get("created_post_id"),
    )
