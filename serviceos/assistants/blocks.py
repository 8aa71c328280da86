"""Conversational editing of one site block."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field
from pydantic_ai.models import Model

from serviceos.core.database.entities.files import File, MediaType
from serviceos.core.database.repositories.files import FileRepository
from serviceos.core.database.repositories.sites import PageRepository, SiteRepository
from serviceos.core.logging_config import get_logger
from serviceos.core.models.io.assistants import BlockAssistantRequest, BlockAssistantResponse
from serviceos.core.monitoring import log_assistant_run

from .loop import run_tool_loop
from .tools import ToolContext, ToolHandler, ToolRegistry, ToolResult

logger = get_logger(__name__)

MAX_TOKENS = 2048
TEMPERATURE = 0.7
IMAGE_CONTEXT_LIMIT = 30
DEFAULT_REPLY = "I've updated the block."

BLOCK_TYPE_DOCS = """
## Block format

Each block is { "type": "blockType", "data": { ...fields } }. You edit the "data" object only.

## Block types

- hero: { heading, subheading?, description?, badge?, highlightWord?, stats?: [{value, label}], \
primaryCta?: {label, href}, secondaryCta?: {label, href}, variant?: "centered"|"split"|"background", \
image?, backgroundImage? }
- text: { heading?, content (HTML string), align?: "left"|"center"|"right" }
- features: { heading?, subheading?, features: [{ icon?, title, description }], columns?: 2|3|4, \
variant?: "cards"|"list"|"icons" }
- services: { heading?, subheading?, services: [{ title, description, price?, icon?, link? }], \
columns?: 2|3|4, variant?: "cards"|"numbered" }
- testimonials: { heading?, subheading?, testimonials: [{ quote, author, role?, company? }] }
- cta: { heading, subheading?, primaryCta?: {label, href}, secondaryCta?: {label, href}, \
variant?: "default"|"dark"|"gradient" }
- contact: { heading?, subheading?, email?, phone?, address?, showForm?, showInfo? }
- stats: { heading?, stats: [{ value, label }], variant?: "default"|"gradient"|"cards" }
- faq: { heading?, subheading?, items: [{ question, answer }] }
- process: { heading?, subheading?, steps: [{ title, description, icon? }] }
- pricing: { heading?, subheading?, plans: [{ name, description?, price, period?, features: [string], \
ctaText?, ctaLink?, highlighted? }] }
- logos: { heading?, logos: [{ name, src? }] }
- columns: { heading?, subheading?, columns?: 2|3|4, layout?: "equal"|"wide-left"|"wide-right", \
gap?: "sm"|"md"|"lg", items: [{ heading?, text?, image?, icon?, list?: [string], cta?: {label, href} }] }

Icon fields take Lucide icon names (lowercase, hyphenated such as "zap", "shield-check", "map-pin"), never emoji.
"""


class UpdateBlockInput(BaseModel):
    data: Dict[str, Any] = Field(description="Complete updated block data with all fields")


class UpdateBlockHandler(ToolHandler[UpdateBlockInput]):
    name = "update_block"
    description = "Update the block content with new data. Always include ALL fields, not just the changed ones."
    input_schema = UpdateBlockInput

    async def execute(self, ctx: ToolContext, args: UpdateBlockInput) -> ToolResult:
        return ToolResult(text="Block updated successfully.", artifacts={"updated_data": args.data})


def block_tools() -> ToolRegistry:
    return ToolRegistry([UpdateBlockHandler.definition()])


def image_context(images: List[File]) -> str:
    if not images:
        return ""
    lines = []
    for image in images:
        tags = f" [{', '.join(image.tags)}]" if image.tags else ""
        lines.append(f'- "{image.name}": {image.ai_description or "No description"}{tags} | URL: {image.url}')
    return (
        "\nAvailable images from the media library (use the URL for image or backgroundImage fields, "
        "pick images that match the section):\n" + "\n".join(lines) + "\n"
    )


def build_system_prompt(block_type: str, block_data: Dict[str, Any], images: List[File]) -> str:
    return f"""You are an AI assistant helping a user edit a "{block_type}" block on their website. \
You can both respond conversationally AND update the block content using the update_block tool.

Current block data:
{json.dumps(block_data, indent=2)}
{BLOCK_TYPE_DOCS}{image_context(images)}
Instructions:
- When the user asks you to change content, respond with a brief confirmation AND call update_block \
with the complete updated data.
- When the user asks a question (e.g. "what fields can I change?"), just respond with text.
- Always include ALL existing fields in your update_block call, not just the ones you changed.
- Keep your text responses concise and friendly."""


async def chat_with_block_assistant(
    *,
    model: Union[Model, str],
    request: BlockAssistantRequest,
    context: ToolContext,
    max_iterations: int,
    max_tokens: int = MAX_TOKENS,
) -> BlockAssistantResponse:
    """Edit one block of a site through conversation.

    The site must belong to the organization. When the request names a page
    and block, the updated data is merged into that block and saved.

    Raises:
        NotFoundError: Unknown site, page or block.
        AssistantError: The model call failed.
    """
    await SiteRepository(context.session, context.organization_id).get_or_raise(request.site_id)
    pages = PageRepository(context.session, context.organization_id)
    if request.page_id:
        await pages.get_page(request.site_id, request.page_id)

    library = await FileRepository(context.session, context.organization_id).search(
        media_type=MediaType.IMAGE, limit=IMAGE_CONTEXT_LIMIT
    )
    result = await run_tool_loop(
        model=model,
        system_prompt=build_system_prompt(request.block_type, request.block_data, library.files),
        messages=request.messages,
        registry=block_tools(),
        context=context,
        max_iterations=max_iterations,
        model_settings={"max_tokens": max_tokens, "temperature": TEMPERATURE},
    )
    log_assistant_run("block", context.organization_id, result.iterations, len(result.actions_taken))

    updated: Optional[Dict[str, Any]] = result.artifacts.get("updated_data")
    if updated is not None and request.page_id and request.block_id:
        await pages.update_block(request.site_id, request.page_id, request.block_id, updated)
        logger.info(f"Saved block {request.block_id} of page {request.page_id}")
    return BlockAssistantResponse(content="\n".join(result.texts) or DEFAULT_REPLY, updated_data=updated)
