"""
API endpoints for the LLM assistants.

Each request carries the visible conversation; the assistant may call its
tools several times against the organization's data before answering.
"""

from __future__ import annotations

from fastapi import APIRouter

from serviceos.assistants.blocks import chat_with_block_assistant
from serviceos.assistants.blog import chat_with_blog_assistant
from serviceos.assistants.files import ANALYZER_SERVICE, chat_with_file_assistant
from serviceos.assistants.tools import ToolContext
from serviceos.core.models.io.assistants import (
    AssistantRequest,
    BlockAssistantRequest,
    BlockAssistantResponse,
    BlogAssistantResponse,
    FileAssistantResponse,
)
from serviceos.server.services.deps import AnalyzerDep, AssistantModelDep, SessionDep, SettingsDep, TenantDep

router = APIRouter(tags=["assistants"])

ASSISTANT_ERRORS = {
    404: {"description": "Referenced record not found"},
    502: {"description": "Assistant request failed"},
}


@router.post(
    "/blog",
    response_model=BlogAssistantResponse,
    summary="Blog Assistant",
    description="Search, write, publish and delete blog posts through conversation.",
    responses=ASSISTANT_ERRORS,
)
async def blog_assistant(
    payload: AssistantRequest,
    session: SessionDep,
    tenant: TenantDep,
    model: AssistantModelDep,
    settings: SettingsDep,
) -> BlogAssistantResponse:
    """
    Run the blog assistant.

    - **messages**: Conversation so far, oldest first, ending with a user turn.

    Tool effects (created, published or deleted posts) are committed as the
    tools run and listed in ``actions_taken``.
    """
    return await chat_with_blog_assistant(
        model=model,
        messages=payload.messages,
        context=ToolContext(session=session, organization_id=tenant.organization_id),
        max_iterations=settings.assistant.max_tool_iterations,
        max_tokens=settings.assistant.max_tokens,
    )


@router.post(
    "/files",
    response_model=FileAssistantResponse,
    summary="File Assistant",
    description="Search, tag, move and describe library files through conversation.",
    responses=ASSISTANT_ERRORS,
)
async def file_assistant(
    payload: AssistantRequest,
    session: SessionDep,
    tenant: TenantDep,
    model: AssistantModelDep,
    analyzer: AnalyzerDep,
    settings: SettingsDep,
) -> FileAssistantResponse:
    return await chat_with_file_assistant(
        model=model,
        messages=payload.messages,
        context=ToolContext(
            session=session, organization_id=tenant.organization_id, services={ANALYZER_SERVICE: analyzer}
        ),
        max_iterations=settings.assistant.max_tool_iterations,
        max_tokens=settings.assistant.file_max_tokens,
    )


@router.post(
    "/block",
    response_model=BlockAssistantResponse,
    summary="Block Assistant",
    description=(
        "Edit one site block through conversation. With `page_id` and `block_id` the updated data "
        "is saved into the page."
    ),
    responses=ASSISTANT_ERRORS,
)
async def block_assistant(
    payload: BlockAssistantRequest,
    session: SessionDep,
    tenant: TenantDep,
    model: AssistantModelDep,
    settings: SettingsDep,
) -> BlockAssistantResponse:
    return await chat_with_block_assistant(
        model=model,
        request=payload,
        context=ToolContext(session=session, organization_id=tenant.organization_id),
        max_iterations=settings.assistant.max_tool_iterations,
    )
