"""File library assistant and LLM-expanded file search."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field
from pydantic_ai.direct import model_request
from pydantic_ai.messages import ModelRequest, UserPromptPart
from pydantic_ai.models import Model

from serviceos.core.database.entities.files import AiStatus, File, MediaType
from serviceos.core.database.repositories.files import FilePage, FileRepository
from serviceos.core.errors import AssistantError, IntegrationError
from serviceos.core.models.io.assistants import ChatTurn, FileAssistantResponse
from serviceos.core.monitoring import log_assistant_run
from serviceos.core.text import search_words
from serviceos.integrations.storage import format_file_size, thumbnail_url

from .loop import response_text, run_tool_loop
from .tools import ToolContext, ToolHandler, ToolRegistry, ToolResult

logger = logging.getLogger(__name__)

MAX_TOKENS = 1024
SEARCH_LIMIT = 20
EXPANSION_MAX_TOKENS = 300

ANALYZER_SERVICE = "analyzer"

EXPANSION_PROMPT = """You are a search query expander for a file/image library. File descriptions are written \
by AI and use formal, descriptive language.

Given the user's search query, identify the core concepts and expand each with synonyms. Return a JSON array \
of arrays: each inner array is one concept with its synonyms.

Rules:
- Each concept group is one core idea from the query plus 2-4 synonyms an AI description might use
- ALL concept groups must match, so keep only the concepts that matter
- Skip filler words (a, an, the, of, image, photo, picture, file, find, show)
- Include variations: "holding" -> ["holding", "using", "carrying", "gripping"]
- Include formal description language: "older" -> ["older", "elderly", "senior", "mature", "middle-aged"]

Example: "older man holding a tablet"
-> [["older","elderly","senior","mature","middle-aged"],["man","male","gentleman","businessman"],\
["holding","using","carrying","gripping"],["tablet","device","ipad"]]

Query: "{query}"

Respond with ONLY the JSON array of arrays, nothing else."""


def file_card(file: File) -> Dict[str, Any]:
    """File as rendered in the assistant's result grid."""
    return {
        "id": file.id,
        "name": file.name,
        "url": file.url,
        "thumbnail_url": thumbnail_url(file.url) if file.media_type == MediaType.IMAGE else None,
        "mime_type": file.mime_type,
        "size": format_file_size(file.size),
        "tags": list(file.tags or []),
        "ai_description": file.ai_description,
    }


class SearchFilesInput(BaseModel):
    query: str = Field(description="Search text matched against file names, descriptions and tags")
    media_type: Optional[MediaType] = Field(default=None, description="Optional media type filter")


class TagFileInput(BaseModel):
    file_id: str = Field(description="The file ID")
    tags: List[str] = Field(description="Tags to set on the file")
    mode: Literal["add", "replace"] = Field(
        default="add", description="Whether to add to the existing tags or replace them"
    )


class MoveFileInput(BaseModel):
    file_id: str = Field(description="The file ID")
    folder: str = Field(min_length=1, description="Target folder name")


class DescribeFileInput(BaseModel):
    file_id: str = Field(description="The file ID to analyze")


class BulkTagInput(BaseModel):
    query: str = Field(min_length=1, description="Search query selecting the files")
    tags: List[str] = Field(description="Tags to add to every matched file")


class SearchFilesHandler(ToolHandler[SearchFilesInput]):
    name = "search_files"
    description = "Search files by text (matches name, description and tags). Optionally filter by media type."
    input_schema = SearchFilesInput

    async def execute(self, ctx: ToolContext, args: SearchFilesInput) -> ToolResult:
        files = await FileRepository(ctx.session, ctx.organization_id).matching(
            args.query, media_type=args.media_type, limit=SEARCH_LIMIT
        )
        summary = {
            "count": len(files),
            "files": [
                {
                    "id": file.id,
                    "name": file.name,
                    "type": file.media_type.value,
                    "tags": file.tags,
                    "folder": file.folder,
                    "description": file.ai_description,
                }
                for file in files
            ],
        }
        return ToolResult.of(summary, file_results=[file_card(file) for file in files])


class TagFileHandler(ToolHandler[TagFileInput]):
    name = "tag_file"
    description = "Add or replace the tags of a single file by ID."
    input_schema = TagFileInput

    async def execute(self, ctx: ToolContext, args: TagFileInput) -> ToolResult:
        files = FileRepository(ctx.session, ctx.organization_id)
        file = await files.get_by_id(args.file_id)
        if file is None:
            return ToolResult.error("File not found")
        file = await files.set_tags(file, args.tags, replace=args.mode == "replace")
        return ToolResult.of({"success": True, "fileName": file.name, "tags": file.tags})


class MoveFileHandler(ToolHandler[MoveFileInput]):
    name = "move_file"
    description = "Move a file to a folder."
    input_schema = MoveFileInput

    async def execute(self, ctx: ToolContext, args: MoveFileInput) -> ToolResult:
        files = FileRepository(ctx.session, ctx.organization_id)
        file = await files.get_by_id(args.file_id)
        if file is None:
            return ToolResult.error("File not found")
        file = await files.apply_changes(file, {"folder": args.folder})
        return ToolResult.of({"success": True, "fileName": file.name, "folder": file.folder})


class DescribeFileHandler(ToolHandler[DescribeFileInput]):
    name = "describe_file"
    description = (
        "Analyze a file with AI vision (images) or from its metadata, and store the description "
        "and suggested tags on the file."
    )
    input_schema = DescribeFileInput

    async def execute(self, ctx: ToolContext, args: DescribeFileInput) -> ToolResult:
        files = FileRepository(ctx.session, ctx.organization_id)
        file = await files.get_by_id(args.file_id)
        if file is None:
            return ToolResult.error("File not found")
        analyzer = ctx.service(ANALYZER_SERVICE)
        if analyzer is None:
            return ToolResult.error("File analysis is not available")
        try:
            analysis = await analyzer.analyze(url=file.url, mime_type=file.mime_type, file_name=file.file_name)
        except IntegrationError as e:
            return ToolResult.error(e.message)

        file.ai_description = analysis.description
        file.ai_status = AiStatus.COMPLETE
        file = await files.set_tags(file, analysis.suggested_tags)
        return ToolResult.of(
            {
                "success": True,
                "fileName": file.name,
                "description": analysis.description,
                "suggestedTags": analysis.suggested_tags,
            }
        )


class BulkTagHandler(ToolHandler[BulkTagInput]):
    name = "bulk_tag"
    description = "Add the given tags to every file matching a search query."
    input_schema = BulkTagInput

    async def execute(self, ctx: ToolContext, args: BulkTagInput) -> ToolResult:
        files = FileRepository(ctx.session, ctx.organization_id)
        matched = await files.matching(args.query)
        for file in matched:
            await files.set_tags(file, args.tags)
        return ToolResult.of(
            {"success": True, "matchedFiles": len(matched), "updatedFiles": len(matched), "tags": args.tags}
        )


def file_tools() -> ToolRegistry:
    return ToolRegistry(
        [
            handler.definition()
            for handler in (SearchFilesHandler, TagFileHandler, MoveFileHandler, DescribeFileHandler, BulkTagHandler)
        ]
    )


def build_system_prompt(file_count: int) -> str:
    return f"""You are an AI Archive Assistant helping manage a file library. \
The library currently has {file_count} files.

You can search, tag, organize and analyze files using the available tools. Be concise and helpful.

When you use tools:
- After searching, summarize the results clearly
- After tagging or moving files, confirm what was done
- When asked to find files, use search_files
- When asked about a file's content, use describe_file
- For bulk operations, use bulk_tag

Always respond conversationally and confirm the actions taken."""


async def chat_with_file_assistant(
    *,
    model: Union[Model, str],
    messages: List[ChatTurn],
    context: ToolContext,
    max_iterations: int,
    max_tokens: int = MAX_TOKENS,
) -> FileAssistantResponse:
    """Run the file assistant on the conversation and report what it did."""
    file_count = await FileRepository(context.session, context.organization_id).count()
    result = await run_tool_loop(
        model=model,
        system_prompt=build_system_prompt(file_count),
        messages=messages,
        registry=file_tools(),
        context=context,
        max_iterations=max_iterations,
        model_settings={"max_tokens": max_tokens},
    )
    log_assistant_run("files", context.organization_id, result.iterations, len(result.actions_taken))
    return FileAssistantResponse(
        content=result.content,
        actions_taken=result.actions_taken,
        file_results=result.artifacts.get("file_results") or None,
    )


def parse_concept_groups(text: str) -> Optional[List[List[str]]]:
    """Concept groups from the model's JSON answer, or ``None`` when it is not an array of string arrays."""
    try:
        groups = json.loads(text.strip())
    except ValueError:
        return None
    if not isinstance(groups, list) or not groups:
        return None
    parsed = []
    for group in groups:
        if not isinstance(group, list):
            return None
        words = [str(word).strip() for word in group if str(word).strip()]
        if words:
            parsed.append(words)
    return parsed or None


async def expand_query(model: Union[Model, str], query: str) -> List[List[str]]:
    """Ask the model for concept groups of ``query``; one group per meaningful word when its answer is unusable.

    Raises:
        AssistantError: The model call failed.
    """
    try:
        response = await model_request(
            model,
            [ModelRequest(parts=[UserPromptPart(content=EXPANSION_PROMPT.format(query=query))])],
            model_settings={"max_tokens": EXPANSION_MAX_TOKENS},
        )
    except Exception as e:
        logger.error(f"Query expansion failed: {e}", exc_info=True)
        raise AssistantError(details={"stage": "expansion", "error": str(e)}) from e

    groups = parse_concept_groups(response_text(response))
    if groups is None:
        logger.info(f"Unusable query expansion for {query!r}, falling back to plain words")
        groups = [[word] for word in search_words(query)]
    return groups


async def smart_search(
    model: Union[Model, str], files: FileRepository, query: str, limit: int = 40
) -> tuple[FilePage, List[str]]:
    """Concept search over the library.

    Returns:
        The matching page and every keyword that took part in the search.
    """
    groups = await expand_query(model, query)
    if not groups:
        return FilePage(files=[], total=0, page=1, limit=limit), []
    page = await files.search_concepts(groups, limit=limit)
    return page, [word for group in groups for word in group]
