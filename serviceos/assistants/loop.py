"""Bounded tool-call loop.

Sends the conversation to the model with the assistant's tools advertised.
While the model asks for tools (and the iteration cap is not reached) the
requested handlers run against the tenant's database, their JSON results go
back to the model, and the model is asked again.

Tool effects are committed as each handler runs; nothing is rolled back when
a later step fails.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import ValidationError
from pydantic_ai.direct import model_request
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    ToolCallPart,
    ToolReturnPart,
    UserPromptPart,
)
from pydantic_ai.models import Model, ModelRequestParameters
from pydantic_ai.settings import ModelSettings

from serviceos.core.errors import AssistantError
from serviceos.core.monitoring import log_llm_call
from serviceos.core.models.io.assistants import ChatTurn

from .tools import ToolContext, ToolRegistry, ToolResult

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 5


@dataclass
class ToolLoopResult:
    """What the loop hands back to an assistant."""

    content: str
    texts: List[str] = field(default_factory=list)
    actions_taken: List[str] = field(default_factory=list)
    artifacts: Dict[str, Any] = field(default_factory=dict)
    iterations: int = 0


def to_model_messages(system_prompt: str, turns: Sequence[ChatTurn]) -> List[ModelMessage]:
    """Chat panel turns as pydantic-ai messages, led by the system prompt."""
    messages: List[ModelMessage] = [ModelRequest(parts=[SystemPromptPart(content=system_prompt)])]
    for turn in turns:
        if turn.role == "user":
            messages.append(ModelRequest(parts=[UserPromptPart(content=turn.content)]))
        else:
            messages.append(ModelResponse(parts=[TextPart(content=turn.content)]))
    return messages


def response_text(response: ModelResponse) -> str:
    return "\n".join(part.content for part in response.parts if isinstance(part, TextPart) and part.content)


async def execute_tool(call: ToolCallPart, registry: ToolRegistry, ctx: ToolContext) -> ToolResult:
    """Run one requested tool.

    Unknown tools and invalid arguments are reported back to the model as JSON
    errors; exceptions raised by the handler propagate.
    """
    definition = registry.get(call.tool_name)
    if definition is None:
        return ToolResult.error(f"Unknown tool: {call.tool_name}")
    try:
        args = definition.input_schema.model_validate(call.args_as_dict())
    except ValidationError as e:
        return ToolResult.error("Invalid arguments", details=e.errors(include_url=False, include_context=False))
    return await definition.handler(ctx, args)


async def run_tool_loop(
    *,
    model: Union[Model, str],
    system_prompt: str,
    messages: Sequence[ChatTurn],
    registry: ToolRegistry,
    context: ToolContext,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    model_settings: Optional[ModelSettings] = None,
) -> ToolLoopResult:
    """Drive the model through at most ``max_iterations`` rounds of tool calls.

    Args:
        model: pydantic-ai model or model string
        system_prompt: Instructions and context for the model
        messages: Conversation so far; the last turn is the user's
        registry: Tools the model may call
        context: Tenant-scoped session and services for the handlers
        max_iterations: Upper bound of tool rounds
        model_settings: Provider settings such as ``max_tokens``

    Returns:
        ToolLoopResult with the final text, every text segment, the actions
        taken and the latest value of each artifact.

    Raises:
        AssistantError: The model call or a tool handler failed.
    """
    history = to_model_messages(system_prompt, messages)
    parameters = ModelRequestParameters(function_tools=registry.model_tools())
    result = ToolLoopResult(content="")

    async def ask() -> ModelResponse:
        try:
            response = await model_request(
                model, history, model_settings=model_settings, model_request_parameters=parameters
            )
        except Exception as e:
            logger.error(f"Model request failed: {e}", exc_info=True)
            raise AssistantError(details={"stage": "model", "error": str(e)}) from e
        log_llm_call(response.model_name or str(model), response.usage.input_tokens, response.usage.output_tokens)
        return response

    response = await ask()
    while True:
        text = response_text(response)
        if text:
            result.texts.append(text)
        calls = [part for part in response.parts if isinstance(part, ToolCallPart)]
        if not calls or result.iterations >= max_iterations:
            break

        result.iterations += 1
        returns = []
        for call in calls:
            try:
                outcome = await execute_tool(call, registry, context)
            except Exception as e:
                logger.error(f"Tool {call.tool_name} failed: {e}", exc_info=True)
                raise AssistantError(details={"stage": "tool", "tool": call.tool_name, "error": str(e)}) from e
            result.actions_taken.append(f"{call.tool_name}: {outcome.text}")
            result.artifacts.update(outcome.artifacts)
            returns.append(
                ToolReturnPart(tool_name=call.tool_name, content=outcome.text, tool_call_id=call.tool_call_id)
            )
        logger.debug(f"Tool round {result.iterations}: {[call.tool_name for call in calls]}")

        history.append(response)
        history.append(ModelRequest(parts=returns))
        response = await ask()

    result.content = response_text(response)
    return result
