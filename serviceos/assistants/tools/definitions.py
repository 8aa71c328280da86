"""Tool definitions for the assistants.

A tool is advertised to the model by name, description and the JSON schema of
its pydantic input model, and executed by a handler against the tenant's
database.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic_ai.tools import ToolDefinition as ModelToolDefinition
from sqlmodel.ext.asyncio.session import AsyncSession


@dataclass
class ToolContext:
    """What a tool handler may touch while serving one request."""

    session: AsyncSession
    organization_id: str
    services: Dict[str, Any] = field(default_factory=dict)

    def service(self, name: str) -> Any:
        return self.services.get(name)


class ToolResult(BaseModel):
    """Outcome of one tool call.

    ``text`` is what the model reads back; ``artifacts`` carry structured data
    for the API response (search hits, created ids, updated block data).
    """

    text: str
    artifacts: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def of(cls, payload: Any, **artifacts: Any) -> "ToolResult":
        return cls(text=json.dumps(payload, default=str), artifacts=artifacts)

    @classmethod
    def error(cls, message: str, **details: Any) -> "ToolResult":
        return cls.of({"error": message, **details})


class ToolDefinition(BaseModel):
    """Pydantic model for tool definitions.

    Provides a structured, validated way to define assistant tools with a clear
    input schema and the handler executing them.
    """

    name: str = Field(..., description="Unique identifier for the tool")
    description: str = Field(..., description="What the tool does, written for the model")
    input_schema: Type[BaseModel] = Field(..., description="Pydantic model class for input validation")
    handler: Optional[Callable] = Field(default=None, description="Async handler executing the tool")

    model_config = ConfigDict(arbitrary_types_allowed=True)

    def get_input_schema_json(self) -> Dict[str, Any]:
        return self.input_schema.model_json_schema()

    def to_model_tool(self) -> ModelToolDefinition:
        """Function tool as advertised to the model."""
        return ModelToolDefinition(
            name=self.name,
            description=self.description,
            parameters_json_schema=self.get_input_schema_json(),
        )

    def has_handler(self) -> bool:
        return self.handler is not None


class ToolRegistry:
    """Ordered, name-unique set of tool definitions."""

    def __init__(self, definitions: Optional[List[ToolDefinition]] = None) -> None:
        self._tools: Dict[str, ToolDefinition] = {}
        for definition in definitions or []:
            self.register(definition)

    def register(self, definition: ToolDefinition) -> None:
        if definition.name in self._tools:
            raise ValueError(f"Tool already registered: {definition.name}")
        if not definition.has_handler():
            raise ValueError(f"Tool has no handler: {definition.name}")
        self._tools[definition.name] = definition

    def get(self, name: str) -> Optional[ToolDefinition]:
        return self._tools.get(name)

    def model_tools(self) -> List[ModelToolDefinition]:
        return [definition.to_model_tool() for definition in self._tools.values()]

    @property
    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools.values())
