"""Base class of assistant tool handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar, Generic, Type, TypeVar

from pydantic import BaseModel

from serviceos.core.logging_config import get_logger

from .definitions import ToolContext, ToolDefinition, ToolResult

logger = get_logger(__name__)

InputType = TypeVar("InputType", bound=BaseModel)


class ToolHandler(ABC, Generic[InputType]):
    """One assistant tool: its advertised schema plus the code running it.

    Subclasses set ``name``, ``description`` and ``input_schema`` and
    implement :meth:`execute`.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    input_schema: ClassVar[Type[BaseModel]]

    @abstractmethod
    async def execute(self, ctx: ToolContext, args: InputType) -> ToolResult:
        """Run the tool.

        Args:
            ctx: Tenant-scoped session and services of the request
            args: Validated tool input

        Returns:
            ToolResult whose text is returned to the model
        """

    async def __call__(self, ctx: ToolContext, args: InputType) -> ToolResult:
        logger.debug(f"Executing tool {self.name} for organization {ctx.organization_id}")
        return await self.execute(ctx, args)

    @classmethod
    def definition(cls) -> ToolDefinition:
        return ToolDefinition(
            name=cls.name,
            description=cls.description,
            input_schema=cls.input_schema,
            handler=cls(),
        )


class NoArguments(BaseModel):
    """Input of tools that take no parameters."""
