"""Assistant tool abstractions."""

from .definitions import ToolContext, ToolDefinition, ToolRegistry, ToolResult
from .handlers import NoArguments, ToolHandler

__all__ = [
    "NoArguments",
    "ToolContext",
    "ToolDefinition",
    "ToolHandler",
    "ToolRegistry",
    "ToolResult",
]
