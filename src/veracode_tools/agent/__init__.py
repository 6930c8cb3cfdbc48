"""Agent-facing layer: tool registry, handler context and tool definitions."""

from veracode_tools.agent.context import ToolContext
from veracode_tools.agent.registry import (
    ToolCategory,
    ToolDescriptor,
    ToolRegistry,
    ToolResponse,
)
from veracode_tools.agent.tools import all_tools, build_registry

__all__ = [
    "ToolContext",
    "ToolCategory",
    "ToolDescriptor",
    "ToolRegistry",
    "ToolResponse",
    "all_tools",
    "build_registry",
]
