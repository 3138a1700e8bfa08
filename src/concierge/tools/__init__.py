"""Concierge tools - typed tool implementations and the name-based dispatcher."""

from concierge.tools.base import BaseTool, ToolCall, ToolResult
from concierge.tools.campus import CampusDirectory
from concierge.tools.registry import BUILTIN_TOOLS, ToolRegistry

__all__ = [
    "BUILTIN_TOOLS",
    "BaseTool",
    "CampusDirectory",
    "ToolCall",
    "ToolRegistry",
    "ToolResult",
]
