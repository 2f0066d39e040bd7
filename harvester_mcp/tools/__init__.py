"""Tool implementations for the Harvester MCP server."""

from __future__ import annotations

from harvester_mcp.tools.base import BaseTool, ToolResult
from harvester_mcp.tools.registry import ToolRegistry
from harvester_mcp.tools.resources import build_resource_tools

__all__ = [
    "BaseTool",
    "ToolRegistry",
    "ToolResult",
    "build_resource_tools",
]
