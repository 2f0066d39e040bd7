"""MCP stdio server exposing the tool registry.

Each tool call is dispatched through the registry and answered with a
single text block; failures come back as ``Error: ...`` text rather than
protocol errors so the agent can read and act on them.
"""

from __future__ import annotations

from typing import Any

import structlog
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from harvester_mcp import __version__
from harvester_mcp.tools.registry import ToolRegistry

logger = structlog.get_logger()

SERVER_NAME = "harvester-mcp-server"


def result_text(result: dict[str, Any]) -> str:
    """Flatten a dispatch result into the text returned to the client."""
    if result.get("error"):
        return f"Error: {result['error']}"
    return result.get("output", "")


def create_server(registry: ToolRegistry, instructions: str | None = None) -> Server:
    """Create an MCP server whose tools are the registry's tools."""
    app = Server(SERVER_NAME, version=__version__, instructions=instructions)

    @app.list_tools()
    async def list_tools() -> list[Tool]:
        return [
            Tool(
                name=schema["name"],
                description=schema["description"],
                inputSchema=schema["inputSchema"],
            )
            for schema in registry.get_schemas()
        ]

    @app.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        logger.info("tool_called", tool=name)
        result = await registry.dispatch(name, arguments or {})
        return [TextContent(type="text", text=result_text(result))]

    return app


async def serve_stdio(app: Server) -> None:
    """Run the server over stdin/stdout until the client disconnects."""
    async with stdio_server() as (read_stream, write_stream):
        logger.info("server_started", server=SERVER_NAME, transport="stdio")
        await app.run(read_stream, write_stream, app.create_initialization_options())
