"""Tool registration, schema generation, and dispatch.

Central registry that tools register with. Provides the MCP tool
definitions and dispatches incoming tool calls through validation,
auditing and a timeout to the correct implementation.
"""

from __future__ import annotations

import asyncio
from typing import Any

import structlog

from harvester_mcp.config import ServerConfig
from harvester_mcp.security.audit import AuditLogger
from harvester_mcp.security.sanitizer import SanitizationError, sanitize
from harvester_mcp.tools.base import BaseTool

logger = structlog.get_logger()


class ToolRegistry:
    """Central registry for all server tools with validated dispatch."""

    def __init__(self, config: ServerConfig, audit: AuditLogger) -> None:
        """Initialize the registry.

        Args:
            config: Server configuration.
            audit: Audit logger for recording all tool calls.
        """
        self._config = config
        self._audit = audit
        self._tools: dict[str, BaseTool] = {}

    def register(self, tool: BaseTool) -> None:
        """Register a tool instance.

        Args:
            tool: The tool to register.

        Raises:
            ValueError: If a tool with the same name is already registered.
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool already registered: {tool.name!r}")
        self._tools[tool.name] = tool
        logger.debug("tool_registered", tool=tool.name)

    def get_schemas(self) -> list[dict[str, Any]]:
        """Return MCP tool definitions for all registered tools."""
        return [tool.to_schema() for tool in self._tools.values()]

    def get_tool(self, name: str) -> BaseTool | None:
        """Look up a tool by name."""
        return self._tools.get(name)

    @property
    def tool_names(self) -> list[str]:
        """Return all registered tool names."""
        return list(self._tools.keys())

    async def dispatch(self, tool_name: str, tool_input: dict[str, Any]) -> dict[str, Any]:
        """Execute a tool call through the full pipeline.

        Pipeline:
        1. Check required arguments
        2. Sanitize inputs
        3. Log the attempt
        4. Execute with timeout
        5. Log the result

        Args:
            tool_name: Name of the tool to call.
            tool_input: The tool's input parameters.

        Returns:
            Dict with tool output, suitable for returning to the client.
        """
        # 0. Check tool exists
        tool = self._tools.get(tool_name)
        if tool is None:
            return {"error": f"Unknown tool: {tool_name!r}"}

        # 1. Required arguments must be present and non-empty
        missing = [field for field in tool.required if tool_input.get(field) in (None, "")]
        if missing:
            reason = f"Missing required argument(s): {', '.join(missing)}"
            self._audit.log_denied(tool_name, tool_input, reason=reason)
            return {"error": reason}

        # 2. Sanitize inputs
        try:
            sanitized = sanitize(tool_name, tool_input)
        except SanitizationError as e:
            self._audit.log_denied(tool_name, tool_input, reason=f"sanitizer: {e}")
            return {"error": f"Input rejected: {e}"}

        # 3. Log the attempt
        self._audit.log_attempt(tool_name, sanitized)

        # 4. Execute with timeout
        timeout = self._config.command_timeout
        try:
            result = await asyncio.wait_for(
                tool.execute(**sanitized),
                timeout=timeout,
            )
        except asyncio.TimeoutError:
            self._audit.log_timeout(tool_name, sanitized)
            return {"error": f"Operation timed out ({timeout}s)"}
        except Exception as e:
            logger.exception("tool_failed", tool=tool_name)
            self._audit.log_error(tool_name, sanitized, error=str(e))
            return {"error": f"Execution failed: {e}"}

        # 5. Log result and return
        result_dict = result.to_dict()
        if result.success:
            self._audit.log_success(tool_name, sanitized, result=result_dict)
        else:
            self._audit.log_error(
                tool_name,
                sanitized,
                error=result.error or f"exit code {result.exit_code}",
            )
        return result_dict
