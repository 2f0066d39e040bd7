"""Base tool class defining the interface all tools must implement.

Each tool provides its name, description, JSON Schema parameters, and
an async execute method. The registry uses these to publish MCP tool
definitions and dispatch calls.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

# Matches ANSI CSI sequences (\x1b[...letter) and OSC sequences (\x1b]...BEL)
_ANSI_RE = re.compile(r"\x1b(?:\[[0-9;]*[A-Za-z]|\][^\x07]*\x07)")


def _strip_ansi(text: str) -> str:
    """Remove ANSI escape codes and carriage returns from text."""
    return _ANSI_RE.sub("", text).replace("\r", "")


@dataclass(frozen=True)
class ToolResult:
    """Structured result from a tool execution."""

    output: str = ""
    error: str = ""
    exit_code: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a dict suitable for returning to the client.

        Strips control sequences that can appear in object annotations or
        status messages so the agent and the audit log see clean text.
        """
        result: dict[str, Any] = {"output": _strip_ansi(self.output)}
        if self.error:
            result["error"] = _strip_ansi(self.error)
        result["exit_code"] = self.exit_code
        return result

    @property
    def success(self) -> bool:
        """Whether the tool executed without error."""
        return self.exit_code == 0 and not self.error

    @classmethod
    def failure(cls, message: str) -> ToolResult:
        return cls(error=message, exit_code=1)


class BaseTool(ABC):
    """Abstract base class for all server tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool name used in schemas and dispatch."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description. The agent reads this to decide when to use the tool."""

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema dict defining the tool's input parameters."""

    @abstractmethod
    async def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the tool with the given parameters.

        Args:
            **kwargs: Tool-specific parameters matching the JSON Schema.

        Returns:
            ToolResult with output/error and exit code.
        """

    @property
    def required(self) -> list[str]:
        """Names of the parameters the caller must supply."""
        return list(self.parameters.get("required", []))

    def to_schema(self) -> dict[str, Any]:
        """Generate the MCP tool definition for this tool."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                **self.parameters,
            },
        }
