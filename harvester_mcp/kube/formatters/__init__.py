"""Text formatters for resource documents, dispatched by declared kind."""

from harvester_mcp.kube.formatters.base import Formatter
from harvester_mcp.kube.formatters.registry import FormatterRegistry, default_formatters

__all__ = ["Formatter", "FormatterRegistry", "default_formatters"]
