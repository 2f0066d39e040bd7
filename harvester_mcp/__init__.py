"""Harvester MCP server: Kubernetes and Harvester resources as agent tools."""

__version__ = "0.1.0"
