"""CLI entry point for the Harvester MCP server using Click."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import Any

import click
import structlog

from harvester_mcp import __version__
from harvester_mcp.config import ServerConfig, load_config

logger = structlog.get_logger()

CONFIG_ENV = "HARVESTER_MCP_CONFIG"
LOG_LEVEL_ENV = "HARVESTER_MCP_LOG_LEVEL"
DEFAULT_CONFIG_PATH = "./config/server.yaml"


def _configure_logging(log_level: str) -> None:
    """Configure structlog for stderr output; stdout carries the MCP protocol."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer() if sys.stderr.isatty() else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _build_core(cfg: ServerConfig, *, connect_cluster: bool = True):
    """Build the core server components (access layer, registry, instructions).

    Args:
        cfg: Validated server configuration.
        connect_cluster: Connect to the API server. Without a connection
            the tools can be listed but not executed.

    Returns:
        Tuple of (ToolRegistry, AuditLogger, instructions_str).
    """
    from harvester_mcp.kube.access import ResourceAccess
    from harvester_mcp.kube.formatters import default_formatters
    from harvester_mcp.kube.session import connect
    from harvester_mcp.kube.types import default_registry
    from harvester_mcp.prompts import build_instructions
    from harvester_mcp.security.audit import AuditLogger
    from harvester_mcp.tools.registry import ToolRegistry
    from harvester_mcp.tools.resources import build_resource_tools

    types = default_registry()
    client = connect(cfg.kubeconfig, cfg.context) if connect_cluster else None
    access = ResourceAccess(client, types, request_timeout=cfg.command_timeout)
    audit = AuditLogger(cfg.audit_log_path)

    registry = ToolRegistry(cfg, audit)
    for tool in build_resource_tools(
        access,
        default_formatters(),
        types,
        read_only=cfg.read_only,
        crd_groups=cfg.crd_groups,
    ):
        registry.register(tool)

    instructions = build_instructions(registry, read_only=cfg.read_only)
    return registry, audit, instructions


def _load(config_file: str | None, **overrides: Any) -> ServerConfig:
    return load_config(config_file or os.environ.get(CONFIG_ENV, DEFAULT_CONFIG_PATH), **overrides)


def _parse_args(pairs: tuple[str, ...]) -> dict[str, str]:
    """Turn ``key=value`` pairs into a tool input dict."""
    arguments: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {pair!r}", param_hint="--arg")
        arguments[key.strip()] = value.strip()
    return arguments


config_option = click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    default=None,
    help=f"Path to the YAML configuration file. Defaults to {CONFIG_ENV} env or {DEFAULT_CONFIG_PATH}.",
)
log_level_option = click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help=f"Logging level. Defaults to {LOG_LEVEL_ENV} env or INFO.",
)


@click.group()
@click.version_option(version=__version__, prog_name="harvester-mcp")
def cli() -> None:
    """Harvester MCP server - Kubernetes and Harvester resources as agent tools."""


@cli.command()
@config_option
@log_level_option
@click.option("--kubeconfig", type=click.Path(dir_okay=False), default=None, help="Kubeconfig file to use.")
@click.option("--context", default=None, help="Kubeconfig context to use.")
@click.option("--read-only", is_flag=True, default=False, help="Do not register tools that modify the cluster.")
def serve(
    config_file: str | None,
    log_level: str | None,
    kubeconfig: str | None,
    context: str | None,
    read_only: bool,
) -> None:
    """Run the MCP server over stdio."""
    from harvester_mcp.kube.session import SessionError
    from harvester_mcp.server import create_server, serve_stdio

    _configure_logging(log_level or os.environ.get(LOG_LEVEL_ENV, "INFO"))

    try:
        cfg = _load(config_file, kubeconfig=kubeconfig, context=context, read_only=read_only or None)
        registry, audit, instructions = _build_core(cfg)
    except SessionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"Startup error: {e}", err=True)
        logger.exception("startup_failed")
        sys.exit(1)

    audit.log_session_start(transport="stdio", tools=registry.tool_names)
    try:
        asyncio.run(serve_stdio(create_server(registry, instructions)))
    except KeyboardInterrupt:
        logger.info("server_interrupted")
    finally:
        audit.log_session_end()
        audit.close()
        logger.info("server_stopped")


@cli.command()
@config_option
def check_config(config_file: str | None) -> None:
    """Validate the configuration file without connecting to the cluster."""
    try:
        cfg = _load(config_file)
    except Exception as e:
        click.echo(f"FAIL: {e}", err=True)
        sys.exit(1)

    click.echo("Configuration OK")
    click.echo(f"  Kubeconfig: {cfg.kubeconfig or '(in-cluster, then default kubeconfig)'}")
    click.echo(f"  Context: {cfg.context or '(current)'}")
    click.echo(f"  Command timeout: {cfg.command_timeout}s")
    click.echo(f"  Audit log: {cfg.audit_log_path}")
    click.echo(f"  Read-only: {cfg.read_only}")
    click.echo(f"  CRD groups: {', '.join(cfg.crd_groups) or '(all)'}")


@cli.command()
@config_option
def tools(config_file: str | None) -> None:
    """List the tools the server exposes."""
    _configure_logging("WARNING")
    try:
        cfg = _load(config_file)
        registry, audit, _instructions = _build_core(cfg, connect_cluster=False)
    except Exception as e:
        click.echo(f"Startup error: {e}", err=True)
        sys.exit(1)
    audit.close()

    for schema in registry.get_schemas():
        required = schema["inputSchema"].get("required", [])
        params = [
            name if name in required else f"[{name}]"
            for name in schema["inputSchema"].get("properties", {})
        ]
        click.echo(f"{schema['name']} {' '.join(params)}".rstrip())
        click.echo(f"    {schema['description']}")


@cli.command()
@config_option
@log_level_option
@click.argument("tool_name")
@click.option("-a", "--arg", "args", multiple=True, help="Tool argument as key=value. Repeatable.")
def call(config_file: str | None, log_level: str | None, tool_name: str, args: tuple[str, ...]) -> None:
    """Run a single tool call and print its text result."""
    from harvester_mcp.server import result_text

    _configure_logging(log_level or os.environ.get(LOG_LEVEL_ENV, "WARNING"))
    arguments = _parse_args(args)

    try:
        cfg = _load(config_file)
        registry, audit, _instructions = _build_core(cfg)
    except Exception as e:
        click.echo(f"Startup error: {e}", err=True)
        sys.exit(1)

    try:
        result = asyncio.run(registry.dispatch(tool_name, arguments))
    finally:
        audit.close()

    click.echo(result_text(result))
    if result.get("error"):
        sys.exit(1)


if __name__ == "__main__":
    cli()
