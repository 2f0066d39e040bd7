"""Server instructions for MCP clients.

Assembles the instructions dynamically from the registered tool list so
the agent knows what it can inspect and change in the cluster.
"""

from __future__ import annotations

from harvester_mcp.tools.registry import ToolRegistry


_INSTRUCTIONS_TEMPLATE = """\
This server exposes a Harvester HCI cluster (Kubernetes with KubeVirt
virtual machines) as tools that return human-readable text.

## Rules
1. Always use tools to get real cluster state; never guess object names or status.
2. Namespaced list tools search every namespace when no namespace is given.
3. Get and delete tools need the exact namespace and name; list first if unsure.
4. Deletion is immediate and cannot be undone. Confirm with the user before deleting.
{read_only_note}
## Available Tools
{tool_list}\
"""


def build_instructions(registry: ToolRegistry, read_only: bool = False) -> str:
    """Build the server instructions from the registered tools.

    Args:
        registry: The tool registry with all registered tools.
        read_only: Whether mutating tools were left out.

    Returns:
        The assembled instructions string.
    """
    tool_lines: list[str] = []
    for schema in registry.get_schemas():
        name = schema["name"]
        desc = schema["description"]
        params = schema["inputSchema"].get("properties", {})
        required = schema["inputSchema"].get("required", [])

        param_parts: list[str] = []
        for pname, pdef in params.items():
            ptype = pdef.get("type", "any")
            pdesc = pdef.get("description", "")
            req = " (required)" if pname in required else ""
            param_parts.append(f"    - {pname} ({ptype}{req}): {pdesc}")

        param_block = "\n".join(param_parts) if param_parts else "    (no parameters)"
        tool_lines.append(f"- **{name}**: {desc}\n{param_block}")

    note = "5. This server is read-only; no tool modifies the cluster.\n" if read_only else ""

    return _INSTRUCTIONS_TEMPLATE.format(
        read_only_note=note,
        tool_list="\n".join(tool_lines),
    )
