"""Resource tools: list, get and delete cluster objects.

Every kind is served by the same three tool classes, parameterised by a
``ResourceToolSpec``. Requests go through the generic access layer in a
worker thread and the results are rendered by the formatter registered
for the kind the API server returned.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

import structlog

from harvester_mcp.config import DEFAULT_CRD_GROUPS
from harvester_mcp.kube import document as d
from harvester_mcp.kube.access import ResourceAccess, ResourceError
from harvester_mcp.kube.formatters import FormatterRegistry
from harvester_mcp.kube.types import ResourceType, ResourceTypeRegistry, UnknownResourceType
from harvester_mcp.tools.base import BaseTool, ToolResult

logger = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class ResourceToolSpec:
    """How one resource kind is exposed as tools."""

    resource: str
    plural: str
    noun: str
    plural_noun: str
    namespaced: bool = True
    operations: tuple[str, ...] = ("list", "get")

    @property
    def title(self) -> str:
        return self.noun[:1].upper() + self.noun[1:]


CATALOG: tuple[ResourceToolSpec, ...] = (
    ResourceToolSpec("pod", "pods", "pod", "pods", operations=("list", "get", "delete")),
    ResourceToolSpec("deployment", "deployments", "deployment", "deployments"),
    ResourceToolSpec("service", "services", "service", "services"),
    ResourceToolSpec("namespace", "namespaces", "namespace", "namespaces", namespaced=False),
    ResourceToolSpec("node", "nodes", "node", "nodes", namespaced=False),
    ResourceToolSpec(
        "crd",
        "crds",
        "custom resource definition",
        "custom resource definitions",
        namespaced=False,
        operations=("list",),
    ),
    ResourceToolSpec("vm", "vms", "virtual machine", "virtual machines"),
    ResourceToolSpec("image", "images", "VM image", "VM images", operations=("list",)),
    ResourceToolSpec("volume", "volumes", "volume", "volumes", operations=("list",)),
    ResourceToolSpec("network", "networks", "network", "networks", operations=("list",)),
)


async def _in_thread(fn: Callable[..., T], *args: Any) -> T:
    """Run a blocking client call without stalling the event loop.

    Cancelling the awaiting task abandons the call and raises
    ``asyncio.CancelledError`` in the caller.
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(fn, *args))


def _namespace_param(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}


class _ResourceTool(BaseTool):
    """Shared state for tools bound to one resource kind."""

    def __init__(
        self,
        spec: ResourceToolSpec,
        resource_type: ResourceType,
        access: ResourceAccess,
        formatters: FormatterRegistry,
    ) -> None:
        self._spec = spec
        self._type = resource_type
        self._access = access
        self._formatters = formatters


class ListResources(_ResourceTool):
    """List objects of one kind, optionally restricted to a namespace."""

    @property
    def name(self) -> str:
        return f"list_{self._spec.plural}"

    @property
    def description(self) -> str:
        text = f"List {self._spec.plural_noun} in the Harvester cluster."
        if self._spec.namespaced:
            text += " Optionally restrict to one namespace; defaults to all namespaces."
        return text

    @property
    def parameters(self) -> dict[str, Any]:
        if not self._spec.namespaced:
            return {"properties": {}, "required": []}
        return {
            "properties": {
                "namespace": _namespace_param(
                    f"Namespace to list {self._spec.plural_noun} from "
                    "(defaults to all namespaces)."
                ),
            },
            "required": [],
        }

    def _select(self, docs: list[dict[str, Any]]) -> list[dict[str, Any]]:
        return docs

    async def execute(self, *, namespace: str = "", **kwargs: Any) -> ToolResult:
        """List objects and render them grouped."""
        if not self._spec.namespaced:
            namespace = ""
        try:
            docs = await _in_thread(self._access.list, self._type, namespace)
        except ResourceError as e:
            return ToolResult.failure(str(e))

        docs = self._select(docs)
        output = self._formatters.render_many(
            docs, noun=self._spec.plural_noun, scoped=self._spec.namespaced
        )
        return ToolResult(output=output)


class ListCRDs(ListResources):
    """List custom resource definitions belonging to the configured API groups."""

    def __init__(self, *args: Any, groups: Iterable[str] = DEFAULT_CRD_GROUPS) -> None:
        super().__init__(*args)
        self._groups = tuple(groups)

    @property
    def description(self) -> str:
        if not self._groups:
            return "List custom resource definitions in the Harvester cluster."
        return (
            "List custom resource definitions in the Harvester cluster "
            f"for the API groups: {', '.join(self._groups)}."
        )

    def _matches(self, group: str) -> bool:
        return any(group == g or group.endswith("." + g) for g in self._groups)

    def _select(self, docs: list[dict[str, Any]]) -> list[dict[str, Any]]:
        if not self._groups:
            return docs
        return [doc for doc in docs if self._matches(d.get_str(doc, "spec", "group"))]


class GetResource(_ResourceTool):
    """Show one object of a kind in detail."""

    @property
    def name(self) -> str:
        return f"get_{self._spec.resource}"

    @property
    def description(self) -> str:
        return f"Get detailed information about a specific {self._spec.noun}."

    @property
    def parameters(self) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        required = ["name"]
        if self._spec.namespaced:
            properties["namespace"] = _namespace_param(
                f"Namespace of the {self._spec.noun}."
            )
            required.insert(0, "namespace")
        properties["name"] = {
            "type": "string",
            "description": f"Name of the {self._spec.noun}.",
        }
        return {"properties": properties, "required": required}

    async def execute(self, *, name: str = "", namespace: str = "", **kwargs: Any) -> ToolResult:
        """Fetch one object and render its detail view."""
        if self._spec.namespaced and not namespace:
            return ToolResult.failure("Namespace is required")
        if not name:
            return ToolResult.failure(f"{self._spec.title} name is required")
        try:
            doc = await _in_thread(
                self._access.get,
                self._type,
                namespace if self._spec.namespaced else "",
                name,
            )
        except ResourceError as e:
            return ToolResult.failure(str(e))
        return ToolResult(output=self._formatters.render_one(doc))


class DeleteResource(_ResourceTool):
    """Delete one object of a namespaced kind."""

    @property
    def name(self) -> str:
        return f"delete_{self._spec.resource}"

    @property
    def description(self) -> str:
        return f"Delete a {self._spec.noun} from the Harvester cluster."

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "properties": {
                "namespace": _namespace_param(f"Namespace of the {self._spec.noun}."),
                "name": {
                    "type": "string",
                    "description": f"Name of the {self._spec.noun} to delete.",
                },
            },
            "required": ["namespace", "name"],
        }

    async def execute(self, *, name: str = "", namespace: str = "", **kwargs: Any) -> ToolResult:
        """Delete the object and confirm."""
        if not namespace:
            return ToolResult.failure("Namespace is required")
        if not name:
            return ToolResult.failure(f"{self._spec.title} name is required")
        try:
            await _in_thread(self._access.delete, self._type, namespace, name)
        except ResourceError as e:
            return ToolResult.failure(str(e))
        return ToolResult(
            output=f"Successfully deleted {self._spec.noun} {name} in namespace {namespace}"
        )


# --- Tools addressed by resource type name ---


class _TypedTool(BaseTool):
    """Shared state for tools that take the resource type as an argument."""

    def __init__(
        self,
        types: ResourceTypeRegistry,
        access: ResourceAccess,
        formatters: FormatterRegistry,
    ) -> None:
        self._types = types
        self._access = access
        self._formatters = formatters

    def _type_param(self) -> dict[str, Any]:
        return {
            "type": "string",
            "description": (
                "Resource type, one of: "
                + ", ".join(self._types.friendly_name(rt) for rt in self._types.resource_types)
                + " (plural spellings are accepted too)."
            ),
        }


class ListAnyResource(_TypedTool):
    """List objects of any registered resource type."""

    @property
    def name(self) -> str:
        return "list_resources"

    @property
    def description(self) -> str:
        return (
            "List objects of any supported resource type by name, e.g. 'pods' "
            "or 'vms'. Optionally restrict to one namespace."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "properties": {
                "resource_type": self._type_param(),
                "namespace": _namespace_param(
                    "Namespace to list from (defaults to all namespaces; "
                    "ignored for cluster-scoped types)."
                ),
            },
            "required": ["resource_type"],
        }

    async def execute(
        self, *, resource_type: str = "", namespace: str = "", **kwargs: Any
    ) -> ToolResult:
        try:
            rt = self._types.resolve(resource_type)
        except UnknownResourceType as e:
            return ToolResult.failure(str(e))
        try:
            docs = await _in_thread(self._access.list, rt, namespace)
            scoped = True
            if not docs:
                scoped = await _in_thread(self._access.is_namespaced, rt)
        except ResourceError as e:
            return ToolResult.failure(str(e))
        return ToolResult(output=self._formatters.render_many(docs, noun=rt.plural, scoped=scoped))


class GetAnyResource(_TypedTool):
    """Show one object of any registered resource type."""

    @property
    def name(self) -> str:
        return "get_resource"

    @property
    def description(self) -> str:
        return (
            "Get detailed information about one object of any supported "
            "resource type. A namespace is required for namespaced types."
        )

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "properties": {
                "resource_type": self._type_param(),
                "name": {"type": "string", "description": "Name of the object."},
                "namespace": _namespace_param(
                    "Namespace of the object (omit for cluster-scoped types)."
                ),
            },
            "required": ["resource_type", "name"],
        }

    async def execute(
        self, *, resource_type: str = "", name: str = "", namespace: str = "", **kwargs: Any
    ) -> ToolResult:
        try:
            rt = self._types.resolve(resource_type)
        except UnknownResourceType as e:
            return ToolResult.failure(str(e))
        friendly = self._types.friendly_name(rt)
        try:
            namespaced = await _in_thread(self._access.is_namespaced, rt)
            if namespaced and not namespace:
                return ToolResult.failure(
                    f"Namespace is required for namespaced resource type {friendly!r}"
                )
            doc = await _in_thread(self._access.get, rt, namespace if namespaced else "", name)
        except ResourceError as e:
            return ToolResult.failure(str(e))
        return ToolResult(output=self._formatters.render_one(doc))


def build_resource_tools(
    access: ResourceAccess,
    formatters: FormatterRegistry,
    types: ResourceTypeRegistry,
    *,
    read_only: bool = False,
    crd_groups: Sequence[str] = DEFAULT_CRD_GROUPS,
    catalog: Sequence[ResourceToolSpec] = CATALOG,
) -> list[BaseTool]:
    """Create the tool set for every kind in the catalog.

    Args:
        access: Access layer the tools read and delete through.
        formatters: Registry used to render results.
        types: Resolves each catalog entry to its resource type.
        read_only: Skip delete tools.
        crd_groups: API groups ``list_crds`` is narrowed to; empty for all.
        catalog: Kinds and operations to expose.

    Raises:
        UnknownResourceType: If a catalog entry names an unregistered type.
    """
    tools: list[BaseTool] = []
    for spec in catalog:
        resource_type = types.resolve(spec.resource)
        args = (spec, resource_type, access, formatters)
        if "list" in spec.operations:
            if spec.resource == "crd":
                tools.append(ListCRDs(*args, groups=crd_groups))
            else:
                tools.append(ListResources(*args))
        if "get" in spec.operations:
            tools.append(GetResource(*args))
        if "delete" in spec.operations:
            if read_only:
                logger.info("tool_skipped", tool=f"delete_{spec.resource}", reason="read_only")
            else:
                tools.append(DeleteResource(*args))

    tools.append(ListAnyResource(types, access, formatters))
    tools.append(GetAnyResource(types, access, formatters))
    return tools
