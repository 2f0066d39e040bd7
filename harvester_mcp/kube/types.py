"""Friendly resource names and the API types they resolve to.

The registry is built once at startup and never mutated. Both singular
and plural spellings of a kind resolve to the same ``ResourceType``; the
reverse lookup returns the canonical singular name and is only used for
display and logging.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType


@dataclass(frozen=True)
class ResourceType:
    """An API resource type identified by group, version and plural name."""

    group: str
    version: str
    plural: str

    @property
    def api_version(self) -> str:
        """The apiVersion string: ``v1`` for the core group, ``group/version`` otherwise."""
        if not self.group:
            return self.version
        return f"{self.group}/{self.version}"

    def __str__(self) -> str:
        return f"{self.plural}.{self.api_version}"


class UnknownResourceType(KeyError):
    """Raised when a friendly name does not resolve to a resource type."""

    def __init__(self, name: str, known: Iterable[str]) -> None:
        self.name = name
        self.known = sorted(known)
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown resource type {self.name!r}; known types: {', '.join(self.known)}"


class ResourceTypeRegistry:
    """Immutable mapping of friendly names to resource types."""

    def __init__(self, entries: Iterable[tuple[Iterable[str], ResourceType]]) -> None:
        """Build the registry.

        Args:
            entries: Pairs of (friendly spellings, resource type). The first
                spelling of each pair is the canonical name.

        Raises:
            ValueError: If a spelling is claimed by two types or a type is
                listed twice.
        """
        by_name: dict[str, ResourceType] = {}
        canonical: dict[ResourceType, str] = {}
        for spellings, resource_type in entries:
            spellings = [s.strip().lower() for s in spellings]
            if not spellings:
                raise ValueError(f"No friendly names given for {resource_type}")
            if resource_type in canonical:
                raise ValueError(f"Resource type listed twice: {resource_type}")
            canonical[resource_type] = spellings[0]
            for spelling in spellings:
                if spelling in by_name:
                    raise ValueError(f"Friendly name already registered: {spelling!r}")
                by_name[spelling] = resource_type

        self._by_name: Mapping[str, ResourceType] = MappingProxyType(by_name)
        self._canonical: Mapping[ResourceType, str] = MappingProxyType(canonical)

    def resolve(self, name: str) -> ResourceType:
        """Return the resource type for a friendly name.

        Raises:
            UnknownResourceType: If the name is not registered.
        """
        try:
            return self._by_name[name.strip().lower()]
        except KeyError:
            raise UnknownResourceType(name, self.names) from None

    def friendly_name(self, resource_type: ResourceType) -> str:
        """Return the canonical singular name, or the plural if unregistered."""
        return self._canonical.get(resource_type, resource_type.plural)

    @property
    def names(self) -> list[str]:
        """All registered friendly spellings, sorted."""
        return sorted(self._by_name)

    @property
    def resource_types(self) -> list[ResourceType]:
        """All registered resource types in registration order."""
        return list(self._canonical)


POD = ResourceType("", "v1", "pods")
SERVICE = ResourceType("", "v1", "services")
NAMESPACE = ResourceType("", "v1", "namespaces")
NODE = ResourceType("", "v1", "nodes")
DEPLOYMENT = ResourceType("apps", "v1", "deployments")
CRD = ResourceType("apiextensions.k8s.io", "v1", "customresourcedefinitions")
VIRTUAL_MACHINE = ResourceType("kubevirt.io", "v1", "virtualmachines")
VOLUME = ResourceType("storage.harvesterhci.io", "v1beta1", "volumes")
NETWORK = ResourceType("network.harvesterhci.io", "v1beta1", "networks")
IMAGE = ResourceType("harvesterhci.io", "v1beta1", "virtualmachineimages")


def default_registry() -> ResourceTypeRegistry:
    """Build the registry of Kubernetes and Harvester types the server exposes."""
    return ResourceTypeRegistry(
        [
            (("pod", "pods"), POD),
            (("service", "services"), SERVICE),
            (("namespace", "namespaces"), NAMESPACE),
            (("node", "nodes"), NODE),
            (("deployment", "deployments"), DEPLOYMENT),
            (("crd", "crds"), CRD),
            (("vm", "vms"), VIRTUAL_MACHINE),
            (("volume", "volumes"), VOLUME),
            (("network", "networks"), NETWORK),
            (("image", "images"), IMAGE),
        ]
    )
