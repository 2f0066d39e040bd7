"""Shared fixtures: an in-memory stand-in for the Kubernetes dynamic client."""

from __future__ import annotations

import copy
import json
import threading
from typing import Any

import pytest
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic.exceptions import NotFoundError, ResourceNotFoundError

from harvester_mcp.config import ServerConfig
from harvester_mcp.kube.access import ResourceAccess
from harvester_mcp.kube.formatters import FormatterRegistry, default_formatters
from harvester_mcp.kube.types import ResourceTypeRegistry, default_registry
from harvester_mcp.security.audit import AuditLogger


def api_error(cls: type, status: int, reason: str, message: str) -> Exception:
    """Build a dynamic-client error the way the API server would report it."""
    exc = ApiException(status=status, reason=reason)
    exc.body = json.dumps({"kind": "Status", "status": "Failure", "message": message})
    return cls(exc)


class FakeInstance:
    def __init__(self, data: dict[str, Any]) -> None:
        self._data = data

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)


class FakeApiResource:
    """One discovered API resource holding objects keyed by (namespace, name)."""

    def __init__(self, kind: str, api_version: str, plural: str, namespaced: bool = True) -> None:
        self.kind = kind
        self.api_version = api_version
        self.plural = plural
        self.namespaced = namespaced
        self.objects: dict[tuple[str, str], dict[str, Any]] = {}
        self.error: Exception | None = None
        self.calls: list[tuple[str, str | None, str | None]] = []
        # Extra request options per call, e.g. _request_timeout
        self.options: list[dict[str, Any]] = []
        # When set, get() waits for it, standing in for an unresponsive server
        self.block: threading.Event | None = None

    def add(self, doc: dict[str, Any]) -> None:
        metadata = doc.get("metadata", {})
        self.objects[(metadata.get("namespace", ""), metadata["name"])] = doc

    def _not_found(self, name: str) -> Exception:
        return api_error(NotFoundError, 404, "Not Found", f'{self.plural} "{name}" not found')

    def get(self, name: str | None = None, namespace: str | None = None, **kwargs: Any) -> FakeInstance:
        self.calls.append(("get", namespace, name))
        self.options.append(kwargs)
        if self.block is not None:
            self.block.wait(timeout=5)
        if self.error is not None:
            raise self.error
        if name is None:
            items = []
            for (ns, _), doc in self.objects.items():
                if namespace in (None, ns):
                    item = copy.deepcopy(doc)
                    # List responses omit kind and apiVersion per item
                    item.pop("kind", None)
                    item.pop("apiVersion", None)
                    items.append(item)
            return FakeInstance(
                {
                    "kind": f"{self.kind}List",
                    "apiVersion": self.api_version,
                    "metadata": {"resourceVersion": "1"},
                    "items": items,
                }
            )
        doc = self.objects.get((namespace or "", name))
        if doc is None:
            raise self._not_found(name)
        return FakeInstance(doc)

    def create(self, body: dict[str, Any], namespace: str | None = None, **kwargs: Any) -> FakeInstance:
        self.calls.append(("create", namespace, body["metadata"]["name"]))
        self.options.append(kwargs)
        if self.error is not None:
            raise self.error
        self.add(body)
        return FakeInstance(body)

    def replace(self, body: dict[str, Any], namespace: str | None = None, **kwargs: Any) -> FakeInstance:
        name = body["metadata"]["name"]
        self.calls.append(("replace", namespace, name))
        self.options.append(kwargs)
        if self.error is not None:
            raise self.error
        if (namespace or "", name) not in self.objects:
            raise self._not_found(name)
        self.add(body)
        return FakeInstance(body)

    def delete(self, name: str, namespace: str | None = None, **kwargs: Any) -> FakeInstance:
        self.calls.append(("delete", namespace, name))
        self.options.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.objects.pop((namespace or "", name), None) is None:
            raise self._not_found(name)
        return FakeInstance({"kind": "Status", "status": "Success"})


class FakeResources:
    def __init__(self) -> None:
        self.apis: dict[tuple[str, str], FakeApiResource] = {}
        self.lookups: list[dict[str, Any]] = []

    def add(self, api: FakeApiResource) -> FakeApiResource:
        self.apis[(api.api_version, api.plural)] = api
        return api

    def get(self, **kwargs: Any) -> FakeApiResource:
        self.lookups.append(kwargs)
        api = self.apis.get((kwargs.get("api_version"), kwargs.get("name")))
        if api is None:
            raise ResourceNotFoundError(f"No matches found for {kwargs}")
        return api


class FakeDynamicClient:
    """Just enough of ``kubernetes.dynamic.DynamicClient`` for the access layer."""

    def __init__(self) -> None:
        self.resources = FakeResources()
        for kind, api_version, plural, namespaced in (
            ("Pod", "v1", "pods", True),
            ("Service", "v1", "services", True),
            ("Namespace", "v1", "namespaces", False),
            ("Node", "v1", "nodes", False),
            ("Deployment", "apps/v1", "deployments", True),
            ("CustomResourceDefinition", "apiextensions.k8s.io/v1", "customresourcedefinitions", False),
            ("VirtualMachine", "kubevirt.io/v1", "virtualmachines", True),
            ("Volume", "storage.harvesterhci.io/v1beta1", "volumes", True),
            ("Network", "network.harvesterhci.io/v1beta1", "networks", True),
            ("VirtualMachineImage", "harvesterhci.io/v1beta1", "virtualmachineimages", True),
        ):
            self.resources.add(FakeApiResource(kind, api_version, plural, namespaced))

    def api(self, api_version: str, plural: str) -> FakeApiResource:
        return self.resources.apis[(api_version, plural)]


@pytest.fixture
def types() -> ResourceTypeRegistry:
    return default_registry()


@pytest.fixture
def formatters() -> FormatterRegistry:
    return default_formatters()


@pytest.fixture
def fake_client() -> FakeDynamicClient:
    return FakeDynamicClient()


@pytest.fixture
def access(fake_client: FakeDynamicClient, types: ResourceTypeRegistry) -> ResourceAccess:
    return ResourceAccess(fake_client, types)


@pytest.fixture
def server_config(tmp_path) -> ServerConfig:
    return ServerConfig(command_timeout=2, audit_log_path=str(tmp_path / "audit.jsonl"))


@pytest.fixture
def audit_logger(tmp_path):
    logger = AuditLogger(str(tmp_path / "audit.jsonl"))
    yield logger
    logger.close()


@pytest.fixture
def make_api_error():
    return api_error
