"""Generic access to any resource type through the Kubernetes dynamic client.

One parameterised component serves every kind: callers pass a
``ResourceType`` and get plain documents back. Each call makes a single
request with no retries; remote failures are re-raised as
``ResourceError`` carrying the operation, resource, namespace and name.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any

import structlog
import urllib3
from kubernetes.client.exceptions import ApiException
from kubernetes.dynamic import DynamicClient
from kubernetes.dynamic.exceptions import (
    ConflictError,
    NotFoundError,
    ResourceNotFoundError,
    ResourceNotUniqueError,
)

from harvester_mcp.kube.types import ResourceType, ResourceTypeRegistry

logger = structlog.get_logger()

# Failures the API client can raise for a single request
_REMOTE_ERRORS = (
    ApiException,
    ResourceNotFoundError,
    ResourceNotUniqueError,
    urllib3.exceptions.HTTPError,
    OSError,
)


class ResourceError(Exception):
    """A remote operation on a resource failed."""

    def __init__(
        self,
        operation: str,
        resource: str,
        namespace: str | None,
        name: str | None,
        cause: BaseException,
    ) -> None:
        self.operation = operation
        self.resource = resource
        self.namespace = namespace or ""
        self.name = name or ""
        self.cause = cause
        super().__init__(self._message())

    def _message(self) -> str:
        target = f"{self.resource} {self.name}" if self.name else self.resource
        scope = f" in namespace {self.namespace}" if self.namespace else ""
        return f"Failed to {self.operation} {target}{scope}: {describe_cause(self.cause)}"


class ResourceNotFound(ResourceError):
    """The resource, or its API type, does not exist."""


class ResourceConflict(ResourceError):
    """The API server rejected the write because of a conflicting state."""


def describe_cause(exc: BaseException) -> str:
    """Summarise an API failure as the server's message plus HTTP status."""
    if isinstance(exc, ApiException):
        body = exc.body
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        message = ""
        if isinstance(body, str) and body:
            try:
                parsed = json.loads(body)
            except ValueError:
                parsed = None
            if isinstance(parsed, Mapping):
                message = str(parsed.get("message") or "")
        status = " ".join(str(part) for part in (exc.status, exc.reason) if part)
        if message and status:
            return f"{message} ({status})"
        return message or status or "API error"
    return str(exc) or type(exc).__name__


def _error_class(exc: BaseException) -> type[ResourceError]:
    if isinstance(exc, (NotFoundError, ResourceNotFoundError)):
        return ResourceNotFound
    if isinstance(exc, ConflictError):
        return ResourceConflict
    if isinstance(exc, ApiException):
        if exc.status == 404:
            return ResourceNotFound
        if exc.status == 409:
            return ResourceConflict
    return ResourceError


def _clean(doc: Any) -> dict[str, Any]:
    """Drop server bookkeeping that formatters never read."""
    if not isinstance(doc, dict):
        return {}
    metadata = doc.get("metadata")
    if isinstance(metadata, dict):
        metadata.pop("managedFields", None)
    return doc


class ResourceAccess:
    """List, get, create, update and delete any resource type."""

    def __init__(
        self,
        client: DynamicClient | None,
        types: ResourceTypeRegistry,
        request_timeout: float | None = None,
    ) -> None:
        """Initialize the access layer.

        Args:
            client: Dynamic client used for discovery and requests. None
                when tools are only being listed, never executed.
            types: Registry used to name resource types in errors and logs.
            request_timeout: Seconds before the HTTP client gives up on a
                request. Bounds calls whose caller has already stopped waiting.
        """
        self._client = client
        self._types = types
        self._request_timeout = request_timeout

    def _options(self) -> dict[str, Any]:
        if self._request_timeout is None:
            return {}
        return {"_request_timeout": self._request_timeout}

    def _api(self, resource_type: ResourceType) -> Any:
        """Look up the discovered API resource for a resource type."""
        return self._client.resources.get(
            prefix="apis" if resource_type.group else "api",
            api_version=resource_type.api_version,
            name=resource_type.plural,
        )

    @contextmanager
    def _call(
        self,
        operation: str,
        resource_type: ResourceType,
        namespace: str | None = None,
        name: str | None = None,
        *,
        label: str | None = None,
    ) -> Iterator[None]:
        """Wrap remote failures raised inside the block as ``ResourceError``."""
        label = label or self._types.friendly_name(resource_type)
        try:
            yield
        except _REMOTE_ERRORS as e:
            error = _error_class(e)(operation, label, namespace, name, e)
            logger.warning(
                "resource_call_failed",
                operation=operation,
                resource=str(resource_type),
                namespace=namespace or None,
                name=name,
                error_type=type(error).__name__,
                error=describe_cause(e),
            )
            raise error from e

    def list(
        self, resource_type: ResourceType, namespace: str | None = None
    ) -> list[dict[str, Any]]:
        """List resources in one namespace, or across all of them when empty.

        Items are returned with ``kind`` and ``apiVersion`` filled in from
        the list envelope, since the API server omits them per item.
        """
        with self._call("list", resource_type, namespace, label=resource_type.plural):
            result = self._api(resource_type).get(namespace=namespace or None, **self._options())
            data = result.to_dict()

        list_kind = data.get("kind") or ""
        item_kind = list_kind[: -len("List")] if list_kind.endswith("List") else list_kind
        api_version = data.get("apiVersion") or resource_type.api_version

        items = []
        for item in data.get("items") or []:
            item = _clean(item)
            if item_kind:
                item.setdefault("kind", item_kind)
            item.setdefault("apiVersion", api_version)
            items.append(item)

        logger.debug(
            "resource_listed",
            resource=str(resource_type),
            namespace=namespace or None,
            count=len(items),
        )
        return items

    def get(
        self, resource_type: ResourceType, namespace: str | None, name: str
    ) -> dict[str, Any]:
        """Fetch one resource. ``namespace`` must be empty for cluster-scoped kinds."""
        with self._call("get", resource_type, namespace, name):
            result = self._api(resource_type).get(
                name=name, namespace=namespace or None, **self._options()
            )
            doc = _clean(result.to_dict())
        logger.debug("resource_fetched", resource=str(resource_type), namespace=namespace or None, name=name)
        return doc

    def create(
        self, resource_type: ResourceType, namespace: str | None, body: dict[str, Any]
    ) -> dict[str, Any]:
        """Create a resource; the API server is the only validator of ``body``."""
        name = str(body.get("metadata", {}).get("name", "")) if isinstance(body, dict) else ""
        with self._call("create", resource_type, namespace, name):
            result = self._api(resource_type).create(
                body=body, namespace=namespace or None, **self._options()
            )
            doc = _clean(result.to_dict())
        logger.info("resource_created", resource=str(resource_type), namespace=namespace or None, name=name)
        return doc

    def update(
        self, resource_type: ResourceType, namespace: str | None, body: dict[str, Any]
    ) -> dict[str, Any]:
        """Replace a resource with ``body``."""
        name = str(body.get("metadata", {}).get("name", "")) if isinstance(body, dict) else ""
        with self._call("update", resource_type, namespace, name):
            result = self._api(resource_type).replace(
                body=body, namespace=namespace or None, **self._options()
            )
            doc = _clean(result.to_dict())
        logger.info("resource_updated", resource=str(resource_type), namespace=namespace or None, name=name)
        return doc

    def delete(self, resource_type: ResourceType, namespace: str | None, name: str) -> None:
        """Delete a resource.

        Raises:
            ResourceNotFound: If the resource does not exist.
            ResourceConflict: If the API server refuses the deletion.
        """
        with self._call("delete", resource_type, namespace, name):
            self._api(resource_type).delete(
                name=name, namespace=namespace or None, **self._options()
            )
        logger.info("resource_deleted", resource=str(resource_type), namespace=namespace or None, name=name)

    def is_namespaced(self, resource_type: ResourceType) -> bool:
        """Ask API discovery whether the resource type is namespace-scoped."""
        with self._call("discover", resource_type):
            return bool(self._api(resource_type).namespaced)
