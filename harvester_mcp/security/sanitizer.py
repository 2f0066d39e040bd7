"""Input validation for object names and namespaces.

Tool arguments end up in API request paths, so ``namespace`` and ``name``
must be valid Kubernetes object names. Bad input is rejected before any
request is made, never rewritten.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

logger = structlog.get_logger()

# RFC 1123 subdomain: lowercase alphanumerics, '-' and '.', alphanumeric at both ends
_SUBDOMAIN_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?(\.[a-z0-9]([-a-z0-9]*[a-z0-9])?)*$")
# RFC 1123 label: as above without dots
_LABEL_RE = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
# Friendly resource type names: letters, digits, '-' and '.'
_TYPE_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9.-]*$")

MAX_NAME_LENGTH = 253
MAX_NAMESPACE_LENGTH = 63


class SanitizationError(Exception):
    """Raised when input fails sanitization checks."""

    def __init__(self, field: str, value: Any, reason: str) -> None:
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Rejected {field}: {reason}")


def _reject(field: str, value: Any, reason: str) -> None:
    logger.warning("sanitizer_rejected", field=field, value=value, reason=reason)
    raise SanitizationError(field, value, reason)


def check_name(value: Any, field: str = "name") -> None:
    """Validate an object name (RFC 1123 subdomain).

    Raises:
        SanitizationError: If the value is not a valid object name.
    """
    if not isinstance(value, str):
        _reject(field, value, "must be a string")
    if len(value) > MAX_NAME_LENGTH:
        _reject(field, value, f"longer than {MAX_NAME_LENGTH} characters")
    if not _SUBDOMAIN_RE.match(value):
        _reject(
            field,
            value,
            "must consist of lowercase alphanumerics, '-' or '.', "
            "and start and end with an alphanumeric character",
        )


def check_namespace(value: Any) -> None:
    """Validate a namespace name (RFC 1123 label).

    Raises:
        SanitizationError: If the value is not a valid namespace name.
    """
    if not isinstance(value, str):
        _reject("namespace", value, "must be a string")
    if len(value) > MAX_NAMESPACE_LENGTH:
        _reject("namespace", value, f"longer than {MAX_NAMESPACE_LENGTH} characters")
    if not _LABEL_RE.match(value):
        _reject(
            "namespace",
            value,
            "must consist of lowercase alphanumerics or '-', "
            "and start and end with an alphanumeric character",
        )


def sanitize(tool_name: str, tool_input: dict) -> dict:
    """Sanitize all inputs for a tool call.

    Checks ``namespace``, ``name`` and ``resource_type`` when present and
    non-empty; an empty optional namespace means "all namespaces". Returns
    the input unchanged if everything passes.

    Args:
        tool_name: Name of the tool being called.
        tool_input: The tool's input parameters.

    Returns:
        The original tool_input dict if all checks pass.

    Raises:
        SanitizationError: If any input field fails validation.
    """
    namespace = tool_input.get("namespace")
    if namespace not in (None, ""):
        check_namespace(namespace)

    name = tool_input.get("name")
    if name not in (None, ""):
        check_name(name)

    resource_type = tool_input.get("resource_type")
    if resource_type not in (None, ""):
        if not isinstance(resource_type, str) or not _TYPE_NAME_RE.match(resource_type):
            _reject("resource_type", resource_type, "not a resource type name")

    return tool_input
