"""Get-or-default accessors over resource documents.

A resource document is the plain ``dict`` decoded from the API server's
JSON. Formatters only know part of each kind's shape, so every accessor
here treats a missing path or a value of the wrong type as "not set" and
returns an empty default instead of raising.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

Document = Mapping[str, Any]

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Sub-second digits; fromisoformat on 3.10 only takes exactly 3 or 6 of them
_FRACTION_RE = re.compile(r"(?<=:\d\d)\.\d+")


def nested(doc: Any, *path: str) -> Any:
    """Walk ``path`` through nested mappings, returning None if any step is missing."""
    value = doc
    for key in path:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def get_str(doc: Any, *path: str) -> str:
    value = nested(doc, *path)
    return value if isinstance(value, str) else ""


def get_int(doc: Any, *path: str) -> int:
    value = nested(doc, *path)
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return 0
    return 0


def get_bool(doc: Any, *path: str) -> bool:
    return nested(doc, *path) is True


def get_list(doc: Any, *path: str) -> list[Any]:
    value = nested(doc, *path)
    return value if isinstance(value, list) else []


def get_map(doc: Any, *path: str) -> dict[str, Any]:
    value = nested(doc, *path)
    return dict(value) if isinstance(value, Mapping) else {}


def get_str_list(doc: Any, *path: str) -> list[str]:
    """Return the string members of a list, skipping anything else."""
    return [item for item in get_list(doc, *path) if isinstance(item, str)]


def get_scalar(doc: Any, *path: str) -> str:
    """Stringify a string or number leaf; anything else is treated as unset."""
    value = nested(doc, *path)
    if isinstance(value, bool):
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


def get_config_map(doc: Any, *path: str) -> dict[str, Any]:
    """Return a mapping leaf, decoding it first if it is stored as a JSON string."""
    value = nested(doc, *path)
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            return {}
    return dict(value) if isinstance(value, Mapping) else {}


# --- Envelope fields ---


def kind(doc: Any) -> str:
    return get_str(doc, "kind")


def name(doc: Any) -> str:
    return get_str(doc, "metadata", "name")


def namespace(doc: Any) -> str:
    return get_str(doc, "metadata", "namespace")


def labels(doc: Any) -> dict[str, Any]:
    return get_map(doc, "metadata", "labels")


def annotations(doc: Any) -> dict[str, Any]:
    return get_map(doc, "metadata", "annotations")


def creation_timestamp(doc: Any) -> str:
    """Creation time of the document, formatted with ``format_timestamp``."""
    return format_timestamp(nested(doc, "metadata", "creationTimestamp"))


# --- Value rendering ---


def format_timestamp(value: Any) -> str:
    """Render a timestamp as RFC 3339 in UTC.

    Accepts ``datetime`` objects and ISO 8601 strings. Returns ``"unknown"``
    when the value is absent and the raw string when it cannot be parsed.
    """
    if value is None or value == "":
        return "unknown"
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        try:
            text = _FRACTION_RE.sub("", value.strip()).replace("Z", "+00:00")
            moment = datetime.fromisoformat(text)
        except ValueError:
            return value
    else:
        return str(value)

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)


def format_value(value: Any) -> str:
    """Stringify a leaf value for one-level dumps.

    Mappings and lists are rendered as compact JSON with sorted keys so the
    output is stable across runs.
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    return str(value)
