"""Formatter interface and shared rendering helpers.

Each formatter turns resource documents into plain text for the agent:
``render_one`` for a detail view and ``render_many`` for a grouped list.
Helpers in this module render the sections several kinds share (labels,
containers, conditions) and group list entries in a stable order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from harvester_mcp.kube import document as d
from harvester_mcp.kube.document import Document

BULLET = "•"
ARROW = "→"


class Formatter(ABC):
    """Renders documents of one kind as text."""

    @abstractmethod
    def render_one(self, doc: Document) -> str:
        """Render a single document as a detail view."""

    @abstractmethod
    def render_many(self, docs: Sequence[Document]) -> str:
        """Render a non-empty collection as a grouped summary."""


# --- Line builders ---


def finish(lines: list[str]) -> str:
    """Join rendered lines, dropping trailing blank lines."""
    return "\n".join(lines).rstrip("\n")


def count_line(count: int, noun: str) -> str:
    return f"Found {count} {noun}(s):"


def entry_header(doc: Document) -> str:
    return f"  {BULLET} {d.name(doc)}"


def add_field(lines: list[str], label: str, value: Any, indent: str = "") -> None:
    """Append ``label: value`` unless the value is empty."""
    if value is None or value == "" or value == []:
        return
    lines.append(f"{indent}{label}: {value}")


def add_mapping(
    lines: list[str], title: str, mapping: Mapping[str, Any], indent: str = ""
) -> None:
    """Append a titled ``key: value`` section in key order, or nothing if empty."""
    if not mapping:
        return
    lines.append(f"{indent}{title}:")
    for key in sorted(mapping):
        lines.append(f"{indent}  {key}: {d.format_value(mapping[key])}")


def add_metadata(lines: list[str], doc: Document) -> None:
    """Append the Labels and Annotations sections of a detail view."""
    for title, mapping in (("Labels", d.labels(doc)), ("Annotations", d.annotations(doc))):
        if mapping:
            lines.append("")
            add_mapping(lines, title, mapping)


def add_containers(
    lines: list[str],
    containers: list[Any],
    statuses: list[Any] | None = None,
) -> None:
    """Append a numbered Containers section with images and resources."""
    if not containers:
        return
    by_name = {d.get_str(s, "name"): s for s in statuses or [] if isinstance(s, Mapping)}

    lines.append("")
    lines.append("Containers:")
    for index, container in enumerate(containers, start=1):
        container_name = d.get_str(container, "name")
        lines.append(f"  {index}. {container_name}")
        add_field(lines, "Image", d.get_str(container, "image"), "     ")

        ports = [_container_port(p) for p in d.get_list(container, "ports")]
        add_field(lines, "Ports", ", ".join(p for p in ports if p), "     ")

        status = by_name.get(container_name)
        if status is not None:
            lines.append(f"     Ready: {d.format_value(d.get_bool(status, 'ready'))}")
            lines.append(f"     Restarts: {d.get_int(status, 'restartCount')}")

        limits = d.get_map(container, "resources", "limits")
        requests = d.get_map(container, "resources", "requests")
        if limits or requests:
            lines.append("     Resources:")
            for key in sorted(limits):
                lines.append(f"       Limits {key}: {d.format_value(limits[key])}")
            for key in sorted(requests):
                lines.append(f"       Requests {key}: {d.format_value(requests[key])}")


def _container_port(port: Any) -> str:
    number = d.get_scalar(port, "containerPort")
    if not number:
        return ""
    return f"{number}/{d.get_str(port, 'protocol') or 'TCP'}"


def add_conditions(lines: list[str], conditions: list[Any], indent: str = "") -> None:
    """Append a Conditions section with reasons and messages when present."""
    conditions = [c for c in conditions if isinstance(c, Mapping)]
    if not conditions:
        return
    lines.append(f"{indent}Conditions:")
    for condition in conditions:
        lines.append(
            f"{indent}  {d.get_str(condition, 'type')}: {d.get_str(condition, 'status')}"
        )
        add_field(lines, "Reason", d.get_str(condition, "reason"), indent + "    ")
        add_field(lines, "Message", d.get_str(condition, "message"), indent + "    ")


# --- Grouping ---


def group_documents(
    docs: Sequence[Document],
    key: Callable[[Document], str],
    order: Callable[[str], Any] | None = None,
) -> list[tuple[str, list[Document]]]:
    """Group documents by ``key``.

    Groups are sorted by ``order`` (lexicographic by default, with the empty
    key last); documents keep their input order within a group.
    """
    groups: dict[str, list[Document]] = {}
    for doc in docs:
        groups.setdefault(key(doc), []).append(doc)
    sort_key = order or (lambda group: (group == "", group))
    return [(group, groups[group]) for group in sorted(groups, key=sort_key)]


def namespace_header(group: str, count: int, noun: str) -> str:
    if not group:
        return f"Cluster-scoped ({count} {noun})"
    return f"Namespace: {group} ({count} {noun})"


def render_grouped(
    docs: Sequence[Document],
    *,
    noun: str,
    group_noun: str,
    entry: Callable[[Document], list[str]],
    key: Callable[[Document], str] = d.namespace,
    header: Callable[[str, int, str], str] = namespace_header,
    order: Callable[[str], Any] | None = None,
) -> str:
    """Render a list view: count line, then one block per group of entries."""
    lines = [count_line(len(docs), noun), ""]
    for group, members in group_documents(docs, key, order):
        lines.append(header(group, len(members), group_noun))
        for doc in members:
            lines.extend(entry(doc))
            lines.append("")
        lines.append("")
    return finish(lines)


def render_flat(
    docs: Sequence[Document], *, noun: str, entry: Callable[[Document], list[str]]
) -> str:
    """Render an ungrouped list view."""
    lines = [count_line(len(docs), noun), ""]
    for doc in docs:
        lines.extend(entry(doc))
        lines.append("")
    return finish(lines)
