"""Fallback formatter for kinds without a dedicated formatter.

Works on any document: it only reads the envelope fields plus a one-level
dump of ``spec`` and ``status``.
"""

from __future__ import annotations

from collections.abc import Sequence

from harvester_mcp.kube import document as d
from harvester_mcp.kube.document import Document
from harvester_mcp.kube.formatters.base import (
    Formatter,
    add_field,
    add_mapping,
    add_metadata,
    entry_header,
    finish,
    render_grouped,
)


class GenericFormatter(Formatter):
    """Fallback for kinds without a dedicated formatter."""

    def render_one(self, doc: Document) -> str:
        lines = [f"Kind: {d.kind(doc) or 'Unknown'}", f"Name: {d.name(doc)}"]
        if d.namespace(doc):
            lines.append(f"Namespace: {d.namespace(doc)}")
        else:
            lines.append("Scope: Cluster-wide")
        lines.append(f"Created: {d.creation_timestamp(doc)}")

        add_metadata(lines, doc)
        for title, key in (("Spec", "spec"), ("Status", "status")):
            subtree = d.get_map(doc, key)
            if subtree:
                lines.append("")
                add_mapping(lines, title, subtree)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        noun = d.kind(docs[0]) if docs else ""
        return render_grouped(
            docs, noun=noun or "resource", group_noun="items", entry=self._entry
        )

    def _entry(self, doc: Document) -> list[str]:
        lines = [entry_header(doc)]
        add_field(lines, "Phase", d.get_scalar(doc, "status", "phase"), "    ")
        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        return lines
