"""Kind-to-formatter dispatch.

Documents are rendered by the formatter registered for the kind they
declare, not the name the caller asked for, so the output always matches
what the API server actually returned. Unregistered kinds use the
fallback formatter.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

import structlog

from harvester_mcp.kube import document as d
from harvester_mcp.kube.document import Document
from harvester_mcp.kube.formatters.base import Formatter
from harvester_mcp.kube.formatters.core import (
    CustomResourceDefinitionFormatter,
    DeploymentFormatter,
    NamespaceFormatter,
    NodeFormatter,
    PodFormatter,
    ServiceFormatter,
)
from harvester_mcp.kube.formatters.generic import GenericFormatter
from harvester_mcp.kube.formatters.harvester import (
    NetworkFormatter,
    VirtualMachineFormatter,
    VirtualMachineImageFormatter,
    VolumeFormatter,
)

logger = structlog.get_logger()


class FormatterRegistry:
    """Maps declared kinds to formatters, with a fallback for everything else."""

    def __init__(
        self,
        formatters: Iterable[tuple[str, Formatter]] = (),
        fallback: Formatter | None = None,
    ) -> None:
        self._formatters: dict[str, Formatter] = {}
        self._fallback = fallback or GenericFormatter()
        for kind, formatter in formatters:
            self.register(kind, formatter)

    def register(self, kind: str, formatter: Formatter) -> None:
        """Bind a formatter to a kind.

        Raises:
            ValueError: If the kind already has a formatter.
        """
        if kind in self._formatters:
            raise ValueError(f"Formatter already registered for kind: {kind!r}")
        self._formatters[kind] = formatter
        logger.debug("formatter_registered", kind=kind)

    def get(self, kind: str) -> Formatter | None:
        return self._formatters.get(kind)

    @property
    def kinds(self) -> list[str]:
        return sorted(self._formatters)

    def _resolve(self, doc: Document) -> Formatter:
        return self._formatters.get(d.kind(doc)) or self._fallback

    def render_one(self, doc: Document) -> str:
        """Render a single document with the formatter for its declared kind."""
        return self._resolve(doc).render_one(doc)

    def render_many(
        self, docs: Sequence[Document], noun: str = "resources", scoped: bool = True
    ) -> str:
        """Render a collection with the formatter for its first item's kind.

        Args:
            docs: The documents to render.
            noun: Plural noun used in the message for an empty collection.
            scoped: Whether the listing was namespace-scoped; only changes
                the empty-collection message.
        """
        if not docs:
            if scoped:
                return f"No {noun} found in the specified namespace(s)."
            return f"No {noun} found."
        return self._resolve(docs[0]).render_many(docs)


def default_formatters() -> FormatterRegistry:
    """Build the registry of formatters for every kind the server exposes."""
    return FormatterRegistry(
        [
            ("Pod", PodFormatter()),
            ("Service", ServiceFormatter()),
            ("Namespace", NamespaceFormatter()),
            ("Node", NodeFormatter()),
            ("Deployment", DeploymentFormatter()),
            ("CustomResourceDefinition", CustomResourceDefinitionFormatter()),
            ("VirtualMachine", VirtualMachineFormatter()),
            ("Volume", VolumeFormatter()),
            ("Network", NetworkFormatter()),
            ("VirtualMachineImage", VirtualMachineImageFormatter()),
        ]
    )
