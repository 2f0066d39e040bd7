"""Formatters for built-in Kubernetes kinds."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from harvester_mcp.kube import document as d
from harvester_mcp.kube.document import Document
from harvester_mcp.kube.formatters.base import (
    ARROW,
    Formatter,
    add_conditions,
    add_containers,
    add_field,
    add_mapping,
    add_metadata,
    entry_header,
    finish,
    render_flat,
    render_grouped,
)

_ROLE_LABEL_PREFIX = "node-role.kubernetes.io/"


# --- Pods ---


def pod_status(doc: Document) -> str:
    """Observed phase, overridden by the observed reason when one is set."""
    return d.get_str(doc, "status", "reason") or d.get_str(doc, "status", "phase")


class PodFormatter(Formatter):
    """Pods: phase or reason, containers with readiness and restarts, conditions."""

    def render_one(self, doc: Document) -> str:
        lines = [
            f"Pod: {d.name(doc)}",
            f"Namespace: {d.namespace(doc)}",
            f"Status: {pod_status(doc)}",
        ]
        add_field(lines, "Node", d.get_str(doc, "spec", "nodeName"))
        add_field(lines, "Pod IP", d.get_str(doc, "status", "podIP"))
        lines.append(f"Created: {d.creation_timestamp(doc)}")
        add_field(lines, "QoS Class", d.get_str(doc, "status", "qosClass"))

        add_containers(
            lines,
            d.get_list(doc, "spec", "containers"),
            d.get_list(doc, "status", "containerStatuses"),
        )
        add_metadata(lines, doc)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        return render_grouped(docs, noun="pod", group_noun="pods", entry=self._entry)

    def _entry(self, doc: Document) -> list[str]:
        statuses = [s for s in d.get_list(doc, "status", "containerStatuses") if isinstance(s, Mapping)]
        total = len(statuses) or len(d.get_list(doc, "spec", "containers"))
        ready = sum(1 for s in statuses if d.get_bool(s, "ready"))
        restarts = sum(d.get_int(s, "restartCount") for s in statuses)

        lines = [entry_header(doc), f"    Status: {pod_status(doc)}"]
        lines.append(f"    Ready: {ready}/{total} containers")
        add_field(lines, "Node", d.get_str(doc, "spec", "nodeName"), "    ")
        add_field(lines, "IP", d.get_str(doc, "status", "podIP"), "    ")
        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        lines.append(f"    Restarts: {restarts}")
        return lines


# --- Services ---


def _port_target(port: Any) -> str:
    return d.get_scalar(port, "targetPort") or d.get_scalar(port, "port")


class ServiceFormatter(Formatter):
    """Services: type, cluster and load balancer addresses, ports and selector."""

    def render_one(self, doc: Document) -> str:
        lines = [
            f"Service: {d.name(doc)}",
            f"Namespace: {d.namespace(doc)}",
            f"Type: {d.get_str(doc, 'spec', 'type') or 'ClusterIP'}",
        ]
        add_field(lines, "Cluster IP", d.get_str(doc, "spec", "clusterIP"))
        add_field(lines, "External IPs", ", ".join(d.get_str_list(doc, "spec", "externalIPs")))
        add_field(lines, "Load Balancer IPs", ", ".join(self._ingress(doc)))
        lines.append(f"Created: {d.creation_timestamp(doc)}")

        selector = d.get_map(doc, "spec", "selector")
        if selector:
            lines.append("")
            add_mapping(lines, "Selector", selector)

        ports = [p for p in d.get_list(doc, "spec", "ports") if isinstance(p, Mapping)]
        if ports:
            lines.append("")
            lines.append("Ports:")
            for port in ports:
                lines.append(f"  {d.get_str(port, 'name') or 'unnamed'}:")
                lines.append(f"    Port: {d.get_scalar(port, 'port')}")
                lines.append(f"    Target Port: {_port_target(port)}")
                lines.append(f"    Protocol: {d.get_str(port, 'protocol') or 'TCP'}")
                add_field(lines, "Node Port", d.get_scalar(port, "nodePort"), "    ")

        add_metadata(lines, doc)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        return render_grouped(
            docs, noun="service", group_noun="services", entry=self._entry
        )

    def _entry(self, doc: Document) -> list[str]:
        lines = [
            entry_header(doc),
            f"    Type: {d.get_str(doc, 'spec', 'type') or 'ClusterIP'}",
        ]
        add_field(lines, "Cluster IP", d.get_str(doc, "spec", "clusterIP"), "    ")

        ports = [p for p in d.get_list(doc, "spec", "ports") if isinstance(p, Mapping)]
        if ports:
            lines.append("    Ports:")
            for port in ports:
                label = d.get_scalar(port, "port")
                if d.get_str(port, "name"):
                    label = f"{d.get_str(port, 'name')}:{label}"
                protocol = d.get_str(port, "protocol") or "TCP"
                lines.append(f"      {label} {ARROW} {_port_target(port)}/{protocol}")

        add_field(
            lines,
            "External IPs",
            ", ".join(d.get_str_list(doc, "spec", "externalIPs")),
            "    ",
        )
        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        return lines

    @staticmethod
    def _ingress(doc: Document) -> list[str]:
        addresses = []
        for ingress in d.get_list(doc, "status", "loadBalancer", "ingress"):
            address = d.get_str(ingress, "ip") or d.get_str(ingress, "hostname")
            if address:
                addresses.append(address)
        return addresses


# --- Namespaces ---

_NAMESPACE_BUCKETS = ("Active", "Terminating", "Other")


def _namespace_bucket(doc: Document) -> str:
    phase = d.get_str(doc, "status", "phase")
    return phase if phase in ("Active", "Terminating") else "Other"


class NamespaceFormatter(Formatter):
    """Namespaces, listed in Active, Terminating and Other buckets."""

    def render_one(self, doc: Document) -> str:
        lines = [
            f"Namespace: {d.name(doc)}",
            f"Status: {d.get_str(doc, 'status', 'phase')}",
            f"Created: {d.creation_timestamp(doc)}",
        ]
        add_metadata(lines, doc)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        return render_grouped(
            docs,
            noun="namespace",
            group_noun="namespaces",
            entry=self._entry,
            key=_namespace_bucket,
            header=lambda bucket, count, noun: f"Status: {bucket} ({count} {noun})",
            order=_NAMESPACE_BUCKETS.index,
        )

    def _entry(self, doc: Document) -> list[str]:
        lines = [entry_header(doc)]
        if _namespace_bucket(doc) == "Other":
            add_field(lines, "Phase", d.get_str(doc, "status", "phase"), "    ")
        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        return lines


# --- Nodes ---


def node_status(doc: Document) -> str:
    """``Ready`` iff the Ready condition reports ``"True"``, otherwise ``NotReady``."""
    for condition in d.get_list(doc, "status", "conditions"):
        if d.get_str(condition, "type") == "Ready":
            return "Ready" if d.get_str(condition, "status") == "True" else "NotReady"
    return "NotReady"


def _node_roles(doc: Document) -> str:
    roles = sorted(
        label[len(_ROLE_LABEL_PREFIX):]
        for label in d.labels(doc)
        if label.startswith(_ROLE_LABEL_PREFIX) and label != _ROLE_LABEL_PREFIX
    )
    return ", ".join(roles)


def _node_address(doc: Document, address_type: str) -> str:
    for address in d.get_list(doc, "status", "addresses"):
        if d.get_str(address, "type") == address_type:
            return d.get_str(address, "address")
    return ""


_NODE_INFO_FIELDS = (
    ("OS Image", "osImage"),
    ("Kernel Version", "kernelVersion"),
    ("Container Runtime", "containerRuntimeVersion"),
    ("Kubelet Version", "kubeletVersion"),
    ("Architecture", "architecture"),
)


class NodeFormatter(Formatter):
    """Nodes: readiness, roles, addresses and capacity. Lists are ungrouped."""

    def render_one(self, doc: Document) -> str:
        lines = [
            f"Node: {d.name(doc)}",
            f"Status: {node_status(doc)}",
            f"Created: {d.creation_timestamp(doc)}",
        ]
        add_field(lines, "Roles", _node_roles(doc))
        if d.get_bool(doc, "spec", "unschedulable"):
            lines.append("Schedulable: false")

        conditions = d.get_list(doc, "status", "conditions")
        if conditions:
            lines.append("")
            add_conditions(lines, conditions)

        addresses = [a for a in d.get_list(doc, "status", "addresses") if isinstance(a, Mapping)]
        if addresses:
            lines.append("")
            lines.append("Addresses:")
            for address in addresses:
                lines.append(
                    f"  {d.get_str(address, 'type')}: {d.get_str(address, 'address')}"
                )

        info = d.get_map(doc, "status", "nodeInfo")
        if info:
            lines.append("")
            lines.append("Node Info:")
            for label, key in _NODE_INFO_FIELDS:
                add_field(lines, label, d.get_str(info, key), "  ")

        for title, path in (("Allocatable", "allocatable"), ("Capacity", "capacity")):
            resources = d.get_map(doc, "status", path)
            if resources:
                lines.append("")
                add_mapping(lines, title, resources)

        add_metadata(lines, doc)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        return render_flat(docs, noun="node", entry=self._entry)

    def _entry(self, doc: Document) -> list[str]:
        lines = [entry_header(doc), f"    Status: {node_status(doc)}"]
        add_field(lines, "Roles", _node_roles(doc), "    ")
        add_field(lines, "Internal IP", _node_address(doc, "InternalIP"), "    ")
        add_field(lines, "External IP", _node_address(doc, "ExternalIP"), "    ")
        hostname = _node_address(doc, "Hostname")
        if hostname != d.name(doc):
            add_field(lines, "Hostname", hostname, "    ")
        add_field(
            lines,
            "Kubelet Version",
            d.get_str(doc, "status", "nodeInfo", "kubeletVersion"),
            "    ",
        )
        add_field(lines, "CPU", d.get_scalar(doc, "status", "allocatable", "cpu"), "    ")
        add_field(
            lines, "Memory", d.get_scalar(doc, "status", "allocatable", "memory"), "    "
        )
        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        return lines


# --- Deployments ---


def replica_summary(doc: Document) -> str:
    """Desired, updated, total, available and ready replica counts."""
    return (
        f"{d.get_int(doc, 'spec', 'replicas')} desired | "
        f"{d.get_int(doc, 'status', 'updatedReplicas')} updated | "
        f"{d.get_int(doc, 'status', 'replicas')} total | "
        f"{d.get_int(doc, 'status', 'availableReplicas')} available | "
        f"{d.get_int(doc, 'status', 'readyReplicas')} ready"
    )


class DeploymentFormatter(Formatter):
    """Deployments: replica counts, strategy, selector and pod template containers."""

    def render_one(self, doc: Document) -> str:
        lines = [
            f"Deployment: {d.name(doc)}",
            f"Namespace: {d.namespace(doc)}",
            f"Replicas: {replica_summary(doc)}",
            f"Created: {d.creation_timestamp(doc)}",
        ]
        add_field(lines, "Strategy", d.get_str(doc, "spec", "strategy", "type"))

        selector = d.get_map(doc, "spec", "selector", "matchLabels")
        if selector:
            lines.append("")
            add_mapping(lines, "Selector", selector)

        add_containers(lines, d.get_list(doc, "spec", "template", "spec", "containers"))

        conditions = d.get_list(doc, "status", "conditions")
        if conditions:
            lines.append("")
            add_conditions(lines, conditions)

        add_metadata(lines, doc)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        return render_grouped(
            docs, noun="deployment", group_noun="deployments", entry=self._entry
        )

    def _entry(self, doc: Document) -> list[str]:
        lines = [entry_header(doc), f"    Replicas: {replica_summary(doc)}"]

        containers = d.get_list(doc, "spec", "template", "spec", "containers")
        if containers:
            lines.append("    Images:")
            for container in containers:
                lines.append(
                    f"      {d.get_str(container, 'name')}: {d.get_str(container, 'image')}"
                )

        conditions = [c for c in d.get_list(doc, "status", "conditions") if isinstance(c, Mapping)]
        if conditions:
            lines.append("    Conditions:")
            for condition in conditions:
                lines.append(
                    f"      {d.get_str(condition, 'type')}: {d.get_str(condition, 'status')}"
                )

        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        return lines


# --- Custom resource definitions ---


def _crd_group(doc: Document) -> str:
    return d.get_str(doc, "spec", "group") or "core"


class CustomResourceDefinitionFormatter(Formatter):
    """CRDs, listed by API group."""

    def render_one(self, doc: Document) -> str:
        lines = [
            f"Custom Resource Definition: {d.name(doc)}",
            f"Group: {d.get_str(doc, 'spec', 'group')}",
            f"Kind: {d.get_str(doc, 'spec', 'names', 'kind')}",
            f"Plural: {d.get_str(doc, 'spec', 'names', 'plural')}",
            f"Scope: {d.get_str(doc, 'spec', 'scope')}",
        ]
        add_field(lines, "Short Names", ", ".join(d.get_str_list(doc, "spec", "names", "shortNames")))
        lines.append(f"Created: {d.creation_timestamp(doc)}")

        versions = [v for v in d.get_list(doc, "spec", "versions") if isinstance(v, Mapping)]
        if versions:
            lines.append("")
            lines.append("Versions:")
            for version in versions:
                lines.append(f"  {d.get_str(version, 'name')}:")
                lines.append(f"    Served: {d.format_value(d.get_bool(version, 'served'))}")
                lines.append(f"    Storage: {d.format_value(d.get_bool(version, 'storage'))}")
                if d.get_map(version, "schema", "openAPIV3Schema"):
                    lines.append("    Schema: Available")

        add_metadata(lines, doc)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        return render_grouped(
            docs,
            noun="custom resource definition",
            group_noun="CRDs",
            entry=self._entry,
            key=_crd_group,
            header=lambda group, count, noun: f"Group: {group} ({count} {noun})",
        )

    def _entry(self, doc: Document) -> list[str]:
        lines = [
            entry_header(doc),
            f"    Kind: {d.get_str(doc, 'spec', 'names', 'kind')}",
            f"    Scope: {d.get_str(doc, 'spec', 'scope')}",
        ]
        versions = [v for v in d.get_list(doc, "spec", "versions") if isinstance(v, Mapping)]
        if versions:
            lines.append("    Versions:")
            for version in versions:
                served = d.format_value(d.get_bool(version, "served"))
                storage = d.format_value(d.get_bool(version, "storage"))
                lines.append(
                    f"      {d.get_str(version, 'name')} (served: {served}, storage: {storage})"
                )
        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        return lines
