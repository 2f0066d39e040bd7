"""Formatters for Harvester and KubeVirt kinds.

VirtualMachine comes from KubeVirt; Volume, Network and
VirtualMachineImage are Harvester's own resources.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

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

_VM_SPEC = ("spec", "template", "spec")


# --- Virtual machines ---


def vm_status(doc: Document) -> str:
    """Running if ready, else Created if created, else Unknown."""
    if d.get_bool(doc, "status", "ready"):
        return "Running"
    if d.get_bool(doc, "status", "created"):
        return "Created"
    return "Unknown"


def _vm_memory(doc: Document) -> str:
    return d.get_scalar(doc, *_VM_SPEC, "domain", "resources", "requests", "memory") or d.get_scalar(
        doc, *_VM_SPEC, "domain", "memory", "guest"
    )


def _vm_volumes(doc: Document) -> list[Mapping[str, Any]]:
    return [v for v in d.get_list(doc, *_VM_SPEC, "volumes") if isinstance(v, Mapping)]


def _vm_networks(doc: Document) -> list[Mapping[str, Any]]:
    return [n for n in d.get_list(doc, *_VM_SPEC, "networks") if isinstance(n, Mapping)]


def _volume_details(volume: Mapping[str, Any]) -> list[tuple[str, str]]:
    """Describe a VM volume source as (label, value) pairs, type first."""
    if "persistentVolumeClaim" in volume:
        return [
            ("Type", "PersistentVolumeClaim"),
            ("Claim Name", d.get_str(volume, "persistentVolumeClaim", "claimName")),
        ]
    if "dataVolume" in volume:
        return [("Type", "DataVolume"), ("Data Volume", d.get_str(volume, "dataVolume", "name"))]
    if "containerDisk" in volume:
        return [("Type", "ContainerDisk"), ("Image", d.get_str(volume, "containerDisk", "image"))]
    if "cloudInitNoCloud" in volume:
        has_user = bool(
            d.get_str(volume, "cloudInitNoCloud", "userData")
            or d.get_map(volume, "cloudInitNoCloud", "secretRef")
            or d.get_map(volume, "cloudInitNoCloud", "userDataSecretRef")
        )
        has_network = bool(
            d.get_str(volume, "cloudInitNoCloud", "networkData")
            or d.get_map(volume, "cloudInitNoCloud", "networkDataSecretRef")
        )
        return [
            ("Type", "CloudInitNoCloud"),
            ("Has User Data", d.format_value(has_user)),
            ("Has Network Data", d.format_value(has_network)),
        ]
    return [("Type", "Other")]


def _volume_summary(volume: Mapping[str, Any]) -> str:
    if "persistentVolumeClaim" in volume:
        return f"PVC {d.get_str(volume, 'persistentVolumeClaim', 'claimName')}"
    if "dataVolume" in volume:
        return f"DataVolume {d.get_str(volume, 'dataVolume', 'name')}"
    if "containerDisk" in volume:
        return f"ContainerDisk {d.get_str(volume, 'containerDisk', 'image')}"
    if "cloudInitNoCloud" in volume:
        return "CloudInit"
    return "Other"


def _network_summary(network: Mapping[str, Any]) -> str:
    if "pod" in network:
        return "Pod Network"
    if "multus" in network:
        return f"Multus {d.get_str(network, 'multus', 'networkName')}"
    return "Other"


class VirtualMachineFormatter(Formatter):
    """KubeVirt virtual machines: run state, CPU and memory, volumes and networks."""

    def render_one(self, doc: Document) -> str:
        lines = [
            f"Virtual Machine: {d.name(doc)}",
            f"Namespace: {d.namespace(doc)}",
            f"Status: {vm_status(doc)}",
            f"Created: {d.creation_timestamp(doc)}",
        ]
        add_field(lines, "Printable Status", d.get_str(doc, "status", "printableStatus"))
        add_field(lines, "Run Strategy", d.get_str(doc, "spec", "runStrategy"))
        running = d.nested(doc, "spec", "running")
        if isinstance(running, bool):
            lines.append(f"Running: {d.format_value(running)}")

        cores = d.get_scalar(doc, *_VM_SPEC, "domain", "cpu", "cores")
        memory = _vm_memory(doc)
        if cores or memory:
            lines.append("")
            lines.append("Specification:")
            add_field(lines, "CPU Cores", cores, "  ")
            add_field(lines, "Memory", memory, "  ")

        volumes = _vm_volumes(doc)
        if volumes:
            lines.append("")
            lines.append("Volumes:")
            for index, volume in enumerate(volumes, start=1):
                lines.append(f"  {index}. {d.get_str(volume, 'name')}")
                for label, value in _volume_details(volume):
                    add_field(lines, label, value, "     ")

        networks = _vm_networks(doc)
        if networks:
            lines.append("")
            lines.append("Networks:")
            for index, network in enumerate(networks, start=1):
                lines.append(f"  {index}. {d.get_str(network, 'name')}")
                if "pod" in network:
                    lines.append("     Type: Pod Network")
                elif "multus" in network:
                    lines.append("     Type: Multus")
                    add_field(
                        lines,
                        "Network Name",
                        d.get_str(network, "multus", "networkName"),
                        "     ",
                    )
                else:
                    lines.append("     Type: Other")

        add_metadata(lines, doc)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        return render_grouped(
            docs, noun="virtual machine", group_noun="VMs", entry=self._entry
        )

    def _entry(self, doc: Document) -> list[str]:
        lines = [entry_header(doc), f"    Status: {vm_status(doc)}"]
        add_field(lines, "CPU Cores", d.get_scalar(doc, *_VM_SPEC, "domain", "cpu", "cores"), "    ")
        add_field(lines, "Memory", _vm_memory(doc), "    ")

        volumes = _vm_volumes(doc)
        if volumes:
            lines.append("    Volumes:")
            for volume in volumes:
                lines.append(f"      {d.get_str(volume, 'name')}: {_volume_summary(volume)}")

        networks = _vm_networks(doc)
        if networks:
            lines.append("    Networks:")
            for network in networks:
                lines.append(f"      {d.get_str(network, 'name')}: {_network_summary(network)}")

        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        return lines


# --- Volumes ---


class VolumeFormatter(Formatter):
    """Harvester volumes: size, storage class and access modes."""

    def render_one(self, doc: Document) -> str:
        lines = [f"Volume: {d.name(doc)}", f"Namespace: {d.namespace(doc)}"]
        add_field(lines, "Status", d.get_str(doc, "status", "state"))
        lines.append(f"Created: {d.creation_timestamp(doc)}")
        add_field(lines, "Size", d.get_scalar(doc, "spec", "size"))
        add_field(lines, "Storage Class", d.get_str(doc, "spec", "storageClassName"))
        add_field(lines, "Access Modes", ", ".join(d.get_str_list(doc, "spec", "accessModes")))
        add_metadata(lines, doc)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        return render_grouped(
            docs, noun="volume", group_noun="volumes", entry=self._entry
        )

    def _entry(self, doc: Document) -> list[str]:
        lines = [entry_header(doc)]
        add_field(lines, "Status", d.get_str(doc, "status", "state"), "    ")
        add_field(lines, "Size", d.get_scalar(doc, "spec", "size"), "    ")
        add_field(lines, "Storage Class", d.get_str(doc, "spec", "storageClassName"), "    ")
        add_field(
            lines,
            "Access Modes",
            ", ".join(d.get_str_list(doc, "spec", "accessModes")),
            "    ",
        )
        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        return lines


# --- Networks ---


class NetworkFormatter(Formatter):
    """Harvester networks: type and configuration, with the VLAN ID in lists."""

    def render_one(self, doc: Document) -> str:
        lines = [
            f"Network: {d.name(doc)}",
            f"Namespace: {d.namespace(doc)}",
            f"Type: {d.get_str(doc, 'spec', 'type')}",
            f"Created: {d.creation_timestamp(doc)}",
        ]
        config = d.get_config_map(doc, "spec", "config")
        if config:
            lines.append("")
            add_mapping(lines, "Configuration", config)
        add_metadata(lines, doc)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        return render_grouped(
            docs, noun="network", group_noun="networks", entry=self._entry
        )

    def _entry(self, doc: Document) -> list[str]:
        lines = [entry_header(doc), f"    Type: {d.get_str(doc, 'spec', 'type')}"]
        vlan = d.get_int(d.get_config_map(doc, "spec", "config"), "vlan")
        if vlan > 0:
            lines.append(f"    VLAN ID: {vlan}")
        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        return lines


# --- Images ---


def _progress(doc: Document) -> str:
    progress = d.get_scalar(doc, "status", "progress")
    return f"{progress}%" if progress else ""


class VirtualMachineImageFormatter(Formatter):
    """Harvester VM images: source, import progress and size."""

    def render_one(self, doc: Document) -> str:
        lines = [f"VM Image: {d.name(doc)}", f"Namespace: {d.namespace(doc)}"]
        add_field(lines, "Display Name", d.get_str(doc, "spec", "displayName"))
        add_field(lines, "URL", d.get_str(doc, "spec", "url"))
        add_field(lines, "Source Type", d.get_str(doc, "spec", "sourceType"))
        add_field(lines, "Description", d.get_str(doc, "spec", "description"))
        lines.append(f"Created: {d.creation_timestamp(doc)}")

        status = [
            ("State", d.get_str(doc, "status", "state")),
            ("Progress", _progress(doc)),
            ("Size", d.get_scalar(doc, "status", "size")),
        ]
        if any(value for _, value in status):
            lines.append("")
            lines.append("Status:")
            for label, value in status:
                add_field(lines, label, value, "  ")

        add_metadata(lines, doc)
        return finish(lines)

    def render_many(self, docs: Sequence[Document]) -> str:
        return render_grouped(
            docs, noun="VM image", group_noun="images", entry=self._entry
        )

    def _entry(self, doc: Document) -> list[str]:
        lines = [entry_header(doc)]
        source = d.get_str(doc, "spec", "displayName") or d.get_str(doc, "spec", "url")
        add_field(lines, "Source", source, "    ")
        add_field(lines, "Size", d.get_scalar(doc, "status", "size"), "    ")
        add_field(lines, "Progress", _progress(doc), "    ")
        lines.append(f"    Created: {d.creation_timestamp(doc)}")
        return lines
