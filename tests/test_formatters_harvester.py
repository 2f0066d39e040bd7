"""Tests for the Harvester and KubeVirt formatters and the fallback formatter."""

from __future__ import annotations

from typing import Any

import pytest

from harvester_mcp.kube.formatters.generic import GenericFormatter
from harvester_mcp.kube.formatters.harvester import (
    NetworkFormatter,
    VirtualMachineFormatter,
    VirtualMachineImageFormatter,
    VolumeFormatter,
    vm_status,
)


def _doc(kind: str, name: str, namespace: str = "", **fields: Any) -> dict[str, Any]:
    metadata: dict[str, Any] = {"name": name, "creationTimestamp": "2024-05-01T10:00:00Z"}
    if namespace:
        metadata["namespace"] = namespace
    metadata.update(fields.pop("metadata", {}))
    return {"kind": kind, "metadata": metadata, **fields}


def _vm(name: str = "ubuntu", namespace: str = "default", **status: Any) -> dict[str, Any]:
    return _doc(
        "VirtualMachine",
        name,
        namespace,
        spec={
            "runStrategy": "RerunOnFailure",
            "template": {
                "spec": {
                    "domain": {"cpu": {"cores": 2}, "resources": {"requests": {"memory": "4Gi"}}},
                    "volumes": [
                        {"name": "disk-0", "persistentVolumeClaim": {"claimName": "disk-0"}},
                        {"name": "boot", "containerDisk": {"image": "quay.io/containerdisks/ubuntu"}},
                        {"name": "cloudinit", "cloudInitNoCloud": {"userData": "#cloud-config"}},
                        {"name": "scratch", "emptyDisk": {"capacity": "1Gi"}},
                    ],
                    "networks": [
                        {"name": "default", "multus": {"networkName": "default/vlan100"}},
                        {"name": "pod", "pod": {}},
                    ],
                }
            },
        },
        status=status,
    )


# --- Virtual machines ---


class TestVirtualMachineStatus:
    @pytest.mark.parametrize(
        "status,expected",
        [
            ({"ready": True, "created": True}, "Running"),
            ({"ready": False, "created": True}, "Created"),
            ({"ready": False, "created": False}, "Unknown"),
            ({}, "Unknown"),
        ],
    )
    def test_status_rule(self, status: dict[str, Any], expected: str) -> None:
        assert vm_status(_vm(**status)) == expected


class TestVirtualMachineFormatter:
    def test_claim_backed_volume(self) -> None:
        doc = _doc(
            "VirtualMachine",
            "vm-1",
            "default",
            spec={
                "template": {
                    "spec": {
                        "volumes": [
                            {"name": "rootdisk", "persistentVolumeClaim": {"claimName": "disk-0"}}
                        ]
                    }
                }
            },
        )
        text = VirtualMachineFormatter().render_one(doc)
        volumes = text[text.index("Volumes:"):]
        assert "disk-0" in volumes
        assert "Type: PersistentVolumeClaim" in volumes

    def test_detail(self) -> None:
        text = VirtualMachineFormatter().render_one(_vm(ready=True, printableStatus="Running"))
        assert text.splitlines()[:4] == [
            "Virtual Machine: ubuntu",
            "Namespace: default",
            "Status: Running",
            "Created: 2024-05-01T10:00:00Z",
        ]
        assert "Printable Status: Running" in text
        assert "Run Strategy: RerunOnFailure" in text
        assert "Specification:\n  CPU Cores: 2\n  Memory: 4Gi" in text
        assert "  2. boot\n     Type: ContainerDisk\n     Image: quay.io/containerdisks/ubuntu" in text
        assert "     Type: CloudInitNoCloud\n     Has User Data: true\n     Has Network Data: false" in text
        assert "  4. scratch\n     Type: Other" in text
        assert "  1. default\n     Type: Multus\n     Network Name: default/vlan100" in text
        assert "  2. pod\n     Type: Pod Network" in text

    def test_guest_memory_fallback(self) -> None:
        doc = _doc(
            "VirtualMachine",
            "vm",
            "default",
            spec={"template": {"spec": {"domain": {"memory": {"guest": "2Gi"}}}}},
        )
        assert "Memory: 2Gi" in VirtualMachineFormatter().render_one(doc)

    def test_minimal_document(self) -> None:
        text = VirtualMachineFormatter().render_one(_doc("VirtualMachine", "bare", "default"))
        assert "Status: Unknown" in text
        assert "Volumes:" not in text
        assert "Specification:" not in text

    def test_list(self) -> None:
        text = VirtualMachineFormatter().render_many([_vm(created=True)])
        assert text.startswith("Found 1 virtual machine(s):")
        assert "Namespace: default (1 VMs)" in text
        assert "    Status: Created" in text
        assert "      disk-0: PVC disk-0" in text
        assert "      boot: ContainerDisk quay.io/containerdisks/ubuntu" in text
        assert "      cloudinit: CloudInit" in text
        assert "      default: Multus default/vlan100" in text
        assert "      pod: Pod Network" in text


# --- Volumes ---


class TestVolumeFormatter:
    def test_detail(self) -> None:
        doc = _doc(
            "Volume",
            "data",
            "default",
            spec={"size": "10Gi", "storageClassName": "longhorn", "accessModes": ["ReadWriteMany"]},
            status={"state": "attached"},
        )
        text = VolumeFormatter().render_one(doc)
        assert "Status: attached" in text
        assert "Size: 10Gi" in text
        assert "Storage Class: longhorn" in text
        assert "Access Modes: ReadWriteMany" in text

    def test_empty_state_omits_status(self) -> None:
        text = VolumeFormatter().render_one(_doc("Volume", "data", "default", status={"state": ""}))
        assert "Status" not in text

    def test_list(self) -> None:
        docs = [_doc("Volume", "a", "ns1"), _doc("Volume", "b", "ns2")]
        text = VolumeFormatter().render_many(docs)
        assert "Namespace: ns1 (1 volumes)" in text
        assert "Namespace: ns2 (1 volumes)" in text


# --- Networks ---


class TestNetworkFormatter:
    def test_detail_config_keys_sorted(self) -> None:
        doc = _doc("Network", "vlan100", "default", spec={"type": "L2VlanNetwork", "config": {"vlan": 100, "bridge": "mgmt-br"}})
        text = NetworkFormatter().render_one(doc)
        assert "Type: L2VlanNetwork" in text
        assert "Configuration:\n  bridge: mgmt-br\n  vlan: 100" in text

    def test_json_config(self) -> None:
        doc = _doc("Network", "vlan5", "default", spec={"type": "L2VlanNetwork", "config": '{"vlan": 5}'})
        assert "VLAN ID: 5" in NetworkFormatter().render_many([doc])

    def test_vlan_zero_omitted(self) -> None:
        doc = _doc("Network", "untagged", "default", spec={"type": "UntaggedNetwork", "config": {"vlan": 0}})
        text = NetworkFormatter().render_many([doc])
        assert "VLAN ID" not in text
        assert "Namespace: default (1 networks)" in text


# --- Images ---


class TestVirtualMachineImageFormatter:
    def test_detail(self) -> None:
        doc = _doc(
            "VirtualMachineImage",
            "image-abc12",
            "default",
            spec={"displayName": "ubuntu-22.04", "url": "https://example.com/jammy.img", "description": "Ubuntu"},
            status={"progress": 100, "size": 2361393152},
        )
        text = VirtualMachineImageFormatter().render_one(doc)
        assert text.startswith("VM Image: image-abc12")
        assert "Display Name: ubuntu-22.04" in text
        assert "URL: https://example.com/jammy.img" in text
        assert "Status:\n  Progress: 100%\n  Size: 2361393152" in text

    def test_list_source_falls_back_to_url(self) -> None:
        doc = _doc("VirtualMachineImage", "image-x", "default", spec={"url": "https://example.com/a.img"})
        text = VirtualMachineImageFormatter().render_many([doc])
        assert text.startswith("Found 1 VM image(s):")
        assert "Namespace: default (1 images)" in text
        assert "    Source: https://example.com/a.img" in text
        assert "Progress" not in text


# --- Fallback ---


class TestGenericFormatter:
    def test_cluster_scoped_detail(self) -> None:
        doc = _doc(
            "StorageClass",
            "longhorn",
            metadata={"labels": {"b": "2", "a": "1"}},
            spec={"replicas": 3, "parameters": {"numberOfReplicas": "3"}},
            status={"ready": True},
        )
        text = GenericFormatter().render_one(doc)
        assert text.splitlines()[:4] == [
            "Kind: StorageClass",
            "Name: longhorn",
            "Scope: Cluster-wide",
            "Created: 2024-05-01T10:00:00Z",
        ]
        assert "Labels:\n  a: 1\n  b: 2" in text
        assert 'Spec:\n  parameters: {"numberOfReplicas":"3"}\n  replicas: 3' in text
        assert "Status:\n  ready: true" in text

    def test_namespaced_detail(self) -> None:
        text = GenericFormatter().render_one(_doc("Widget", "w", "team-a"))
        assert "Namespace: team-a" in text
        assert "Scope" not in text

    def test_bare_document(self) -> None:
        text = GenericFormatter().render_one({"metadata": {"name": "x"}})
        assert "Kind: Unknown" in text
        assert "Created: unknown" in text

    def test_list_groups_with_cluster_bucket(self) -> None:
        docs = [_doc("Widget", "w1", "team-a"), _doc("Widget", "w2"), _doc("Widget", "w3", "team-a", status={"phase": "Ready"})]
        text = GenericFormatter().render_many(docs)
        assert text.startswith("Found 3 Widget(s):")
        assert "Namespace: team-a (2 items)" in text
        assert "Cluster-scoped (1 items)" in text
        assert text.index("Namespace: team-a") < text.index("Cluster-scoped")
        assert "    Phase: Ready" in text
