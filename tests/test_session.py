"""Tests for cluster connection bootstrap."""

from __future__ import annotations

import pytest
import urllib3
from kubernetes.config.config_exception import ConfigException

from harvester_mcp.kube import session
from harvester_mcp.kube.session import SessionError, connect


@pytest.fixture
def loaders(monkeypatch: pytest.MonkeyPatch) -> list[tuple]:
    """Record which configuration loaders were tried."""
    calls: list[tuple] = []

    def incluster() -> None:
        calls.append(("incluster",))
        raise ConfigException("Service host/port is not set.")

    def from_config(config_file=None, context=None):
        calls.append(("kubeconfig", config_file, context))
        return "api-client"

    monkeypatch.setattr(session.config, "load_incluster_config", incluster)
    monkeypatch.setattr(session.config, "new_client_from_config", from_config)
    monkeypatch.setattr(session, "DynamicClient", lambda api: ("dynamic", api))
    return calls


class TestConnect:
    def test_falls_back_to_kubeconfig(self, loaders: list[tuple]) -> None:
        assert connect() == ("dynamic", "api-client")
        assert loaders == [("incluster",), ("kubeconfig", None, None)]

    def test_explicit_kubeconfig_skips_incluster(self, loaders: list[tuple]) -> None:
        connect("/tmp/kubeconfig", "harvester")
        assert loaders == [("kubeconfig", "/tmp/kubeconfig", "harvester")]

    def test_context_alone_skips_incluster(self, loaders: list[tuple]) -> None:
        connect(context="harvester")
        assert loaders == [("kubeconfig", None, "harvester")]

    def test_incluster_preferred(self, monkeypatch: pytest.MonkeyPatch, loaders: list[tuple]) -> None:
        monkeypatch.setattr(session.config, "load_incluster_config", lambda: loaders.append(("incluster",)))
        kind, api = connect()
        assert kind == "dynamic"
        assert api != "api-client"
        assert loaders == [("incluster",)]

    def test_missing_configuration(self, monkeypatch: pytest.MonkeyPatch, loaders: list[tuple]) -> None:
        def no_kubeconfig(config_file=None, context=None):
            raise ConfigException("Invalid kube-config file. No configuration found.")

        monkeypatch.setattr(session.config, "new_client_from_config", no_kubeconfig)
        with pytest.raises(SessionError, match="Failed to load Kubernetes configuration"):
            connect()

    def test_unreachable_api_server(self, monkeypatch: pytest.MonkeyPatch, loaders: list[tuple]) -> None:
        def unreachable(api):
            raise urllib3.exceptions.MaxRetryError(None, "/apis", "Connection refused")

        monkeypatch.setattr(session, "DynamicClient", unreachable)
        with pytest.raises(SessionError, match="Failed to connect"):
            connect()
