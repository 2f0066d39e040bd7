"""Cluster connection bootstrap.

Prefers the in-cluster service account when the server runs inside the
cluster and falls back to the user's kubeconfig otherwise.
"""

from __future__ import annotations

import structlog
import urllib3
from kubernetes import client, config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
from kubernetes.dynamic import DynamicClient

logger = structlog.get_logger()


class SessionError(Exception):
    """Raised when no usable cluster connection can be established."""


def _api_client(kubeconfig: str | None, context: str | None) -> client.ApiClient:
    if kubeconfig or context:
        logger.info("kube_config_loading", source="kubeconfig", path=kubeconfig, context=context)
        return config.new_client_from_config(config_file=kubeconfig, context=context)

    try:
        config.load_incluster_config()
    except ConfigException as e:
        logger.debug("kube_incluster_unavailable", reason=str(e))
    else:
        logger.info("kube_config_loading", source="in-cluster")
        return client.ApiClient()

    logger.info("kube_config_loading", source="kubeconfig")
    return config.new_client_from_config()


def connect(kubeconfig: str | None = None, context: str | None = None) -> DynamicClient:
    """Create a dynamic client for the target cluster.

    Args:
        kubeconfig: Explicit kubeconfig path. Skips the in-cluster attempt.
        context: Kubeconfig context to use instead of the current one.

    Returns:
        A DynamicClient with API discovery loaded.

    Raises:
        SessionError: If no configuration is found or the API server is unreachable.
    """
    try:
        return DynamicClient(_api_client(kubeconfig, context))
    except ConfigException as e:
        raise SessionError(f"Failed to load Kubernetes configuration: {e}") from e
    except (ApiException, urllib3.exceptions.HTTPError, OSError) as e:
        raise SessionError(f"Failed to connect to the Kubernetes API server: {e}") from e
