"""Cluster state clients.

The Kubernetes-backed client is imported lazily so that the engine and the
in-memory client work without loading the kubernetes package.
"""

from kube_discovery.clients.base import ClusterStateClient, selector_to_string
from kube_discovery.clients.memory import InMemoryClusterClient


def __getattr__(name):
    """Lazy import for KubernetesClusterClient."""
    if name == "KubernetesClusterClient":
        from kube_discovery.clients.kubernetes_client import KubernetesClusterClient
        return KubernetesClusterClient
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__all__ = [
    "ClusterStateClient",
    "InMemoryClusterClient",
    "KubernetesClusterClient",
    "selector_to_string",
]
