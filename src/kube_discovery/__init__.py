"""Kubernetes Endpoint Discovery

Resolves Kubernetes services into protocol URLs that monitoring and client
systems can connect to.
"""

__version__ = "0.1.0"

# Export models and errors first (no client dependencies)
from kube_discovery.exceptions import (
    DiscoveryError,
    ClusterConnectivityError,
    MalformedURLError,
)
from kube_discovery.models import (
    ExposureType, Service, ServicePort, EndpointRecord, WorkloadInstance,
    ResolvedURL, DiscoveryResult, DiscoveryIssue, IssueKind,
)
from kube_discovery.config import DiscoveryConfig

# Export the engine and in-memory client
from kube_discovery.clients import ClusterStateClient, InMemoryClusterClient
from kube_discovery.discovery import (
    ServiceDiscovery,
    get_service_discovery,
    reset_service_discovery,
)

# Lazy import for the Kubernetes client so the kubernetes package is only
# loaded when a live cluster is used
def __getattr__(name):
    """Lazy import for KubernetesClusterClient."""
    if name == "KubernetesClusterClient":
        from kube_discovery.clients.kubernetes_client import KubernetesClusterClient
        return KubernetesClusterClient
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

__all__ = [
    # Errors
    "DiscoveryError", "ClusterConnectivityError", "MalformedURLError",
    # Models
    "ExposureType", "Service", "ServicePort", "EndpointRecord", "WorkloadInstance",
    "ResolvedURL", "DiscoveryResult", "DiscoveryIssue", "IssueKind",
    # Configuration
    "DiscoveryConfig",
    # Clients (Kubernetes client lazy loaded)
    "ClusterStateClient", "InMemoryClusterClient", "KubernetesClusterClient",
    # Service Discovery
    "ServiceDiscovery",
    "get_service_discovery",
    "reset_service_discovery",
]
