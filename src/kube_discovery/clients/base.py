"""Base cluster state client for read-only discovery queries."""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from kube_discovery.models import EndpointRecord, Lookup, Service, WorkloadInstance

logger = logging.getLogger(__name__)


class ClusterStateClient(ABC):
    """Read-only view of the cluster used by the discovery engine.

    Implementations answer three queries: list services, fetch the endpoint
    record of a service and fetch a pod. Secondary lookups return a Lookup so
    that an absent object is distinguishable from an unreachable cluster,
    which is signalled by raising ClusterConnectivityError.

    When ``namespace`` is None a lookup scans all namespaces by name. If the
    name matches in more than one namespace the lookup is ambiguous and must
    return ``Lookup.ambiguous()`` rather than picking one.

    Usage:
        class StaticClusterClient(ClusterStateClient):
            def list_services(self, namespace=None, label_selector=None):
                return [Service(name="db", cluster_ip="10.0.0.5")]
            ...
    """

    def __init__(self):
        logger.info(f"Initialized {self.__class__.__name__}")

    @abstractmethod
    def list_services(
        self,
        namespace: Optional[str] = None,
        label_selector: Optional[Dict[str, str]] = None,
    ) -> List[Service]:
        """List services, optionally scoped by namespace and label selector.

        Args:
            namespace: Namespace to list in (None for all namespaces)
            label_selector: Labels every returned service must carry

        Returns:
            Services in API order

        Raises:
            ClusterConnectivityError: If the control plane cannot be queried
        """
        pass

    @abstractmethod
    def get_endpoint_record(
        self, service_name: str, namespace: Optional[str] = None
    ) -> Lookup[EndpointRecord]:
        """Fetch the endpoint record backing a service.

        Raises:
            ClusterConnectivityError: If the control plane cannot be queried
        """
        pass

    @abstractmethod
    def get_workload_instance(
        self, instance_name: str, namespace: Optional[str] = None
    ) -> Lookup[WorkloadInstance]:
        """Fetch a pod by name.

        Raises:
            ClusterConnectivityError: If the control plane cannot be queried
        """
        pass

    def close(self) -> None:
        """Release any held connections.

        Override this if your client maintains a persistent API client.
        """
        pass


def selector_to_string(label_selector: Optional[Dict[str, str]]) -> Optional[str]:
    """Render a label mapping as a Kubernetes equality selector.

    Example:
        >>> selector_to_string({"app": "web", "tier": "frontend"})
        'app=web,tier=frontend'
    """
    if not label_selector:
        return None
    return ",".join(f"{key}={value}" for key, value in label_selector.items())
