"""In-memory cluster client backed by a fixed snapshot."""

import logging
from typing import Callable, Dict, Iterable, List, Optional, TypeVar

from kube_discovery.clients.base import ClusterStateClient
from kube_discovery.models import EndpointRecord, Lookup, Service, WorkloadInstance

logger = logging.getLogger(__name__)

T = TypeVar("T")


class InMemoryClusterClient(ClusterStateClient):
    """Serves discovery queries from objects supplied up front.

    Useful when the caller already holds a snapshot of the cluster, and in
    tests. Lookups follow the same scoping rules as the Kubernetes client.

    Example:
        ```python
        client = InMemoryClusterClient(
            services=[Service(name="db", cluster_ip="10.0.0.5", ports=[...])],
        )
        engine = ServiceDiscovery(client, DiscoveryConfig(exposure_type_mode="ClusterIP"))
        ```
    """

    def __init__(
        self,
        services: Iterable[Service] = (),
        endpoint_records: Iterable[EndpointRecord] = (),
        instances: Iterable[WorkloadInstance] = (),
    ):
        super().__init__()
        self.services: List[Service] = list(services)
        self.endpoint_records: List[EndpointRecord] = list(endpoint_records)
        self.instances: List[WorkloadInstance] = list(instances)

    def list_services(
        self,
        namespace: Optional[str] = None,
        label_selector: Optional[Dict[str, str]] = None,
    ) -> List[Service]:
        selector = label_selector or {}
        return [
            service
            for service in self.services
            if (namespace is None or service.namespace == namespace)
            and all(service.labels.get(key) == value for key, value in selector.items())
        ]

    def get_endpoint_record(
        self, service_name: str, namespace: Optional[str] = None
    ) -> Lookup[EndpointRecord]:
        return self._lookup(
            self.endpoint_records, service_name, namespace, lambda record: record.service_name
        )

    def get_workload_instance(
        self, instance_name: str, namespace: Optional[str] = None
    ) -> Lookup[WorkloadInstance]:
        return self._lookup(self.instances, instance_name, namespace, lambda instance: instance.name)

    @staticmethod
    def _lookup(
        items: List[T], name: str, namespace: Optional[str], name_of: Callable[[T], str]
    ) -> Lookup[T]:
        matches = [
            item
            for item in items
            if name_of(item) == name and (namespace is None or item.namespace == namespace)
        ]
        if not matches:
            return Lookup.not_found()
        if len(matches) > 1:
            candidates = [str(item.namespace) for item in matches]
            logger.warning(f"Ambiguous lookup for {name}: found in namespaces {candidates}")
            return Lookup.ambiguous(candidates)
        return Lookup.of(matches[0])
