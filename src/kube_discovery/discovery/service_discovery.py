"""Service Discovery for Kubernetes Workloads

Resolves Kubernetes services into connectable URLs for one exposure type:
- ClusterIP: http://<cluster-ip>:<port>
- NodePort: http://<pod-host-ip>:<node-port>
- LoadBalancer: http://<ingress-ip>
- ExternalName: http://<external-name>
- ExternalIP: http://<external-ip>
"""

import logging
import time
from typing import Callable, Dict, Optional

from kube_discovery.clients.base import ClusterStateClient
from kube_discovery.config import DiscoveryConfig
from kube_discovery.discovery.aggregator import ResultAggregator
from kube_discovery.discovery.context import Deadline, ResolutionContext
from kube_discovery.discovery.resolvers import get_resolver
from kube_discovery.exceptions import DeadlineExceeded
from kube_discovery.models import DiscoveryResult

logger = logging.getLogger(__name__)


class ServiceDiscovery:
    """Discovery engine resolving services of one configured exposure type.

    The engine keeps only its configuration, client and resolution strategy.
    Each ``discover()`` call builds its own aggregator and lookup memo, so
    calls from different threads never see each other's partial results.

    Example:
        ```python
        engine = ServiceDiscovery.from_config(
            DiscoveryConfig(exposure_type_mode="NodePort")
        )
        result = engine.discover(namespace="shop", timeout=10.0)
        # {'api': ['http://10.1.1.9:31000']}
        print(result.as_strings())
        ```
    """

    def __init__(
        self,
        client: ClusterStateClient,
        config: Optional[DiscoveryConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the engine.

        Args:
            client: Cluster state client used for all queries
            config: Engine configuration (default: LoadBalancer mode)
            clock: Monotonic time source for discovery deadlines
        """
        self.client = client
        self.clock = clock
        self.config = config or DiscoveryConfig()
        self.mode = self.config.exposure_type_mode
        self.resolver = get_resolver(self.mode, self.config)

        logger.info(
            f"ServiceDiscovery initialized: mode={self.mode.value}, "
            f"client={client.__class__.__name__}"
        )

    @classmethod
    def from_config(cls, config: Optional[DiscoveryConfig] = None) -> "ServiceDiscovery":
        """Create an engine backed by the Kubernetes API.

        Args:
            config: Engine configuration (default: read from environment)
        """
        from kube_discovery.clients.kubernetes_client import KubernetesClusterClient

        config = config or DiscoveryConfig.from_env()
        client = KubernetesClusterClient(
            cluster_endpoint=config.cluster_endpoint,
            request_timeout=config.request_timeout,
            max_attempts=config.max_attempts,
        )
        return cls(client, config)

    def discover(
        self,
        namespace: Optional[str] = None,
        label_selector: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> DiscoveryResult:
        """Resolve the current services into URLs.

        Args:
            namespace: Namespace to discover in (None for all namespaces)
            label_selector: Labels services must carry
            timeout: Seconds before resolution is abandoned (None for no limit)

        Returns:
            DiscoveryResult mapping service names to URLs. ``complete`` is
            False if the timeout cut resolution short.

        Raises:
            ClusterConnectivityError: If the cluster cannot be queried
        """
        deadline = Deadline(timeout, clock=self.clock)
        aggregator = ResultAggregator()
        aggregator.begin()
        context = ResolutionContext(self.client, aggregator, namespace=namespace, deadline=deadline)

        services = self.client.list_services(namespace=namespace, label_selector=label_selector)

        complete = True
        matched = 0
        try:
            for service in services:
                if not self.resolver.matches(service):
                    continue
                deadline.check()
                matched += 1
                self.resolver.resolve(service, context)
        except DeadlineExceeded as e:
            complete = False
            logger.warning(f"{e}; returning {len(aggregator)} URLs resolved so far")

        result = aggregator.snapshot(self.mode, complete=complete)
        logger.info(
            f"Discovered {len(result)} of {matched} {self.mode.value} services "
            f"({len(services)} listed, namespace={namespace or 'all'}, "
            f"issues={len(result.issues)}, complete={complete})"
        )
        return result

    def close(self) -> None:
        self.client.close()


# Default engine for global access
_discovery_instance: Optional[ServiceDiscovery] = None


def get_service_discovery() -> ServiceDiscovery:
    """Get or create the default ServiceDiscovery engine.

    The engine is configured from the environment on first use. It holds no
    per-call state, so sharing it across callers is safe.

    Example:
        ```python
        from kube_discovery.discovery import get_service_discovery

        urls = get_service_discovery().discover(namespace="monitoring")
        ```
    """
    global _discovery_instance

    if _discovery_instance is None:
        _discovery_instance = ServiceDiscovery.from_config()

    return _discovery_instance


def reset_service_discovery():
    """Reset the default ServiceDiscovery engine.

    Used for testing or reconfiguration.
    """
    global _discovery_instance
    if _discovery_instance is not None:
        _discovery_instance.close()
    _discovery_instance = None
    logger.warning("ServiceDiscovery instance reset")
