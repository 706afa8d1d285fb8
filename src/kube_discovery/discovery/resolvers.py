"""
Exposure type resolution strategies.

Each strategy turns services of one exposure type into URLs:
- ClusterIP: cluster IP and declared port of every supported port
- NodePort: host of the first backing pod and the node port
- LoadBalancer: each published ingress address, no port
- ExternalName: the DNS alias, no port
- ExternalIP: each administrator-assigned external address, no port

Only ClusterIP and NodePort consult port names. The other strategies have no
protocol metadata and use a configured default protocol.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Type

from kube_discovery.config import DiscoveryConfig
from kube_discovery.discovery.context import ResolutionContext
from kube_discovery.discovery.protocols import classify
from kube_discovery.discovery.topology import find_node_port_url
from kube_discovery.exceptions import MalformedURLError
from kube_discovery.models import ExposureType, IssueKind, ResolvedURL, Service

logger = logging.getLogger(__name__)

# External IPs are managed by the cluster administrator, not Kubernetes,
# and carry no protocol metadata
EXTERNAL_IP_PROTOCOL = "http"


class ExposureTypeResolver(ABC):
    """Resolution strategy for a single exposure type"""

    exposure_type: ExposureType

    def __init__(self, config: Optional[DiscoveryConfig] = None):
        self.config = config or DiscoveryConfig(exposure_type_mode=self.exposure_type)

    def matches(self, service: Service) -> bool:
        """Whether this strategy handles the service at all"""
        return service.exposure_type == self.exposure_type

    @abstractmethod
    def resolve(self, service: Service, context: ResolutionContext) -> None:
        """Emit URLs for a matching service onto the context"""
        pass

    def _emit(
        self,
        service: Service,
        context: ResolutionContext,
        protocol: Optional[str],
        host: Optional[str],
        port: Optional[int] = None,
    ) -> None:
        """Build and emit a URL, reporting it instead if malformed."""
        try:
            url = ResolvedURL.build(protocol, host, port)
        except MalformedURLError as e:
            context.report(service, IssueKind.MALFORMED, str(e))
            return
        context.emit(service, url)


class ClusterIPResolver(ExposureTypeResolver):
    exposure_type = ExposureType.CLUSTER_IP

    def resolve(self, service: Service, context: ResolutionContext) -> None:
        for port in service.ports:
            protocol = classify(port.name)
            if protocol is None:
                continue
            self._emit(service, context, protocol, service.cluster_ip, port.port)


class NodePortResolver(ExposureTypeResolver):
    """Resolves node ports to the host of a backing pod.

    Emits at most one URL per port: the first backing pod with a host
    address wins.
    """

    exposure_type = ExposureType.NODE_PORT

    def resolve(self, service: Service, context: ResolutionContext) -> None:
        for port in service.ports:
            protocol = classify(port.name)
            if protocol is None:
                continue
            if port.node_port is None:
                context.report(
                    service, IssueKind.MALFORMED, f"port {port.port} ({port.name}) has no node port"
                )
                continue

            url = find_node_port_url(service, port.node_port, protocol, context)
            if url is not None:
                context.emit(service, url)


class LoadBalancerResolver(ExposureTypeResolver):
    exposure_type = ExposureType.LOAD_BALANCER

    def resolve(self, service: Service, context: ResolutionContext) -> None:
        if not service.load_balancer_ingress:
            logger.debug(f"Load balancer for {service.name} not provisioned yet")
            return

        protocol = self.config.default_protocol_for_load_balancer
        for ingress in service.load_balancer_ingress:
            # Some cloud providers publish a DNS name instead of an IP
            self._emit(service, context, protocol, ingress.ip or ingress.hostname)


class ExternalNameResolver(ExposureTypeResolver):
    exposure_type = ExposureType.EXTERNAL_NAME

    def resolve(self, service: Service, context: ResolutionContext) -> None:
        self._emit(
            service,
            context,
            self.config.default_protocol_for_external_name,
            service.external_name,
        )


class ExternalIPResolver(ExposureTypeResolver):
    """Resolves administrator-assigned external addresses.

    Kubernetes allows external IPs on services of any type, so every service
    with a non-empty external address list is handled.
    """

    exposure_type = ExposureType.EXTERNAL_IP

    def matches(self, service: Service) -> bool:
        return service.exposure_type == self.exposure_type or bool(service.external_ips)

    def resolve(self, service: Service, context: ResolutionContext) -> None:
        for address in service.external_ips:
            self._emit(service, context, EXTERNAL_IP_PROTOCOL, address)


RESOLVERS: Dict[ExposureType, Type[ExposureTypeResolver]] = {
    resolver.exposure_type: resolver
    for resolver in (
        ClusterIPResolver,
        NodePortResolver,
        LoadBalancerResolver,
        ExternalNameResolver,
        ExternalIPResolver,
    )
}


def get_resolver(mode: ExposureType, config: Optional[DiscoveryConfig] = None) -> ExposureTypeResolver:
    """Build the resolution strategy for an exposure type.

    Raises:
        ValueError: If no strategy exists for the mode
    """
    try:
        resolver_class = RESOLVERS[ExposureType(mode)]
    except (KeyError, ValueError):
        raise ValueError(f"No resolver for exposure type: {mode}") from None
    return resolver_class(config)
