"""Service Discovery Module

Exposure-type based URL resolution for Kubernetes services.
"""

from .aggregator import ResultAggregator
from .protocols import SUPPORTED_PROTOCOLS, classify, is_supported
from .resolvers import (
    ExposureTypeResolver,
    ClusterIPResolver,
    NodePortResolver,
    LoadBalancerResolver,
    ExternalNameResolver,
    ExternalIPResolver,
    get_resolver,
)
from .service_discovery import (
    ServiceDiscovery,
    get_service_discovery,
    reset_service_discovery,
)

__all__ = [
    "ServiceDiscovery",
    "get_service_discovery",
    "reset_service_discovery",
    "ResultAggregator",
    "SUPPORTED_PROTOCOLS",
    "classify",
    "is_supported",
    "ExposureTypeResolver",
    "ClusterIPResolver",
    "NodePortResolver",
    "LoadBalancerResolver",
    "ExternalNameResolver",
    "ExternalIPResolver",
    "get_resolver",
]
