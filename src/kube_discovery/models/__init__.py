"""
Data models for Kubernetes endpoint discovery.

Cluster snapshot models (services, endpoint records, pods) are consumed by the
resolution engine; result models describe what it produces.
"""

from kube_discovery.models.cluster import (
    # Cluster snapshot
    ExposureType,
    Service,
    ServicePort,
    LoadBalancerIngress,
    EndpointRecord,
    EndpointSubset,
    EndpointAddress,
    WorkloadInstance,

    # Secondary query results
    Lookup,
    LookupStatus,
)
from kube_discovery.models.result import (
    ResolvedURL,
    DiscoveryResult,
    DiscoveryIssue,
    IssueKind,
)

__all__ = [
    # Cluster snapshot
    "ExposureType", "Service", "ServicePort", "LoadBalancerIngress",
    "EndpointRecord", "EndpointSubset", "EndpointAddress", "WorkloadInstance",
    # Lookups
    "Lookup", "LookupStatus",
    # Results
    "ResolvedURL", "DiscoveryResult", "DiscoveryIssue", "IssueKind",
]
