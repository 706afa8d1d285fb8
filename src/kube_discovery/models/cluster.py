"""Snapshot models of the cluster objects consumed by discovery.

These are read-only views of Kubernetes Service, Endpoints and Pod objects,
carrying only the fields the resolution engine needs. They are sourced fresh
for every discovery call and never cached across calls.
"""

from enum import Enum
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class ExposureType(str, Enum):
    """How a service is reachable. Values use the Kubernetes spellings."""

    CLUSTER_IP = "ClusterIP"  # Cluster-internal virtual IP
    NODE_PORT = "NodePort"  # Port opened on every node
    LOAD_BALANCER = "LoadBalancer"  # Cloud load balancer ingress
    EXTERNAL_NAME = "ExternalName"  # DNS alias
    EXTERNAL_IP = "ExternalIP"  # Administrator-assigned external address

    @classmethod
    def parse(cls, value: str) -> "ExposureType":
        """Parse a mode string, ignoring case and underscores.

        Raises:
            ValueError: If the value names no exposure type
        """
        normalized = value.replace("_", "").replace("-", "").lower()
        for member in cls:
            if member.value.lower() == normalized:
                return member
        raise ValueError(
            f"Unknown exposure type: {value}. "
            f"Known types: {[member.value for member in cls]}"
        )


class ServicePort(BaseModel):
    """A port declared on a service."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = Field(None, description="Port name, used as the protocol label")
    port: int = Field(..., description="Declared service port")
    node_port: Optional[int] = Field(None, description="Node port number, if allocated")
    protocol: str = Field("TCP", description="Transport protocol (informational)")


class LoadBalancerIngress(BaseModel):
    """A published load-balancer ingress point."""

    model_config = ConfigDict(frozen=True)

    ip: Optional[str] = None
    hostname: Optional[str] = None


class Service(BaseModel):
    """Snapshot of a Kubernetes Service."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Service name")
    namespace: Optional[str] = Field(None, description="Namespace the service lives in")
    exposure_type: ExposureType = Field(ExposureType.CLUSTER_IP, description="spec.type")
    ports: List[ServicePort] = Field(default_factory=list)
    cluster_ip: Optional[str] = Field(None, description="Cluster-internal address")
    external_ips: List[str] = Field(default_factory=list, description="spec.externalIPs")
    external_name: Optional[str] = Field(None, description="spec.externalName")
    load_balancer_ingress: List[LoadBalancerIngress] = Field(
        default_factory=list, description="status.loadBalancer.ingress"
    )
    labels: Dict[str, str] = Field(default_factory=dict)


class EndpointAddress(BaseModel):
    """One backing address of an endpoint subset.

    ``instance_name`` is a weak reference to a pod: it is resolved by lookup,
    never embedded.
    """

    model_config = ConfigDict(frozen=True)

    ip: Optional[str] = None
    instance_name: Optional[str] = None
    instance_namespace: Optional[str] = None


class EndpointSubset(BaseModel):
    """A group of addresses sharing the same ports."""

    model_config = ConfigDict(frozen=True)

    addresses: List[EndpointAddress] = Field(default_factory=list)


class EndpointRecord(BaseModel):
    """Live set of backing addresses for one service."""

    model_config = ConfigDict(frozen=True)

    service_name: str
    namespace: Optional[str] = None
    subsets: List[EndpointSubset] = Field(default_factory=list)


class WorkloadInstance(BaseModel):
    """A pod backing a service, with the address of the node it runs on."""

    model_config = ConfigDict(frozen=True)

    name: str
    namespace: Optional[str] = None
    host_ip: Optional[str] = Field(None, description="status.hostIP")


class LookupStatus(str, Enum):
    """Outcome of a secondary cluster query."""

    FOUND = "found"
    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"  # Unscoped lookup matched in several namespaces


class Lookup(BaseModel, Generic[T]):
    """Result of a secondary query, distinguishing absent from ambiguous.

    Transient failures are not represented here: clients raise
    ClusterConnectivityError for those.
    """

    model_config = ConfigDict(frozen=True)

    status: LookupStatus
    value: Optional[T] = None
    candidates: List[str] = Field(
        default_factory=list, description="Namespaces that matched an ambiguous lookup"
    )

    @property
    def found(self) -> bool:
        return self.status == LookupStatus.FOUND

    @classmethod
    def of(cls, value: T) -> "Lookup[T]":
        return cls(status=LookupStatus.FOUND, value=value)

    @classmethod
    def not_found(cls) -> "Lookup[T]":
        return cls(status=LookupStatus.NOT_FOUND)

    @classmethod
    def ambiguous(cls, candidates: List[str]) -> "Lookup[T]":
        return cls(status=LookupStatus.AMBIGUOUS, candidates=candidates)
