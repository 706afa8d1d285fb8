import pytest

from kube_discovery.discovery import reset_service_discovery
from kube_discovery.models import (
    EndpointAddress,
    EndpointRecord,
    EndpointSubset,
    ExposureType,
    Service,
    ServicePort,
    WorkloadInstance,
)


@pytest.fixture(autouse=True)
def reset_discovery_fixture():
    """Reset the default engine before and after each test."""
    reset_service_discovery()
    yield
    reset_service_discovery()


@pytest.fixture
def node_port_snapshot():
    """NodePort service "api" on node port 31000 backed by pod "api-0"."""
    service = Service(
        name="api",
        namespace="shop",
        exposure_type=ExposureType.NODE_PORT,
        cluster_ip="10.96.0.20",
        ports=[ServicePort(name="http", port=8080, node_port=31000)],
    )
    record = EndpointRecord(
        service_name="api",
        namespace="shop",
        subsets=[
            EndpointSubset(
                addresses=[EndpointAddress(ip="172.16.0.4", instance_name="api-0")]
            )
        ],
    )
    instance = WorkloadInstance(name="api-0", namespace="shop", host_ip="10.1.1.9")
    return service, record, instance
