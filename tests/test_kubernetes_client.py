"""Tests for the Kubernetes API backed cluster client."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
import urllib3
from kubernetes import client as k8s
from kubernetes.client.rest import ApiException

from kube_discovery.clients.kubernetes_client import KubernetesClusterClient, external_ips_of, is_transient
from kube_discovery.exceptions import ClusterConnectivityError
from kube_discovery.models import ExposureType, LookupStatus

# Generated model keyword for spec.externalIPs differs across client releases
EXTERNAL_IPS_KWARG = "external_ips" if "external_ips" in k8s.V1ServiceSpec.attribute_map else "external_i_ps"


def _v1_service(
    name="web",
    namespace="shop",
    service_type="LoadBalancer",
    ports=None,
    cluster_ip="10.0.0.7",
    external_ips=None,
    external_name=None,
    ingress=None,
    labels=None,
):
    spec_fields = {}
    if external_ips is not None:
        spec_fields[EXTERNAL_IPS_KWARG] = external_ips
    return k8s.V1Service(
        metadata=k8s.V1ObjectMeta(name=name, namespace=namespace, labels=labels),
        spec=k8s.V1ServiceSpec(
            type=service_type,
            ports=ports,
            cluster_ip=cluster_ip,
            external_name=external_name,
            **spec_fields,
        ),
        status=k8s.V1ServiceStatus(load_balancer=k8s.V1LoadBalancerStatus(ingress=ingress)),
    )


def _v1_endpoints(name="api", namespace="shop", pods=("api-0",)):
    return k8s.V1Endpoints(
        metadata=k8s.V1ObjectMeta(name=name, namespace=namespace),
        subsets=[
            k8s.V1EndpointSubset(
                addresses=[
                    k8s.V1EndpointAddress(
                        ip=f"172.16.0.{index}",
                        target_ref=k8s.V1ObjectReference(kind="Pod", name=pod, namespace=namespace),
                    )
                    for index, pod in enumerate(pods, start=1)
                ]
            )
        ],
    )


def _v1_pod(name="api-0", namespace="shop", host_ip="10.1.1.9"):
    return k8s.V1Pod(
        metadata=k8s.V1ObjectMeta(name=name, namespace=namespace),
        status=k8s.V1PodStatus(host_ip=host_ip),
    )


@pytest.fixture
def core_api():
    return MagicMock()


@pytest.fixture
def cluster_client(core_api):
    return KubernetesClusterClient(core_api=core_api, request_timeout=5.0, max_attempts=3, backoff=0)


class TestListServices:
    def test_converts_service_fields(self, core_api, cluster_client):
        core_api.list_namespaced_service.return_value = k8s.V1ServiceList(
            items=[
                _v1_service(
                    ports=[
                        k8s.V1ServicePort(name="http", port=80, node_port=30080, protocol="TCP"),
                        k8s.V1ServicePort(name=None, port=9100),
                    ],
                    external_ips=["203.0.113.10"],
                    ingress=[
                        k8s.V1LoadBalancerIngress(ip="1.2.3.4"),
                        k8s.V1LoadBalancerIngress(hostname="web.elb.example.com"),
                    ],
                    labels={"app": "web"},
                )
            ]
        )

        services = cluster_client.list_services(namespace="shop", label_selector={"app": "web"})

        core_api.list_namespaced_service.assert_called_once_with(
            "shop", label_selector="app=web", _request_timeout=5.0
        )
        [service] = services
        assert service.name == "web"
        assert service.namespace == "shop"
        assert service.exposure_type == ExposureType.LOAD_BALANCER
        assert [(p.name, p.port, p.node_port) for p in service.ports] == [
            ("http", 80, 30080),
            (None, 9100, None),
        ]
        assert service.cluster_ip == "10.0.0.7"
        assert service.external_ips == ["203.0.113.10"]
        assert [(i.ip, i.hostname) for i in service.load_balancer_ingress] == [
            ("1.2.3.4", None),
            (None, "web.elb.example.com"),
        ]
        assert service.labels == {"app": "web"}

    def test_lists_all_namespaces_without_scope(self, core_api, cluster_client):
        core_api.list_service_for_all_namespaces.return_value = k8s.V1ServiceList(
            items=[_v1_service(name="legacy", service_type="ExternalName", cluster_ip=None, external_name="legacy.example.com")]
        )

        [service] = cluster_client.list_services()

        core_api.list_service_for_all_namespaces.assert_called_once_with(_request_timeout=5.0)
        assert service.exposure_type == ExposureType.EXTERNAL_NAME
        assert service.external_name == "legacy.example.com"

    def test_missing_type_defaults_to_cluster_ip(self, core_api, cluster_client):
        core_api.list_service_for_all_namespaces.return_value = k8s.V1ServiceList(
            items=[_v1_service(service_type=None)]
        )

        [service] = cluster_client.list_services()

        assert service.exposure_type == ExposureType.CLUSTER_IP

    def test_service_without_external_ips(self, core_api, cluster_client):
        core_api.list_service_for_all_namespaces.return_value = k8s.V1ServiceList(
            items=[_v1_service(service_type="ClusterIP", cluster_ip="10.0.0.5")]
        )

        [service] = cluster_client.list_services()

        assert service.cluster_ip == "10.0.0.5"
        assert service.external_ips == []

    @pytest.mark.parametrize("attribute", ["external_ips", "external_i_ps"])
    def test_reads_external_ips_under_either_attribute_name(self, core_api, cluster_client, attribute):
        spec = SimpleNamespace(type="ClusterIP", ports=[], cluster_ip="10.0.0.5", external_name=None)
        setattr(spec, attribute, ["203.0.113.10"])
        item = SimpleNamespace(
            metadata=SimpleNamespace(name="web", namespace="shop", labels=None),
            spec=spec,
            status=None,
        )
        core_api.list_service_for_all_namespaces.return_value = SimpleNamespace(items=[item])

        [service] = cluster_client.list_services()

        assert service.external_ips == ["203.0.113.10"]

    def test_external_ips_of_spec_without_either_attribute(self):
        assert external_ips_of(SimpleNamespace()) == []


class TestEndpointRecords:
    def test_scoped_lookup(self, core_api, cluster_client):
        core_api.read_namespaced_endpoints.return_value = _v1_endpoints(pods=("api-0", "api-1"))

        lookup = cluster_client.get_endpoint_record("api", namespace="shop")

        core_api.read_namespaced_endpoints.assert_called_once_with("api", "shop", _request_timeout=5.0)
        assert lookup.found
        record = lookup.value
        assert record.namespace == "shop"
        assert [a.instance_name for a in record.subsets[0].addresses] == ["api-0", "api-1"]

    def test_scoped_lookup_not_found(self, core_api, cluster_client):
        core_api.read_namespaced_endpoints.side_effect = ApiException(status=404, reason="Not Found")

        lookup = cluster_client.get_endpoint_record("api", namespace="shop")

        assert lookup.status == LookupStatus.NOT_FOUND

    def test_unscoped_lookup_uses_field_selector(self, core_api, cluster_client):
        core_api.list_endpoints_for_all_namespaces.return_value = k8s.V1EndpointsList(items=[_v1_endpoints()])

        lookup = cluster_client.get_endpoint_record("api")

        core_api.list_endpoints_for_all_namespaces.assert_called_once_with(
            field_selector="metadata.name=api", _request_timeout=5.0
        )
        assert lookup.found

    def test_unscoped_lookup_reports_ambiguity(self, core_api, cluster_client):
        core_api.list_endpoints_for_all_namespaces.return_value = k8s.V1EndpointsList(
            items=[_v1_endpoints(namespace="shop"), _v1_endpoints(namespace="staging")]
        )

        lookup = cluster_client.get_endpoint_record("api")

        assert lookup.status == LookupStatus.AMBIGUOUS
        assert lookup.candidates == ["shop", "staging"]

    def test_non_pod_targets_are_not_instances(self, core_api, cluster_client):
        endpoints = _v1_endpoints()
        endpoints.subsets[0].addresses[0].target_ref.kind = "Node"
        core_api.read_namespaced_endpoints.return_value = endpoints

        record = cluster_client.get_endpoint_record("api", namespace="shop").value

        assert record.subsets[0].addresses[0].instance_name is None


class TestWorkloadInstances:
    def test_scoped_lookup(self, core_api, cluster_client):
        core_api.read_namespaced_pod.return_value = _v1_pod()

        lookup = cluster_client.get_workload_instance("api-0", namespace="shop")

        assert lookup.found
        assert lookup.value.host_ip == "10.1.1.9"

    def test_unscoped_lookup_not_found(self, core_api, cluster_client):
        core_api.list_pod_for_all_namespaces.return_value = k8s.V1PodList(items=[])

        lookup = cluster_client.get_workload_instance("api-0")

        core_api.list_pod_for_all_namespaces.assert_called_once_with(
            field_selector="metadata.name=api-0", _request_timeout=5.0
        )
        assert lookup.status == LookupStatus.NOT_FOUND

    def test_unscheduled_pod_has_no_host(self, core_api, cluster_client):
        core_api.read_namespaced_pod.return_value = _v1_pod(host_ip=None)

        lookup = cluster_client.get_workload_instance("api-0", namespace="shop")

        assert lookup.found
        assert lookup.value.host_ip is None


class TestErrorHandling:
    def test_forbidden_is_connectivity_error(self, core_api, cluster_client):
        core_api.list_service_for_all_namespaces.side_effect = ApiException(status=403, reason="Forbidden")

        with pytest.raises(ClusterConnectivityError) as exc_info:
            cluster_client.list_services()

        assert exc_info.value.status == 403
        assert exc_info.value.operation == "list_services"
        assert core_api.list_service_for_all_namespaces.call_count == 1

    def test_404_on_list_is_connectivity_error(self, core_api, cluster_client):
        core_api.list_namespaced_service.side_effect = ApiException(status=404, reason="Not Found")

        with pytest.raises(ClusterConnectivityError):
            cluster_client.list_services(namespace="missing")

    def test_transient_errors_are_retried(self, core_api, cluster_client):
        core_api.list_service_for_all_namespaces.side_effect = [
            ApiException(status=503, reason="Service Unavailable"),
            urllib3.exceptions.MaxRetryError(pool=None, url="/api/v1/services"),
            k8s.V1ServiceList(items=[_v1_service()]),
        ]

        services = cluster_client.list_services()

        assert [service.name for service in services] == ["web"]
        assert core_api.list_service_for_all_namespaces.call_count == 3

    def test_exhausted_retries_raise_connectivity_error(self, core_api, cluster_client):
        core_api.read_namespaced_pod.side_effect = urllib3.exceptions.MaxRetryError(
            pool=None, url="/api/v1/namespaces/shop/pods/api-0"
        )

        with pytest.raises(ClusterConnectivityError):
            cluster_client.get_workload_instance("api-0", namespace="shop")

        assert core_api.read_namespaced_pod.call_count == 3

    @pytest.mark.parametrize(
        "error,expected",
        [
            (ApiException(status=500), True),
            (ApiException(status=429), True),
            (ApiException(status=404), False),
            (ApiException(status=401), False),
            (urllib3.exceptions.ProtocolError("reset"), True),
            (ValueError("bad"), False),
        ],
    )
    def test_is_transient(self, error, expected):
        assert is_transient(error) is expected


def test_explicit_endpoint_configures_api_host():
    cluster_client = KubernetesClusterClient(cluster_endpoint="https://10.0.0.1:6443")

    assert cluster_client.core_api.api_client.configuration.host == "https://10.0.0.1:6443"
    cluster_client.close()
