"""Kubernetes API backed cluster state client.

Translates CoreV1 Service, Endpoints and Pod objects into discovery snapshot
models. Only services, endpoints and pods are read; nodes are never queried.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import urllib3
from kubernetes import client, config
from kubernetes.client.rest import ApiException

from kube_discovery.clients.base import ClusterStateClient, selector_to_string
from kube_discovery.exceptions import ClusterConnectivityError
from kube_discovery.models import (
    EndpointAddress,
    EndpointRecord,
    EndpointSubset,
    ExposureType,
    LoadBalancerIngress,
    Lookup,
    Service,
    ServicePort,
    WorkloadInstance,
)
from kube_discovery.utils import create_custom_retry

logger = logging.getLogger(__name__)

# API server answers worth retrying; everything else is a hard rejection
TRANSIENT_STATUSES = frozenset({0, 429, 500, 502, 503, 504})


def is_transient(error: BaseException) -> bool:
    """Whether a failed API call may succeed if retried."""
    if isinstance(error, ApiException):
        return error.status is None or error.status in TRANSIENT_STATUSES
    return isinstance(error, urllib3.exceptions.HTTPError)


def external_ips_of(spec: Any) -> List[str]:
    """External addresses of a V1ServiceSpec.

    Older client releases generate the attribute as ``external_i_ps``;
    later ones use ``external_ips``.
    """
    for attribute in ("external_ips", "external_i_ps"):
        value = getattr(spec, attribute, None)
        if value:
            return list(value)
    return []


def build_core_api(cluster_endpoint: Optional[str] = None) -> client.CoreV1Api:
    """Create a CoreV1Api for the given control plane.

    With an explicit endpoint the API server is addressed directly. Otherwise
    the in-cluster service account is tried first, then the local kubeconfig.

    Raises:
        ClusterConnectivityError: If no cluster configuration can be loaded
    """
    if cluster_endpoint:
        configuration = client.Configuration()
        configuration.host = cluster_endpoint
        return client.CoreV1Api(client.ApiClient(configuration))

    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            config.load_kube_config()
            logger.info("Loaded Kubernetes configuration from kubeconfig")
        except (config.ConfigException, OSError) as e:
            raise ClusterConnectivityError(
                f"No Kubernetes configuration available: {e}", operation="configure"
            ) from e
    return client.CoreV1Api()


class KubernetesClusterClient(ClusterStateClient):
    """Cluster state client backed by the Kubernetes CoreV1 API.

    Transient failures (HTTP 429/5xx, transport errors) are retried with
    exponential backoff. A 404 on a secondary lookup is reported as not
    found. Any other failure raises ClusterConnectivityError.

    Usage:
        client = KubernetesClusterClient(cluster_endpoint="https://10.0.0.1:6443")
        services = client.list_services(namespace="shop", label_selector={"app": "web"})
        record = client.get_endpoint_record("web", namespace="shop")
    """

    def __init__(
        self,
        cluster_endpoint: Optional[str] = None,
        core_api: Optional[client.CoreV1Api] = None,
        request_timeout: float = 30.0,
        max_attempts: int = 3,
        backoff: float = 0.5,
    ):
        """Initialize the client.

        Args:
            cluster_endpoint: API server URL (None for in-cluster/kubeconfig)
            core_api: Pre-built CoreV1Api, overrides cluster_endpoint
            request_timeout: Per-request timeout in seconds
            max_attempts: Total attempts per query, including the first
            backoff: Base backoff in seconds between attempts
        """
        self.cluster_endpoint = cluster_endpoint
        self.core_api = core_api or build_core_api(cluster_endpoint)
        self.request_timeout = request_timeout
        self._retry = create_custom_retry(
            max_attempts=max_attempts,
            min_wait=backoff,
            max_wait=max(backoff, 8.0),
            multiplier=backoff,
            retry_on=is_transient,
        )
        super().__init__()

    def list_services(
        self,
        namespace: Optional[str] = None,
        label_selector: Optional[Dict[str, str]] = None,
    ) -> List[Service]:
        selector = selector_to_string(label_selector)
        kwargs = {"label_selector": selector} if selector else {}
        if namespace:
            response = self._call(
                "list_services", self.core_api.list_namespaced_service, namespace, **kwargs
            )
        else:
            response = self._call(
                "list_services", self.core_api.list_service_for_all_namespaces, **kwargs
            )
        services = [self._to_service(item) for item in response.items or []]
        logger.debug(f"Listed {len(services)} services (namespace={namespace}, selector={selector})")
        return services

    def get_endpoint_record(
        self, service_name: str, namespace: Optional[str] = None
    ) -> Lookup[EndpointRecord]:
        if namespace:
            endpoints = self._call(
                "get_endpoint_record",
                self.core_api.read_namespaced_endpoints,
                service_name,
                namespace,
                allow_missing=True,
            )
            return Lookup.of(self._to_endpoint_record(endpoints)) if endpoints else Lookup.not_found()

        response = self._call(
            "get_endpoint_record",
            self.core_api.list_endpoints_for_all_namespaces,
            field_selector=f"metadata.name={service_name}",
        )
        return self._single(response.items or [], service_name, self._to_endpoint_record)

    def get_workload_instance(
        self, instance_name: str, namespace: Optional[str] = None
    ) -> Lookup[WorkloadInstance]:
        if namespace:
            pod = self._call(
                "get_workload_instance",
                self.core_api.read_namespaced_pod,
                instance_name,
                namespace,
                allow_missing=True,
            )
            return Lookup.of(self._to_workload_instance(pod)) if pod else Lookup.not_found()

        response = self._call(
            "get_workload_instance",
            self.core_api.list_pod_for_all_namespaces,
            field_selector=f"metadata.name={instance_name}",
        )
        return self._single(response.items or [], instance_name, self._to_workload_instance)

    def close(self) -> None:
        api_client = getattr(self.core_api, "api_client", None)
        if api_client is not None and hasattr(api_client, "close"):
            api_client.close()

    def _call(
        self,
        operation: str,
        method: Callable[..., Any],
        *args: Any,
        allow_missing: bool = False,
        **kwargs: Any,
    ) -> Any:
        """Invoke an API method with retries and error translation.

        Returns None for a 404 when ``allow_missing`` is set.
        """
        try:
            return self._retry(method)(*args, _request_timeout=self.request_timeout, **kwargs)
        except ApiException as e:
            if allow_missing and e.status == 404:
                return None
            raise ClusterConnectivityError(
                f"{operation} rejected by API server: {e.status} {e.reason}",
                operation=operation,
                status=e.status,
            ) from e
        except urllib3.exceptions.HTTPError as e:
            raise ClusterConnectivityError(
                f"{operation} failed, control plane unreachable: {e}", operation=operation
            ) from e

    @staticmethod
    def _single(items: List[Any], name: str, convert: Callable[[Any], Any]) -> Lookup:
        """Reduce an unscoped name scan to a single match."""
        if not items:
            return Lookup.not_found()
        if len(items) > 1:
            candidates = [item.metadata.namespace for item in items]
            logger.warning(
                f"Ambiguous unscoped lookup for {name}: found in namespaces {candidates}"
            )
            return Lookup.ambiguous(candidates)
        return Lookup.of(convert(items[0]))

    @staticmethod
    def _to_service(item: Any) -> Service:
        metadata = item.metadata
        spec = item.spec
        status = item.status

        service_type = spec.type or ExposureType.CLUSTER_IP.value
        try:
            exposure_type = ExposureType(service_type)
        except ValueError:
            logger.warning(f"Unknown service type '{service_type}' on {metadata.name}, treating as ClusterIP")
            exposure_type = ExposureType.CLUSTER_IP

        ingress = []
        if status is not None and status.load_balancer is not None:
            ingress = [
                LoadBalancerIngress(ip=entry.ip, hostname=entry.hostname)
                for entry in status.load_balancer.ingress or []
            ]

        return Service(
            name=metadata.name,
            namespace=metadata.namespace,
            exposure_type=exposure_type,
            ports=[
                ServicePort(
                    name=port.name,
                    port=port.port,
                    node_port=port.node_port,
                    protocol=port.protocol or "TCP",
                )
                for port in spec.ports or []
            ],
            cluster_ip=spec.cluster_ip,
            external_ips=external_ips_of(spec),
            external_name=spec.external_name,
            load_balancer_ingress=ingress,
            labels=dict(metadata.labels or {}),
        )

    @staticmethod
    def _to_endpoint_record(item: Any) -> EndpointRecord:
        subsets = []
        for subset in item.subsets or []:
            addresses = []
            for address in subset.addresses or []:
                target = address.target_ref
                if target is not None and target.kind not in (None, "Pod"):
                    target = None
                addresses.append(
                    EndpointAddress(
                        ip=address.ip,
                        instance_name=target.name if target is not None else None,
                        instance_namespace=target.namespace if target is not None else None,
                    )
                )
            subsets.append(EndpointSubset(addresses=addresses))

        return EndpointRecord(
            service_name=item.metadata.name,
            namespace=item.metadata.namespace,
            subsets=subsets,
        )

    @staticmethod
    def _to_workload_instance(item: Any) -> WorkloadInstance:
        return WorkloadInstance(
            name=item.metadata.name,
            namespace=item.metadata.namespace,
            host_ip=item.status.host_ip if item.status is not None else None,
        )
