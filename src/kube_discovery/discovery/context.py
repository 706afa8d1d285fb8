"""Per-call resolution state: deadline, lookup memo and aggregator."""

import logging
import time
from typing import Callable, Dict, Optional, Tuple

from kube_discovery.clients.base import ClusterStateClient
from kube_discovery.discovery.aggregator import ResultAggregator
from kube_discovery.exceptions import DeadlineExceeded
from kube_discovery.models import (
    DiscoveryIssue,
    EndpointRecord,
    IssueKind,
    Lookup,
    ResolvedURL,
    Service,
    WorkloadInstance,
)

logger = logging.getLogger(__name__)


class Deadline:
    """Monotonic deadline for one discovery call. None means no limit."""

    def __init__(self, timeout: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.timeout = timeout
        self._clock = clock
        self.expires_at = clock() + timeout if timeout is not None else None

    def expired(self) -> bool:
        return self.expires_at is not None and self._clock() >= self.expires_at

    def check(self) -> None:
        """Raise DeadlineExceeded once the deadline has passed."""
        if self.expired():
            raise DeadlineExceeded(f"Discovery deadline of {self.timeout}s exceeded")


class ResolutionContext:
    """Everything a resolver needs for a single discovery call.

    Secondary lookups are memoised here so that several ports of one service
    query the cluster once. The memo lives only as long as the context, which
    keeps every lookup within a call consistent with the same snapshot.
    """

    def __init__(
        self,
        client: ClusterStateClient,
        aggregator: ResultAggregator,
        namespace: Optional[str] = None,
        deadline: Optional[Deadline] = None,
    ):
        self.client = client
        self.aggregator = aggregator
        self.namespace = namespace
        self.deadline = deadline or Deadline()
        self._endpoint_records: Dict[Tuple[str, Optional[str]], Lookup[EndpointRecord]] = {}
        self._instances: Dict[Tuple[str, Optional[str]], Lookup[WorkloadInstance]] = {}

    def get_endpoint_record(self, service_name: str, namespace: Optional[str]) -> Lookup[EndpointRecord]:
        key = (service_name, namespace)
        if key not in self._endpoint_records:
            self.deadline.check()
            self._endpoint_records[key] = self.client.get_endpoint_record(service_name, namespace)
        return self._endpoint_records[key]

    def get_workload_instance(self, instance_name: str, namespace: Optional[str]) -> Lookup[WorkloadInstance]:
        key = (instance_name, namespace)
        if key not in self._instances:
            self.deadline.check()
            self._instances[key] = self.client.get_workload_instance(instance_name, namespace)
        return self._instances[key]

    def emit(self, service: Service, url: ResolvedURL) -> None:
        logger.debug(f"Resolved {service.name} -> {url}")
        self.aggregator.add(service.name, url)

    def report(self, service: Service, kind: IssueKind, detail: str) -> None:
        """Record why a service or port produced no URL."""
        if kind == IssueKind.NOT_FOUND:
            logger.debug(f"No URL for {service.name}: {detail}")
        else:
            logger.warning(f"Excluded {service.name} ({kind.value}): {detail}")
        self.aggregator.report(
            DiscoveryIssue(
                service_name=service.name,
                namespace=service.namespace,
                kind=kind,
                detail=detail,
            )
        )
