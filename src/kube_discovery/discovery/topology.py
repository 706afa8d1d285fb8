"""Service -> endpoints -> pod -> host traversal for node-port services."""

import logging
from typing import Optional

from kube_discovery.discovery.context import ResolutionContext
from kube_discovery.exceptions import MalformedURLError
from kube_discovery.models import IssueKind, LookupStatus, ResolvedURL, Service

logger = logging.getLogger(__name__)


def find_node_port_url(
    service: Service,
    node_port: int,
    protocol: str,
    context: ResolutionContext,
) -> Optional[ResolvedURL]:
    """Resolve one reachable host for a node port of a service.

    Walks the service's endpoint record and returns a URL on the host of the
    first backing pod that has a host address. Remaining addresses are not
    examined. Pods that are missing or not yet scheduled are skipped.

    Args:
        service: Node-port service being resolved
        node_port: Node port number of the port being resolved
        protocol: Classified application protocol of that port
        context: Call context providing memoised cluster lookups

    Returns:
        The URL, or None if no backing pod could be resolved (the reason is
        reported on the context)
    """
    scope = context.namespace or service.namespace

    lookup = context.get_endpoint_record(service.name, scope)
    if lookup.status == LookupStatus.AMBIGUOUS:
        context.report(
            service,
            IssueKind.AMBIGUOUS,
            f"endpoint record name matches in several namespaces: {lookup.candidates}",
        )
        return None
    if not lookup.found:
        context.report(service, IssueKind.NOT_FOUND, "no endpoint record")
        return None

    record = lookup.value
    if not record.subsets:
        context.report(service, IssueKind.NOT_FOUND, "endpoint record has no address subsets")
        return None

    for subset in record.subsets:
        if not subset.addresses:
            context.report(service, IssueKind.NOT_FOUND, "endpoint subset has no addresses")
            return None

        for address in subset.addresses:
            if not address.instance_name:
                logger.debug(f"Skipping address {address.ip} of {service.name}: no pod reference")
                continue

            instance_scope = address.instance_namespace or record.namespace or scope
            instance = context.get_workload_instance(address.instance_name, instance_scope)
            if not instance.found:
                logger.debug(
                    f"Skipping pod {address.instance_name} of {service.name}: {instance.status.value}"
                )
                continue
            if not instance.value.host_ip:
                logger.debug(f"Skipping pod {address.instance_name} of {service.name}: no host IP")
                continue

            try:
                return ResolvedURL.build(protocol, instance.value.host_ip, node_port)
            except MalformedURLError as e:
                context.report(service, IssueKind.MALFORMED, str(e))

    context.report(service, IssueKind.NOT_FOUND, f"no backing pod with a host address for node port {node_port}")
    return None
