"""Exception hierarchy for Kubernetes endpoint discovery.

Only two conditions are exceptional:
- ClusterConnectivityError: the control plane could not be reached or rejected
  a query. Fatal for the whole discovery call.
- MalformedURLError: a URL could not be built from the resolved parts. Caught
  per entry by the engine and reported as an issue.

Missing endpoint records, subsets or pods are not errors. Cluster clients
return ``Lookup.not_found()`` for them instead.
"""

from typing import Optional


class DiscoveryError(Exception):
    """Base class for all discovery errors."""


class ClusterConnectivityError(DiscoveryError):
    """Cluster control plane unreachable or query rejected.

    Attributes:
        operation: Client operation that failed (e.g. "list_services")
        status: HTTP status returned by the API server, if any
    """

    def __init__(self, message: str, operation: Optional[str] = None, status: Optional[int] = None):
        super().__init__(message)
        self.operation = operation
        self.status = status


class MalformedURLError(DiscoveryError):
    """Resolved protocol/host/port do not form a valid URL."""


class DeadlineExceeded(DiscoveryError):
    """Caller-supplied discovery deadline passed mid-resolution.

    Raised inside the engine to abandon the remaining traversal. The engine
    catches it and returns the partial result instead of propagating.
    """
