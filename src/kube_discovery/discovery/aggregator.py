"""Call-scoped accumulation of discovered URLs."""

import logging
from typing import Dict, List

from kube_discovery.models import DiscoveryIssue, DiscoveryResult, ExposureType, ResolvedURL

logger = logging.getLogger(__name__)


class ResultAggregator:
    """Collects (service name, URL) pairs for one discovery call.

    A new aggregator is created for every call and never shared between
    calls. ``begin()`` clears any prior state, so an aggregator reused by
    mistake still cannot leak entries from an earlier call.
    """

    def __init__(self):
        self._urls: Dict[str, List[ResolvedURL]] = {}
        self._issues: List[DiscoveryIssue] = []

    def begin(self) -> None:
        """Clear all collected URLs and issues."""
        self._urls = {}
        self._issues = []

    def add(self, service_name: str, url: ResolvedURL) -> None:
        """Append a URL for a service. No deduplication is performed."""
        self._urls.setdefault(service_name, []).append(url)

    def report(self, issue: DiscoveryIssue) -> None:
        self._issues.append(issue)

    def __len__(self) -> int:
        return sum(len(urls) for urls in self._urls.values())

    def snapshot(self, mode: ExposureType, complete: bool = True) -> DiscoveryResult:
        """Return an immutable copy of the collected state.

        Later calls to ``add`` do not affect a snapshot already taken.
        """
        return DiscoveryResult(
            urls={name: list(urls) for name, urls in self._urls.items()},
            mode=mode,
            complete=complete,
            issues=list(self._issues),
        )
