"""Discovery output models: resolved URLs, issues and the result multimap."""

import ipaddress
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from kube_discovery.exceptions import MalformedURLError
from kube_discovery.models.cluster import ExposureType


def is_ipv6(host: str) -> bool:
    try:
        return ipaddress.ip_address(host).version == 6
    except ValueError:
        return False


class ResolvedURL(BaseModel):
    """A concrete endpoint a client can connect to.

    Value type: equality and hashing are by field contents. The path is
    always empty.
    """

    model_config = ConfigDict(frozen=True)

    protocol: str = Field(..., description="Application protocol, e.g. http")
    host: str = Field(..., description="IP address or DNS name")
    port: Optional[int] = Field(None, ge=1, le=65535, description="Port, omitted for default")
    path: str = ""

    @field_validator("protocol", "host")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject empty values and embedded whitespace or slashes"""
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        if any(ch.isspace() for ch in v) or "/" in v:
            raise ValueError(f"invalid characters in {v!r}")
        return v

    @field_validator("protocol")
    @classmethod
    def validate_protocol(cls, v: str) -> str:
        if ":" in v:
            raise ValueError(f"protocol {v!r} must not contain ':'")
        return v

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Only IPv6 literals may contain colons; ports go in the port field"""
        if ":" in v and not is_ipv6(v):
            raise ValueError(f"host {v!r} contains ':' but is not an IPv6 address")
        return v

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        if v:
            raise ValueError("discovered URLs carry no path")
        return v

    @classmethod
    def build(cls, protocol: Optional[str], host: Optional[str], port: Optional[int] = None) -> "ResolvedURL":
        """Build a URL, translating validation failures to MalformedURLError.

        Raises:
            MalformedURLError: If protocol or host is missing or invalid, or the
                port is out of range
        """
        if not protocol or not host:
            raise MalformedURLError(f"Missing protocol or host: protocol={protocol!r}, host={host!r}")
        try:
            return cls(protocol=protocol, host=host, port=port)
        except ValidationError as e:
            raise MalformedURLError(
                f"Invalid URL parts protocol={protocol!r} host={host!r} port={port!r}: "
                f"{e.errors()[0]['msg']}"
            ) from e

    def __str__(self) -> str:
        host = f"[{self.host}]" if is_ipv6(self.host) else self.host
        if self.port is None:
            return f"{self.protocol}://{host}{self.path}"
        return f"{self.protocol}://{host}:{self.port}{self.path}"


class IssueKind(str, Enum):
    """Why a service or port produced no URL."""

    NOT_FOUND = "not_found"
    AMBIGUOUS = "ambiguous"
    MALFORMED = "malformed"


class DiscoveryIssue(BaseModel):
    """A per-service condition that excluded an entry from the result."""

    model_config = ConfigDict(frozen=True)

    service_name: str
    namespace: Optional[str] = None
    kind: IssueKind
    detail: str = ""


class DiscoveryResult(Mapping):
    """Immutable multimap from service name to resolved URLs.

    A service name maps to every URL emitted for it, in emission order.
    Duplicates are kept. Services that produced nothing are absent.

    Attributes:
        mode: Exposure type the result was resolved for
        complete: False when a deadline stopped resolution early
        issues: Entries excluded from the result, with the reason
    """

    def __init__(
        self,
        urls: Dict[str, Iterable[ResolvedURL]],
        mode: ExposureType,
        complete: bool = True,
        issues: Iterable[DiscoveryIssue] = (),
    ):
        self._urls: Mapping[str, Tuple[ResolvedURL, ...]] = MappingProxyType(
            {name: tuple(values) for name, values in urls.items()}
        )
        self.mode = mode
        self.complete = complete
        self.issues: Tuple[DiscoveryIssue, ...] = tuple(issues)

    def __getitem__(self, service_name: str) -> Tuple[ResolvedURL, ...]:
        return self._urls[service_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    def __len__(self) -> int:
        return len(self._urls)

    def __repr__(self) -> str:
        return (
            f"DiscoveryResult(mode={self.mode.value}, complete={self.complete}, "
            f"urls={self.as_strings()}, issues={len(self.issues)})"
        )

    def urls(self) -> List[ResolvedURL]:
        """All URLs, flattened in emission order."""
        return [url for values in self._urls.values() for url in values]

    def as_strings(self) -> Dict[str, List[str]]:
        """Render the result as plain URL strings.

        Example:
            >>> result.as_strings()
            {'db': ['http://10.0.0.5:80']}
        """
        return {name: [str(url) for url in values] for name, values in self._urls.items()}
