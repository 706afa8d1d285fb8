"""Application protocol classification for service ports.

Kubernetes only records the transport protocol (TCP/UDP) of a port. The
application protocol is taken from the port name, and a port is discoverable
only when that name is one of the supported protocols.
"""

from typing import Optional

SUPPORTED_PROTOCOLS = frozenset({"http", "https", "ftp", "dns", "irc"})


def classify(port_name: Optional[str]) -> Optional[str]:
    """Map a port name to a supported protocol.

    Matching is case-sensitive.

    Args:
        port_name: Declared port name, may be None for unnamed ports

    Returns:
        The protocol, or None if the name is absent or unsupported

    Example:
        >>> classify("https")
        'https'
        >>> classify("metrics") is None
        True
    """
    if port_name in SUPPORTED_PROTOCOLS:
        return port_name
    return None


def is_supported(port_name: Optional[str]) -> bool:
    return classify(port_name) is not None
