"""IPv4 range expansion."""

import ipaddress
from typing import Iterator, List, Tuple

from .exceptions import InvalidRange


def parse_range(ip_range: str) -> ipaddress.IPv4Network:
    """
    Parse a CIDR string such as "192.168.1.0/24".

    Host bits are masked off ("192.168.1.17/24" is the same network).
    A bare address without a prefix length is rejected.
    """
    text = (ip_range or "").strip()
    if "/" not in text:
        raise InvalidRange(ip_range, "expected CIDR notation a.b.c.d/n")

    try:
        network = ipaddress.ip_network(text, strict=False)
    except ValueError as e:
        raise InvalidRange(ip_range, str(e)) from e

    if not isinstance(network, ipaddress.IPv4Network):
        raise InvalidRange(ip_range, "only IPv4 ranges are supported")

    return network


def iter_hosts(ip_range: str) -> Tuple[int, Iterator[str]]:
    """
    Validate ip_range and return (host count, lazy ascending host iterator).

    Network and broadcast addresses are excluded, except for /31
    (point-to-point, both addresses usable) and /32 (the single host).
    Addresses are produced on demand, so a /8 costs no memory up front.

    Raises:
        InvalidRange: immediately, not on first iteration
    """
    network = parse_range(ip_range)

    if network.prefixlen >= 31:
        count = network.num_addresses
        addresses = iter(network)
    else:
        count = network.num_addresses - 2
        addresses = network.hosts()

    if count < 1:
        raise InvalidRange(ip_range, "range contains no usable host")
    return count, (str(ip) for ip in addresses)


def expand_range(ip_range: str) -> List[str]:
    """Return the usable host addresses of ip_range in ascending order."""
    _, hosts = iter_hosts(ip_range)
    return list(hosts)
