"""
Tests for IPv4 range expansion.
"""

import pytest

from radar_ip.exceptions import InvalidRange
from radar_ip.ranges import expand_range, iter_hosts, parse_range


def test_expand_slash_24():
    """A /24 yields 254 hosts, network and broadcast excluded."""
    hosts = expand_range("192.168.1.0/24")
    assert len(hosts) == 254
    assert hosts[0] == "192.168.1.1"
    assert hosts[-1] == "192.168.1.254"
    assert "192.168.1.0" not in hosts
    assert "192.168.1.255" not in hosts


@pytest.mark.parametrize("prefix,count", [(16, 65534), (24, 254), (28, 14), (29, 6), (30, 2)])
def test_host_count_matches_prefix(prefix, count):
    assert len(expand_range(f"10.0.0.0/{prefix}")) == count


def test_ascending_order():
    hosts = expand_range("10.0.0.0/28")
    assert hosts == [f"10.0.0.{i}" for i in range(1, 15)]


def test_host_bits_are_masked():
    assert expand_range("192.168.1.77/30") == expand_range("192.168.1.76/30")
    assert expand_range("192.168.1.77/30") == ["192.168.1.77", "192.168.1.78"]


def test_slash_31_and_32():
    assert expand_range("10.0.0.4/31") == ["10.0.0.4", "10.0.0.5"]
    assert expand_range("10.0.0.9/32") == ["10.0.0.9"]


def test_surrounding_whitespace_ignored():
    assert len(expand_range("  10.1.2.0/29 ")) == 6


@pytest.mark.parametrize("bad", [
    "",
    "not-a-range",
    "192.168.1.0",          # no prefix
    "192.168.1.0/33",
    "300.1.1.0/24",
    "192.168.1.0/abc",
    "fe80::/64",            # IPv6
])
def test_invalid_ranges(bad):
    with pytest.raises(InvalidRange) as exc:
        expand_range(bad)
    assert exc.value.ip_range == bad
    assert "Invalid IP range" in str(exc.value)


def test_parse_range_returns_network():
    network = parse_range("172.16.5.9/16")
    assert str(network) == "172.16.0.0/16"


def test_iter_hosts_is_lazy_on_large_ranges():
    count, hosts = iter_hosts("10.0.0.0/8")
    assert count == 2 ** 24 - 2
    assert next(hosts) == "10.0.0.1"
    assert next(hosts) == "10.0.0.2"


@pytest.mark.parametrize("ip_range,count", [("10.0.0.0/30", 2), ("10.0.0.0/31", 2), ("10.0.0.7/32", 1)])
def test_iter_hosts_count_matches_expansion(ip_range, count):
    n, hosts = iter_hosts(ip_range)
    assert n == count == len(list(hosts))


def test_iter_hosts_rejects_before_iteration():
    with pytest.raises(InvalidRange):
        iter_hosts("10.0.0.0/33")
