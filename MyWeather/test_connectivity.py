"""Tests for the connectivity check."""
import socket
from unittest.mock import patch
import connectivity
from connectivity import is_network_available


def test_network_available_with_routable_address():
    with patch('connectivity._local_address_for', return_value="192.168.1.20"):
        assert is_network_available() is True


def test_loopback_only_is_not_available():
    with patch('connectivity._local_address_for', return_value="127.0.0.1"):
        assert is_network_available() is False


def test_unspecified_address_is_not_available():
    with patch('connectivity._local_address_for', return_value="0.0.0.0"):
        assert is_network_available() is False


def test_no_route_is_not_available():
    with patch('connectivity._local_address_for', side_effect=OSError("Network is unreachable")):
        assert is_network_available() is False


def test_ipv6_fallback():
    """IPv4 without a route, IPv6 with one."""
    def fake_local_address(family, host, port=53):
        if family == socket.AF_INET:
            raise OSError("Network is unreachable")
        return "2001:db8::5%eth0"

    with patch('connectivity._local_address_for', side_effect=fake_local_address):
        assert is_network_available() is True


def test_probes_every_family_until_success():
    calls = []

    def fake_local_address(family, host, port=53):
        calls.append(host)
        raise OSError("down")

    with patch('connectivity._local_address_for', side_effect=fake_local_address):
        is_network_available()

    assert calls == [host for _, host in connectivity.DEFAULT_PROBES]
