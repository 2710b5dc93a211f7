"""Connectivity check - is any non-loopback network transport up?"""
import ipaddress
import logging
import socket
from typing import Sequence, Tuple

# Public resolvers used only to ask the OS for a route; UDP connect sends nothing.
DEFAULT_PROBES: Sequence[Tuple[int, str]] = (
    (socket.AF_INET, "8.8.8.8"),
    (socket.AF_INET6, "2001:4860:4860::8888"),
)


def _local_address_for(family: int, host: str, port: int = 53) -> str:
    with socket.socket(family, socket.SOCK_DGRAM) as sock:
        sock.connect((host, port))
        return sock.getsockname()[0]


def is_network_available(probes: Sequence[Tuple[int, str]] = DEFAULT_PROBES) -> bool:
    """
    Report whether the host has a usable network transport.

    A transport is usable when the OS can pick a non-loopback, non-wildcard
    source address to reach a public host over IPv4 or IPv6.
    """
    for family, host in probes:
        try:
            local_ip = _local_address_for(family, host)
        except OSError as e:
            logging.debug(f"No route via {host}: {e}")
            continue
        address = ipaddress.ip_address(local_ip.split("%")[0])
        if not (address.is_loopback or address.is_unspecified):
            logging.debug(f"Network transport available (source address {local_ip})")
            return True
    logging.info("No active network transport")
    return False
