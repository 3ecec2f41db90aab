"""
Socket address handling shared by the gossip and allowlist layers.
"""

from __future__ import annotations

import ipaddress
import socket
from dataclasses import dataclass
from typing import Iterable, List, Tuple, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


@dataclass(frozen=True)
class SocketAddr:
    """An IP address plus port, as advertised in the cluster's contact info."""

    ip: IPAddress
    port: int

    @classmethod
    def parse(cls, raw: str) -> "SocketAddr":
        """
        Parse `"1.2.3.4:8001"` or `"[2001:db8::1]:8001"`.

        Raises ValueError for anything else, including hostnames.
        """
        raw = (raw or "").strip()
        if raw.startswith("["):
            host, sep, port = raw[1:].partition("]:")
        else:
            host, sep, port = raw.rpartition(":")
        if not sep or not host:
            raise ValueError(f"not an ip:port socket address: {raw!r}")
        try:
            port_num = int(port)
        except ValueError:
            raise ValueError(f"invalid port in {raw!r}") from None
        if not 0 <= port_num <= 0xFFFF:
            raise ValueError(f"port out of range in {raw!r}")
        return cls(ip=ipaddress.ip_address(host), port=port_num)

    @property
    def is_ipv4(self) -> bool:
        return self.ip.version == 4

    def __str__(self) -> str:
        if self.ip.version == 6:
            return f"[{self.ip}]:{self.port}"
        return f"{self.ip}:{self.port}"


def parse_host_port(raw: str) -> Tuple[str, int]:
    """Split `host:port` without resolving the host."""
    raw = (raw or "").strip()
    if raw.startswith("["):
        host, sep, port = raw[1:].partition("]:")
    else:
        host, sep, port = raw.rpartition(":")
    if not sep or not host:
        raise ValueError(f"expected host:port, got {raw!r}")
    port_num = int(port)
    if not 0 < port_num <= 0xFFFF:
        raise ValueError(f"port out of range in {raw!r}")
    return host, port_num


def resolve_socket_addr(raw: str) -> SocketAddr:
    """Resolve `host:port` (hostnames allowed) to a concrete SocketAddr."""
    host, port = parse_host_port(raw)
    try:
        return SocketAddr(ip=ipaddress.ip_address(host), port=port)
    except ValueError:
        pass
    infos = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)
    # Prefer IPv4: cluster entrypoints advertise IPv4 gossip addresses.
    infos.sort(key=lambda info: info[0] != socket.AF_INET)
    return SocketAddr(ip=ipaddress.ip_address(infos[0][4][0]), port=port)


def ipv4_only(addrs: Iterable[SocketAddr]) -> List[ipaddress.IPv4Address]:
    return [a.ip for a in addrs if a.is_ipv4]
