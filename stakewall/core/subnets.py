from __future__ import annotations

from ipaddress import IPv4Address
from typing import Iterable, List

_MASK_24 = 0xFFFFFF00


def network_24(ip: IPv4Address) -> IPv4Address:
    """Zero the host byte, giving the address of the containing /24."""
    return IPv4Address(int(ip) & _MASK_24)


def aggregate_into_24s(addrs: Iterable[IPv4Address]) -> List[IPv4Address]:
    """
    Collapse IPv4 addresses into the distinct /24 networks containing them.

    Output is ascending and duplicate-free, so hosts sharing a block appear once.
    """
    return sorted({network_24(ip) for ip in addrs})
