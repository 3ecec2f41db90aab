"""
Per-identity endpoint records built from raw peer contact info.
"""

from __future__ import annotations

from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import List, Optional, Tuple

from stakewall.core.net import SocketAddr, ipv4_only
from stakewall.gossip.schemas import ContactInfo

REQUIRED_ROLES: Tuple[str, ...] = ("gossip", "serve_repair", "turbine")
OPTIONAL_ROLES: Tuple[str, ...] = (
    "tpu_forwards_quic",
    "tpu_quic",
    "tpu_vote",
    "tpu_vote_quic",
    "alpenglow",
)
ROLES: Tuple[str, ...] = REQUIRED_ROLES + OPTIONAL_ROLES

# Where each role lives on the raw contact info (turbine is advertised as TVU).
_CONTACT_FIELDS = {
    "gossip": "gossip",
    "serve_repair": "serve_repair",
    "turbine": "tvu",
    "tpu_forwards_quic": "tpu_forwards_quic",
    "tpu_quic": "tpu_quic",
    "tpu_vote": "tpu_vote",
    "tpu_vote_quic": "tpu_vote_quic",
    "alpenglow": "alpenglow",
}


class MissingEndpointError(ValueError):
    """A peer did not advertise one of the endpoints every record needs."""

    def __init__(self, identity: str, role: str):
        super().__init__(f"{identity}: {role} endpoint is required")
        self.identity = identity
        self.role = role


def _socket_or_none(raw: Optional[str]) -> Optional[SocketAddr]:
    if not raw:
        return None
    try:
        return SocketAddr.parse(raw)
    except ValueError:
        return None


@dataclass(frozen=True)
class EndpointRecord:
    identity: str
    gossip: SocketAddr
    serve_repair: SocketAddr
    turbine: SocketAddr
    tpu_forwards_quic: Optional[SocketAddr] = None
    tpu_quic: Optional[SocketAddr] = None
    tpu_vote: Optional[SocketAddr] = None
    tpu_vote_quic: Optional[SocketAddr] = None
    alpenglow: Optional[SocketAddr] = None

    @classmethod
    def from_contact_info(cls, info: ContactInfo) -> "EndpointRecord":
        """
        Normalize a raw peer record.

        Raises MissingEndpointError when gossip, serve-repair or TVU is absent
        or unparseable. Optional sockets that fail to parse are treated as absent.
        """
        sockets = {}
        for role in ROLES:
            addr = _socket_or_none(getattr(info, _CONTACT_FIELDS[role]))
            if addr is None and role in REQUIRED_ROLES:
                raise MissingEndpointError(info.pubkey, role)
            sockets[role] = addr
        return cls(identity=info.pubkey, **sockets)

    def endpoints(self) -> List[Tuple[str, Optional[SocketAddr]]]:
        """Every role paired with its socket (None when not advertised), in fixed order."""
        return [(role, getattr(self, role)) for role in ROLES]

    def present_endpoints(self) -> List[Tuple[str, SocketAddr]]:
        return [(role, addr) for role, addr in self.endpoints() if addr is not None]

    def all_ips(self) -> List[IPv4Address]:
        """IPv4 addresses of all advertised endpoints; IPv6 sockets are skipped."""
        return ipv4_only(addr for _, addr in self.present_endpoints())
