"""
Allowlist query engine.

Joins the latest membership and stake snapshots on identity. Both cells are
read once per query and never awaited, so the two feeds may be skewed; a peer
unknown to the stake feed simply counts as unstaked.
"""

from __future__ import annotations

from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Dict, List

from stakewall.api.schemas import AllowlistEntry, Descriptor, ShortAllowlist
from stakewall.core.endpoints import EndpointRecord
from stakewall.core.net import SocketAddr
from stakewall.core.subnets import aggregate_into_24s
from stakewall.stake.ledger import LAMPORTS_PER_SOL
from stakewall.state.snapshot import MembershipSnapshot, SnapshotCell, StakeSnapshot

DEFAULT_STAKE_THRESHOLD_SOL = 1


@dataclass(frozen=True)
class TrafficClass:
    protocol: str
    max_mbps: int
    staked_only: bool

    def describe(self, address: SocketAddr) -> Descriptor:
        return Descriptor(
            protocol=self.protocol,
            address=str(address),
            max_mbps=self.max_mbps,
            staked_only=self.staked_only,
        )


QUIC = TrafficClass("QUIC", 100, False)
UDP_GOSSIP = TrafficClass("UDP", 50, False)
UDP_CONTROL = TrafficClass("UDP", 10, True)
UDP_BULK = TrafficClass("UDP", 200, True)

ROLE_POLICY: Dict[str, TrafficClass] = {
    "gossip": UDP_GOSSIP,
    "serve_repair": UDP_BULK,
    "turbine": UDP_BULK,
    "tpu_forwards_quic": QUIC,
    "tpu_quic": QUIC,
    "tpu_vote_quic": QUIC,
    "tpu_vote": UDP_CONTROL,
    "alpenglow": UDP_CONTROL,
}


def build_entry(record: EndpointRecord, stake: int) -> AllowlistEntry:
    descriptors = {
        role: ROLE_POLICY[role].describe(addr) for role, addr in record.present_endpoints()
    }
    return AllowlistEntry(pubkey=record.identity, stake=stake, **descriptors)


def full_allowlist(membership: MembershipSnapshot, stakes: StakeSnapshot) -> List[AllowlistEntry]:
    return [build_entry(record, stakes.stake_of(identity)) for identity, record in membership.peers.items()]


def short_allowlist(
    membership: MembershipSnapshot,
    stakes: StakeSnapshot,
    *,
    threshold_lamports: int,
) -> ShortAllowlist:
    """Split peer IPv4 addresses by stake (strictly above threshold = staked), as /24s."""
    staked: List[IPv4Address] = []
    unstaked: List[IPv4Address] = []
    for identity, record in membership.peers.items():
        if stakes.stake_of(identity) > threshold_lamports:
            staked.extend(record.all_ips())
        else:
            unstaked.extend(record.all_ips())
    return ShortAllowlist(
        staked=[str(net) for net in aggregate_into_24s(staked)],
        unstaked=[str(net) for net in aggregate_into_24s(unstaked)],
    )


class AllowlistEngine:
    def __init__(
        self,
        gossip_cell: SnapshotCell[MembershipSnapshot],
        stake_cell: SnapshotCell[StakeSnapshot],
    ) -> None:
        self.gossip_cell = gossip_cell
        self.stake_cell = stake_cell

    def full(self) -> List[AllowlistEntry]:
        return full_allowlist(self.gossip_cell.latest().value, self.stake_cell.latest().value)

    def short(self, stake_threshold_sol: int = DEFAULT_STAKE_THRESHOLD_SOL) -> ShortAllowlist:
        return short_allowlist(
            self.gossip_cell.latest().value,
            self.stake_cell.latest().value,
            threshold_lamports=int(stake_threshold_sol) * LAMPORTS_PER_SOL,
        )
