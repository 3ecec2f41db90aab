from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class Descriptor(BaseModel):
    protocol: Literal["QUIC", "UDP"]
    # "ip:port", IPv6 in brackets.
    address: str
    # Nominal bandwidth ceiling for rate limiters, not a measurement.
    max_mbps: int
    staked_only: bool


class AllowlistEntry(BaseModel):
    pubkey: str
    stake: int
    gossip: Descriptor
    serve_repair: Descriptor
    tpu_forwards_quic: Optional[Descriptor] = None
    tpu_quic: Optional[Descriptor] = None
    tpu_vote: Optional[Descriptor] = None
    tpu_vote_quic: Optional[Descriptor] = None
    turbine: Descriptor
    alpenglow: Optional[Descriptor] = None


class ShortAllowlist(BaseModel):
    # /24 network addresses, ascending.
    staked: List[str] = Field(default_factory=list)
    unstaked: List[str] = Field(default_factory=list)
