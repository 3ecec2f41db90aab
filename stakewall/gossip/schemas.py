from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# Base58 encoding of a 32-byte ed25519 public key.
PUBKEY_PATTERN = r"^[1-9A-HJ-NP-Za-km-z]{32,44}$"


class ContactInfo(BaseModel):
    """
    Raw peer record as reported by the membership service.

    Field names follow the `getClusterNodes` RPC shape; every socket is an
    `ip:port` string, or null when the peer does not advertise it.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    pubkey: str = Field(pattern=PUBKEY_PATTERN)
    gossip: Optional[str] = None
    tvu: Optional[str] = None
    serve_repair: Optional[str] = Field(default=None, alias="serveRepair")
    tpu: Optional[str] = None
    tpu_quic: Optional[str] = Field(default=None, alias="tpuQuic")
    tpu_forwards: Optional[str] = Field(default=None, alias="tpuForwards")
    tpu_forwards_quic: Optional[str] = Field(default=None, alias="tpuForwardsQuic")
    tpu_vote: Optional[str] = Field(default=None, alias="tpuVote")
    tpu_vote_quic: Optional[str] = Field(default=None, alias="tpuVoteQuic")
    alpenglow: Optional[str] = None
    rpc: Optional[str] = None
    pubsub: Optional[str] = None

    version: Optional[str] = None
    shred_version: Optional[int] = Field(default=None, alias="shredVersion")
    feature_set: Optional[int] = Field(default=None, alias="featureSet")
