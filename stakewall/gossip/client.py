from __future__ import annotations

from typing import List, Optional, Protocol

import bittensor as bt
from pydantic import ValidationError

from stakewall.core.net import SocketAddr
from stakewall.gossip.schemas import ContactInfo
from stakewall.rpc.jsonrpc import JsonRpcClient


class MembershipSource(Protocol):
    """Anything that can hand over the current cluster peer table."""

    def all_peers(self) -> List[ContactInfo]:
        ...


def _parse_peers(result: object) -> List[ContactInfo]:
    if not isinstance(result, list):
        raise ValueError("getClusterNodes result is not a list")
    out: List[ContactInfo] = []
    for item in result:
        try:
            out.append(ContactInfo.model_validate(item))
        except ValidationError as e:
            bt.logging.debug(f"Skipping unreadable contact info: {e}")
    return out


class ClusterNodesClient:
    """
    Membership source backed by an RPC node's view of gossip (`getClusterNodes`).

    Only peers on `shred_version` are returned, mirroring what a gossip spy
    joined with that shred version would see. Blocking; call from a worker thread.
    """

    def __init__(self, rpc: JsonRpcClient, *, shred_version: Optional[int] = None) -> None:
        self.rpc = rpc
        self.shred_version = shred_version

    def all_peers(self) -> List[ContactInfo]:
        peers = _parse_peers(self.rpc.call("getClusterNodes"))
        if self.shred_version is None:
            return peers
        return [p for p in peers if p.shred_version == self.shred_version]


def get_shred_version(rpc: JsonRpcClient, entrypoint: SocketAddr) -> int:
    """
    Look up the cluster's shred version as advertised by the entrypoint node.

    Raises LookupError if the entrypoint is not in the peer table or does not
    advertise a shred version.
    """
    for peer in _parse_peers(rpc.call("getClusterNodes")):
        if not peer.gossip:
            continue
        try:
            gossip = SocketAddr.parse(peer.gossip)
        except ValueError:
            continue
        if gossip == entrypoint and peer.shred_version is not None:
            bt.logging.info(f"Cluster's shred version is {peer.shred_version}")
            return peer.shred_version
    raise LookupError(f"entrypoint {entrypoint} does not advertise a shred version")
