"""Membership refresh loop: peer table -> MembershipSnapshot."""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor
from typing import Iterable, List, Optional

import bittensor as bt

from stakewall.core.endpoints import EndpointRecord, MissingEndpointError
from stakewall.gossip.client import MembershipSource
from stakewall.gossip.schemas import ContactInfo
from stakewall.state.snapshot import MembershipSnapshot, SnapshotCell
from stakewall.utils.misc import run_blocking, sleep_or_cancel

DEFAULT_GOSSIP_REFRESH_S = 2.0


def build_membership_snapshot(peers: Iterable[ContactInfo]) -> MembershipSnapshot:
    """
    Normalize raw peers into endpoint records.

    Peers missing a required endpoint are dropped; duplicates by identity keep
    the last one seen.
    """
    records: List[EndpointRecord] = []
    dropped = 0
    for peer in peers:
        try:
            records.append(EndpointRecord.from_contact_info(peer))
        except MissingEndpointError as e:
            dropped += 1
            bt.logging.debug(f"Dropping peer: {e}")
    snapshot = MembershipSnapshot.from_records(records)
    if dropped:
        bt.logging.debug(f"Dropped {dropped} peers with incomplete contact info")
    return snapshot


async def watch_gossip(
    source: MembershipSource,
    cell: SnapshotCell[MembershipSnapshot],
    *,
    cancel: asyncio.Event,
    interval_s: float = DEFAULT_GOSSIP_REFRESH_S,
    executor: Optional[Executor] = None,
) -> None:
    """
    Republish the gossip table every `interval_s` until `cancel` is set.

    A failed listing skips the cycle (the cell goes stale and health reports it);
    a failed publish ends the loop with the error.
    """
    while not cancel.is_set():
        try:
            peers = await run_blocking(source.all_peers, executor=executor)
        except Exception as e:
            bt.logging.error(f"Failed to list gossip peers: {e}")
        else:
            snapshot = build_membership_snapshot(peers)
            bt.logging.info(f"Gossip table has {len(snapshot)} entries")
            cell.publish(snapshot)
        if await sleep_or_cancel(cancel, interval_s):
            break
    bt.logging.info("Gossip watcher stopped")
