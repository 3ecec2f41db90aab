"""Stake refresh loop: vote accounts -> StakeSnapshot."""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor
from typing import Optional

import bittensor as bt

from stakewall.stake.ledger import StakeLedgerClient
from stakewall.state.snapshot import Snapshot, SnapshotCell, StakeSnapshot
from stakewall.utils.misc import run_blocking, sleep_or_cancel

DEFAULT_STAKE_REFRESH_S = 300.0


async def refresh_stakes_once(
    ledger: StakeLedgerClient,
    cell: SnapshotCell[StakeSnapshot],
    executor: Optional[Executor] = None,
) -> Optional[Snapshot[StakeSnapshot]]:
    """
    Fetch stakes and publish them.

    Returns the new Snapshot, or None when the fetch failed and the previous
    value was kept. Publish errors propagate.
    """
    try:
        stakes = await run_blocking(ledger.fetch_stakes, executor=executor)
    except Exception as e:
        bt.logging.error(f"Failed to fetch validator stakes: {e}")
        return None
    bt.logging.info(f"Stake map has {len(stakes)} validators")
    return cell.publish(stakes)


async def stakes_refresh_loop(
    ledger: StakeLedgerClient,
    cell: SnapshotCell[StakeSnapshot],
    *,
    cancel: asyncio.Event,
    interval_s: float = DEFAULT_STAKE_REFRESH_S,
    executor: Optional[Executor] = None,
) -> None:
    while not cancel.is_set():
        await refresh_stakes_once(ledger, cell, executor)
        if await sleep_or_cancel(cancel, interval_s):
            break
    bt.logging.info("Stake refresher stopped")
