"""
Process entry point: wires the feeds, the query engine and the HTTP front end
under one fail-fast supervisor.
"""

from __future__ import annotations

import asyncio
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

import bittensor as bt

from stakewall.api.allowlist import AllowlistEngine
from stakewall.api.app import create_app, serve_http
from stakewall.config import ServerConfig, load_server_config
from stakewall.core.net import resolve_socket_addr
from stakewall.gossip.client import ClusterNodesClient, get_shred_version
from stakewall.gossip.refresh import watch_gossip
from stakewall.rpc.jsonrpc import JsonRpcClient
from stakewall.stake.ledger import StakeLedgerClient
from stakewall.stake.refresh import stakes_refresh_loop
from stakewall.state.snapshot import MembershipSnapshot, SnapshotCell, StakeSnapshot
from stakewall.supervisor import INTERRUPT, run_until_first_exit, wait_for_interrupt
from stakewall.utils.misc import run_blocking

# Worker threads for the blocking RPC collaborators.
RPC_WORKERS = 4


def setup_logging(verbose: bool) -> None:
    if verbose:
        bt.logging.set_debug(True)
    else:
        bt.logging.set_info(True)


async def run(cfg: ServerConfig) -> int:
    if cfg.discovery_timeout_sec:
        bt.logging.debug(f"discovery_timeout_sec={cfg.discovery_timeout_sec} is accepted but not used")

    # asyncio.run() joins the default executor on exit; this pool is left to drain on its own.
    executor = ThreadPoolExecutor(max_workers=RPC_WORKERS, thread_name_prefix="stakewall-rpc")
    try:
        return await _serve(cfg, executor)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


async def _serve(cfg: ServerConfig, executor: ThreadPoolExecutor) -> int:
    rpc = JsonRpcClient(cfg.rpc_url)
    shred_version = cfg.shred_version
    if shred_version is None:
        entrypoint = await run_blocking(resolve_socket_addr, cfg.known_gossip_peer, executor=executor)
        shred_version = await run_blocking(get_shred_version, rpc, entrypoint, executor=executor)

    spy_host, spy_port = cfg.gossip_spy_bind_address
    bt.logging.info(
        f"Watching gossip via {cfg.rpc_url} (entrypoint {cfg.known_gossip_peer}, "
        f"spy {spy_host}:{spy_port}, shred version {shred_version})"
    )

    cancel = asyncio.Event()
    gossip_cell: SnapshotCell[MembershipSnapshot] = SnapshotCell(MembershipSnapshot())
    stake_cell: SnapshotCell[StakeSnapshot] = SnapshotCell(StakeSnapshot())

    membership = ClusterNodesClient(rpc, shred_version=shred_version)
    # The ledger accepts an API key, but no startup flag supplies one.
    ledger = StakeLedgerClient(cfg.rpc_url, None)
    app = create_app(AllowlistEngine(gossip_cell, stake_cell), health_max_age_s=cfg.health_max_age_s)
    api_host, api_port = cfg.api_bind_address

    report = await run_until_first_exit(
        {
            INTERRUPT: wait_for_interrupt(),
            "stake_refresh": stakes_refresh_loop(
                ledger, stake_cell, cancel=cancel, interval_s=cfg.stake_refresh_s, executor=executor
            ),
            "gossip_watch": watch_gossip(
                membership, gossip_cell, cancel=cancel, interval_s=cfg.gossip_refresh_s, executor=executor
            ),
            "http_server": serve_http(app, api_host, api_port),
        },
        cancel,
    )
    gossip_cell.close()
    stake_cell.close()
    return 0 if report.interrupted else 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    cfg = load_server_config(argv)
    setup_logging(cfg.verbose)
    return asyncio.run(run(cfg))


if __name__ == "__main__":
    raise SystemExit(main())
