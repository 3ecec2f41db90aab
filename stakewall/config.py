from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from stakewall.api.health import DEFAULT_HEALTH_MAX_AGE_S
from stakewall.core.net import parse_host_port
from stakewall.gossip.refresh import DEFAULT_GOSSIP_REFRESH_S
from stakewall.stake.refresh import DEFAULT_STAKE_REFRESH_S
from stakewall.utils.env import _env_bool, _env_float, _env_int, _env_opt_str, _env_str


@dataclass(frozen=True)
class ServerConfig:
    known_gossip_peer: str
    rpc_url: str
    api_bind_address: Tuple[str, int]
    gossip_spy_bind_address: Tuple[str, int]
    # Accepted for compatibility with existing deployments; nothing reads it yet.
    discovery_timeout_sec: int
    gossip_refresh_s: float
    stake_refresh_s: float
    health_max_age_s: float
    shred_version: Optional[int]
    verbose: bool


def _die(msg: str) -> None:
    raise SystemExit(f"[stakewall] {msg}")


def build_parser() -> argparse.ArgumentParser:
    """Command-line flags; each one falls back to a STAKEWALL_* environment variable."""
    parser = argparse.ArgumentParser(
        prog="stakewall",
        description="HTTP server providing a stake-weighted allowlist of cluster validator endpoints.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=_env_bool("VERBOSE", False))
    parser.add_argument(
        "-k",
        "--known-gossip-peer",
        default=_env_str("KNOWN_GOSSIP_PEER"),
        help="Cluster entrypoint, host:port of its gossip socket.",
    )
    parser.add_argument("-r", "--rpc-url", default=_env_str("RPC_URL"), help="Cluster JSON-RPC URL.")
    parser.add_argument(
        "-a",
        "--api-bind-address",
        default=_env_str("API_BIND_ADDRESS", "0.0.0.0:8080"),
        help="host:port for the HTTP API.",
    )
    parser.add_argument(
        "-g",
        "--gossip-spy-bind-address",
        default=_env_str("GOSSIP_SPY_BIND_ADDRESS"),
        help="host:port the membership service binds for gossip.",
    )
    parser.add_argument(
        "-d",
        "--discovery-timeout-sec",
        type=int,
        default=_env_int("DISCOVERY_TIMEOUT_SEC", 300),
        help="Timeout for discovery of turbine and repair ports. Set to 0 to only work with gossip.",
    )
    parser.add_argument(
        "--gossip-refresh-s",
        type=float,
        default=_env_float("GOSSIP_REFRESH_S", DEFAULT_GOSSIP_REFRESH_S),
    )
    parser.add_argument(
        "--stake-refresh-s",
        type=float,
        default=_env_float("STAKE_REFRESH_S", DEFAULT_STAKE_REFRESH_S),
    )
    parser.add_argument(
        "--health-max-age-s",
        type=float,
        default=_env_float("HEALTH_MAX_AGE_S", DEFAULT_HEALTH_MAX_AGE_S),
        help="Gossip table age above which /v1/health fails.",
    )
    parser.add_argument(
        "--shred-version",
        type=int,
        default=_env_opt_str("SHRED_VERSION"),
        help="Skip discovery and use this shred version.",
    )
    return parser


def _host_port(flag: str, raw: str) -> Tuple[str, int]:
    try:
        return parse_host_port(raw)
    except ValueError as e:
        raise SystemExit(f"[stakewall] {flag}: {e}") from e


def load_server_config(argv: Optional[Sequence[str]] = None) -> ServerConfig:
    try:
        parser = build_parser()
    except ValueError as e:
        _die(f"Invalid environment: {e}")
    args = parser.parse_args(argv)

    if not args.known_gossip_peer:
        _die("Missing --known-gossip-peer (or STAKEWALL_KNOWN_GOSSIP_PEER).")
    if not args.rpc_url:
        _die("Missing --rpc-url (or STAKEWALL_RPC_URL).")
    if not args.rpc_url.startswith("http"):
        _die(f"--rpc-url must be http(s). Got: {args.rpc_url!r}")
    if not args.gossip_spy_bind_address:
        _die("Missing --gossip-spy-bind-address (or STAKEWALL_GOSSIP_SPY_BIND_ADDRESS).")

    _host_port("--known-gossip-peer", args.known_gossip_peer)
    api_bind = _host_port("--api-bind-address", args.api_bind_address)
    spy_bind = _host_port("--gossip-spy-bind-address", args.gossip_spy_bind_address)

    for flag, value in (
        ("--gossip-refresh-s", args.gossip_refresh_s),
        ("--stake-refresh-s", args.stake_refresh_s),
        ("--health-max-age-s", args.health_max_age_s),
    ):
        if value <= 0:
            _die(f"{flag} must be positive. Got: {value}")

    shred_version = None if args.shred_version is None else int(args.shred_version)

    return ServerConfig(
        known_gossip_peer=args.known_gossip_peer,
        rpc_url=args.rpc_url,
        api_bind_address=api_bind,
        gossip_spy_bind_address=spy_bind,
        discovery_timeout_sec=int(args.discovery_timeout_sec),
        gossip_refresh_s=float(args.gossip_refresh_s),
        stake_refresh_s=float(args.stake_refresh_s),
        health_max_age_s=float(args.health_max_age_s),
        shred_version=shred_version,
        verbose=bool(args.verbose),
    )
