from __future__ import annotations

import asyncio
import contextlib
from typing import Optional

import bittensor as bt
import uvicorn
from fastapi import FastAPI, Query
from fastapi.responses import PlainTextResponse

from stakewall import __version__
from stakewall.api.allowlist import DEFAULT_STAKE_THRESHOLD_SOL, AllowlistEngine
from stakewall.api.health import DEFAULT_HEALTH_MAX_AGE_S, check_health
from stakewall.api.schemas import AllowlistEntry, ShortAllowlist

ROOT_TEXT = "This is a private server, get lost"


def create_app(engine: AllowlistEngine, *, health_max_age_s: float = DEFAULT_HEALTH_MAX_AGE_S) -> FastAPI:
    app = FastAPI(title="stakewall allowlist", version=__version__)
    app.state.engine = engine

    @app.get("/", response_class=PlainTextResponse)
    def root():
        return ROOT_TEXT

    @app.get("/v1/allowlist", response_model=list[AllowlistEntry])
    @app.get("/v1/allowlist/full", response_model=list[AllowlistEntry])
    def allowlist_full():
        return engine.full()

    @app.get("/v1/allowlist/short", response_model=ShortAllowlist)
    def allowlist_short(stake_threshold_sol: Optional[int] = Query(default=None, ge=0)):
        if stake_threshold_sol is None:
            stake_threshold_sol = DEFAULT_STAKE_THRESHOLD_SOL
        return engine.short(stake_threshold_sol)

    @app.get("/v1/health", response_class=PlainTextResponse)
    def health():
        report = check_health(engine.gossip_cell, engine.stake_cell, health_max_age_s)
        return PlainTextResponse(report.render(), status_code=200 if report.healthy else 500)

    return app


class _SupervisedServer(uvicorn.Server):
    """uvicorn server that leaves SIGINT/SIGTERM to the process supervisor."""

    def install_signal_handlers(self) -> None:  # uvicorn < 0.29
        pass

    @contextlib.contextmanager
    def capture_signals(self):
        yield


async def serve_http(app: FastAPI, host: str, port: int) -> None:
    """Serve until the task is cancelled; returning at all means the front end died."""
    config = uvicorn.Config(app, host=host, port=port, log_level="warning")
    server = _SupervisedServer(config)
    bt.logging.info(f"Listening on {host}:{port}")
    try:
        await server.serve()
    except asyncio.CancelledError:
        # Supervisor shutdown: release the listening socket before unwinding.
        if server.started:
            await server.shutdown()
        raise
    except SystemExit as e:
        # uvicorn exits the process when it cannot bind; report it to the supervisor instead.
        raise RuntimeError(f"HTTP server failed to start on {host}:{port}") from e
