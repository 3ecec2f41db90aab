"""
Fail-fast supervision of the long-running components.

Every component runs as its own task. Whichever finishes first, by returning
or raising, ends the process: the shutdown event is set, the rest are
cancelled, and the caller gets an ExitReport naming the finisher.
"""

from __future__ import annotations

import asyncio
import signal
from dataclasses import dataclass
from typing import Awaitable, Mapping, Optional

import bittensor as bt

INTERRUPT = "interrupt"


@dataclass(frozen=True)
class ExitReport:
    name: str
    error: Optional[BaseException] = None

    @property
    def interrupted(self) -> bool:
        return self.name == INTERRUPT and self.error is None


async def wait_for_interrupt(signals=(signal.SIGINT, signal.SIGTERM)) -> None:
    """Complete when the operator sends one of `signals`."""
    loop = asyncio.get_running_loop()
    received = asyncio.Event()
    installed = []
    for sig in signals:
        try:
            loop.add_signal_handler(sig, received.set)
        except (NotImplementedError, RuntimeError):
            # Not on the main thread, or a platform without loop signal handlers.
            continue
        installed.append(sig)
    try:
        await received.wait()
        bt.logging.warning("Received interrupt, exiting")
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


async def run_until_first_exit(
    components: Mapping[str, Awaitable[object]],
    cancel: asyncio.Event,
) -> ExitReport:
    if not components:
        raise ValueError("nothing to supervise")

    tasks = {asyncio.ensure_future(aw): name for name, aw in components.items()}
    try:
        done, pending = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
    finally:
        cancel.set()

    # Several may finish in the same tick; report the first in registration order.
    first = next(t for t in tasks if t in done)
    name = tasks[first]
    error = None if first.cancelled() else first.exception()
    if error is not None:
        bt.logging.error(f"{name} failed: {error!r}")
    elif name != INTERRUPT:
        bt.logging.error(f"{name} exited unexpectedly")

    leftovers = list(pending)
    for task in leftovers:
        task.cancel()
    results = await asyncio.gather(*leftovers, return_exceptions=True)
    for task, result in zip(leftovers, results):
        if isinstance(result, Exception):
            bt.logging.debug(f"{tasks[task]} raised during shutdown: {result!r}")

    return ExitReport(name=name, error=error)
