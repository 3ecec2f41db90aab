"""Utility helpers for the refresh loops."""

from __future__ import annotations

import asyncio
from concurrent.futures import Executor
from typing import Callable, Optional, TypeVar

T = TypeVar("T")


async def sleep_or_cancel(cancel: asyncio.Event, seconds: float) -> bool:
    """
    Sleep up to `seconds`, waking early if `cancel` is set.

    Returns True when the caller should stop.
    """
    if cancel.is_set():
        return True
    try:
        await asyncio.wait_for(cancel.wait(), timeout=max(0.0, seconds))
    except asyncio.TimeoutError:
        return False
    return True


async def run_blocking(fn: Callable[..., T], *args, executor: Optional[Executor] = None) -> T:
    """Run a blocking call on `executor` (the loop's default pool when None)."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, fn, *args)
