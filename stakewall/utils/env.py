from __future__ import annotations

import os
from typing import Optional

from dotenv import load_dotenv

# Load .env once on import so operators can keep deployment settings next to the binary.
load_dotenv()

ENV_PREFIX = "STAKEWALL_"


def _env_str(name: str, default: str = "") -> str:
    """Read a `STAKEWALL_<name>` string env var, stripping whitespace."""
    return (os.getenv(f"{ENV_PREFIX}{name}", default) or "").strip()


def _env_opt_str(name: str) -> Optional[str]:
    """Like `_env_str`, but an unset or blank variable reads as None."""
    return _env_str(name, "") or None


def _env_bool(name: str, default: bool = False) -> bool:
    """Read a boolean env var with common truthy values."""
    raw = _env_str(name, str(default)).lower()
    return raw in {"y", "yes", "t", "true", "on", "1"}


def _env_int(name: str, default: int = 0) -> int:
    v = _env_str(name, str(default))
    try:
        return int(v)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name}={v!r} is not an integer") from None


def _env_float(name: str, default: float = 0.0) -> float:
    v = _env_str(name, str(default))
    try:
        return float(v)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name}={v!r} is not a number") from None
