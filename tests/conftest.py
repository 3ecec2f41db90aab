import sys
from pathlib import Path

import pytest

# Ensure repo root is on sys.path so `import stakewall` works under all pytest import modes.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from stakewall.gossip.schemas import ContactInfo  # noqa: E402


def pubkey(tag: str) -> str:
    """Deterministic base58-looking identity for fixtures."""
    return f"Node{tag}".ljust(43, "1")


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_contact():
    def _make(tag: str, base: str = "1.2.3", **overrides) -> ContactInfo:
        payload = {
            "pubkey": pubkey(tag),
            "gossip": f"{base}.4:8001",
            "serveRepair": f"{base}.5:8002",
            "tvu": f"{base}.6:8003",
        }
        payload.update(overrides)
        return ContactInfo.model_validate(payload)

    return _make


class FakeResponse:
    """Just enough of requests.Response for the JSON-RPC client."""

    def __init__(self, payload, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.ok = status_code < 400
        self.text = str(payload)

    def json(self):
        return self._payload
