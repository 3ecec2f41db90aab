import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List

import pytest

from stakewall.api.allowlist import AllowlistEngine
from stakewall.gossip.refresh import build_membership_snapshot
from stakewall.rpc.jsonrpc import RpcError
from stakewall.stake.ledger import StakeLedgerClient, build_stake_snapshot
from stakewall.stake.refresh import refresh_stakes_once, stakes_refresh_loop
from stakewall.stake.schemas import VoteAccountsResult
from stakewall.state.snapshot import MembershipSnapshot, SnapshotCell, SnapshotClosedError, StakeSnapshot

from conftest import FakeResponse, pubkey


def _account(vote: str, node: str, stake: int) -> Dict[str, Any]:
    return {"votePubkey": pubkey(vote), "nodePubkey": pubkey(node), "activatedStake": stake, "commission": 5}


VOTE_ACCOUNTS = {
    "current": [_account("V1", "A", 5_000_000_000), _account("V2", "A", 1), _account("V3", "B", 10)],
    "delinquent": [_account("V4", "C", 42)],
}


class FlakyLedger:
    def __init__(self, results):
        self._results = list(results)

    def fetch_stakes(self) -> StakeSnapshot:
        item = self._results.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


def test_build_stake_snapshot_sums_vote_accounts_per_identity():
    snap = build_stake_snapshot(VoteAccountsResult.model_validate(VOTE_ACCOUNTS))
    assert snap.stake_of(pubkey("A")) == 5_000_000_001
    assert snap.stake_of(pubkey("B")) == 10
    # Delinquent vote accounts do not count.
    assert snap.stake_of(pubkey("C")) == 0
    assert pubkey("C") not in snap.stakes


def test_ledger_client_posts_get_vote_accounts_with_api_key(monkeypatch):
    calls: List[Dict[str, Any]] = []

    def fake_post(url, *, json, headers, timeout):  # noqa: A002 - match requests API
        calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        return FakeResponse({"jsonrpc": "2.0", "id": json["id"], "result": VOTE_ACCOUNTS})

    import stakewall.rpc.jsonrpc as mod

    monkeypatch.setattr(mod.requests, "post", fake_post)

    snap = StakeLedgerClient("http://rpc", "secret", timeout_s=3.0).fetch_stakes()
    assert snap.stake_of(pubkey("A")) == 5_000_000_001
    assert snap.stake_of(pubkey("C")) == 0

    assert len(calls) == 1
    assert calls[0]["url"] == "http://rpc"
    assert calls[0]["json"]["method"] == "getVoteAccounts"
    assert calls[0]["json"]["jsonrpc"] == "2.0"
    assert "params" not in calls[0]["json"]
    assert calls[0]["headers"] == {"X-Api-Key": "secret"}
    assert calls[0]["timeout"] == 3.0


def test_delinquent_only_validator_is_listed_as_unstaked(make_contact):
    gossip_cell = SnapshotCell(MembershipSnapshot())
    stake_cell = SnapshotCell(StakeSnapshot())
    gossip_cell.publish(build_membership_snapshot([make_contact("A"), make_contact("C", base="7.7.7")]))
    stake_cell.publish(build_stake_snapshot(VoteAccountsResult.model_validate(VOTE_ACCOUNTS)))

    engine = AllowlistEngine(gossip_cell, stake_cell)
    out = engine.short(stake_threshold_sol=0)
    assert out.staked == ["1.2.3.0"]
    assert out.unstaked == ["7.7.7.0"]
    stakes = {entry.pubkey: entry.stake for entry in engine.full()}
    assert stakes == {pubkey("A"): 5_000_000_001, pubkey("C"): 0}


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse({"error": "overloaded"}, status_code=503),
        FakeResponse({"jsonrpc": "2.0", "id": 1, "error": {"code": -32005, "message": "busy"}}),
        FakeResponse(["not", "an", "object"]),
    ],
)
def test_ledger_client_surfaces_rpc_failures(monkeypatch, response):
    import stakewall.rpc.jsonrpc as mod

    monkeypatch.setattr(mod.requests, "post", lambda *a, **kw: response)
    with pytest.raises(RpcError):
        StakeLedgerClient("http://rpc").fetch_stakes()


def test_failed_refresh_keeps_previous_snapshot():
    cell = SnapshotCell(StakeSnapshot())
    good = StakeSnapshot.from_amounts([(pubkey("A"), 9)])
    ledger = FlakyLedger([good, RpcError("boom")])

    async def scenario():
        first = await refresh_stakes_once(ledger, cell)
        second = await refresh_stakes_once(ledger, cell)
        return first, second

    first, second = asyncio.run(scenario())
    assert first is not None
    assert second is None
    assert cell.latest() is first
    assert cell.latest().captured_at == first.captured_at
    assert cell.latest().value.stake_of(pubkey("A")) == 9


def test_stake_loop_survives_failures_and_stops_on_cancel():
    cell = SnapshotCell(StakeSnapshot())
    ledger = FlakyLedger(
        [ValueError("bad payload"), StakeSnapshot.from_amounts([(pubkey("A"), 1)])]
        + [StakeSnapshot()] * 1000
    )

    async def scenario():
        cancel = asyncio.Event()
        task = asyncio.ensure_future(stakes_refresh_loop(ledger, cell, cancel=cancel, interval_s=0.01))
        for _ in range(500):
            if cell.latest().sequence >= 1:
                break
            await asyncio.sleep(0.01)
        cancel.set()
        await asyncio.wait_for(task, timeout=2.0)

    asyncio.run(scenario())
    assert cell.latest().sequence >= 1


def test_stake_publish_failure_propagates():
    cell = SnapshotCell(StakeSnapshot())
    cell.close()
    ledger = FlakyLedger([StakeSnapshot()])
    with pytest.raises(SnapshotClosedError):
        asyncio.run(refresh_stakes_once(ledger, cell))


def test_refresh_runs_fetch_on_given_executor():
    seen = []

    class RecordingLedger:
        def fetch_stakes(self) -> StakeSnapshot:
            seen.append(threading.current_thread().name)
            return StakeSnapshot()

    cell = SnapshotCell(StakeSnapshot())
    with ThreadPoolExecutor(max_workers=1, thread_name_prefix="stake-fetch") as executor:
        assert asyncio.run(refresh_stakes_once(RecordingLedger(), cell, executor)) is not None
    assert len(seen) == 1
    assert seen[0].startswith("stake-fetch")
