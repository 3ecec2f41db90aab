from __future__ import annotations

from typing import Optional

from stakewall.rpc.jsonrpc import JsonRpcClient
from stakewall.stake.schemas import VoteAccountsResult
from stakewall.state.snapshot import StakeSnapshot

LAMPORTS_PER_SOL = 1_000_000_000


class StakeLedgerClient:
    """Reads activated stake per validator identity from a cluster RPC node."""

    def __init__(
        self,
        rpc_url: str,
        api_key: Optional[str] = None,
        *,
        timeout_s: float = 30.0,
    ) -> None:
        self.rpc = JsonRpcClient(rpc_url, api_key, timeout_s=timeout_s)

    def get_vote_accounts(self) -> VoteAccountsResult:
        """Current and delinquent vote accounts. Raises RpcError or ValidationError."""
        return VoteAccountsResult.model_validate(self.rpc.call("getVoteAccounts"))

    def fetch_stakes(self) -> StakeSnapshot:
        return build_stake_snapshot(self.get_vote_accounts())


def build_stake_snapshot(result: VoteAccountsResult) -> StakeSnapshot:
    """
    Total activated stake per node identity across its current vote accounts.

    Delinquent accounts are not counted; a validator that is only delinquent has no stake.
    """
    return StakeSnapshot.from_amounts(
        (acct.node_pubkey, acct.activated_stake) for acct in result.current
    )
