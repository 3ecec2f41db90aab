from __future__ import annotations

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from stakewall.gossip.schemas import PUBKEY_PATTERN


class VoteAccount(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    vote_pubkey: str = Field(alias="votePubkey")
    # Validator identity that owns the vote account; the join key against gossip.
    node_pubkey: str = Field(alias="nodePubkey", pattern=PUBKEY_PATTERN)
    activated_stake: int = Field(alias="activatedStake", ge=0)


class VoteAccountsResult(BaseModel):
    model_config = ConfigDict(extra="ignore")

    current: List[VoteAccount] = Field(default_factory=list)
    delinquent: List[VoteAccount] = Field(default_factory=list)
