from __future__ import annotations

from dataclasses import dataclass

from stakewall.state.snapshot import MembershipSnapshot, SnapshotCell, StakeSnapshot

DEFAULT_HEALTH_MAX_AGE_S = 10.0


@dataclass(frozen=True)
class HealthReport:
    healthy: bool
    gossip_age_s: float
    stake_age_s: float

    def render(self) -> str:
        return f"gossip_age={self.gossip_age_s:.3f}s\nstake_map_age={self.stake_age_s:.3f}s\n"


def check_health(
    gossip_cell: SnapshotCell[MembershipSnapshot],
    stake_cell: SnapshotCell[StakeSnapshot],
    max_age_s: float = DEFAULT_HEALTH_MAX_AGE_S,
) -> HealthReport:
    """Healthy while the gossip table is fresh; stake age is reported but never gates."""
    gossip_age = gossip_cell.age()
    return HealthReport(
        healthy=gossip_age < max_age_s,
        gossip_age_s=gossip_age,
        stake_age_s=stake_cell.age(),
    )
