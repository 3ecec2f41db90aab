"""
Latest-value broadcast cells for the membership and stake feeds.

Each cell has a single writer (its refresh loop) and any number of readers
(HTTP handlers). A publish replaces the whole Snapshot in one reference swap,
so a reader holding the previous Snapshot keeps a complete, unchanged value.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Generic, Iterable, Mapping, Tuple, TypeVar

from stakewall.core.endpoints import EndpointRecord

T = TypeVar("T")


class SnapshotClosedError(RuntimeError):
    """Publish attempted on a cell whose readers have all gone away."""


@dataclass(frozen=True)
class Snapshot(Generic[T]):
    value: T
    captured_at: float
    # Number of publishes that produced this value; 0 is the construction default.
    sequence: int = 0


@dataclass(frozen=True)
class MembershipSnapshot:
    peers: Mapping[str, EndpointRecord] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_records(cls, records: Iterable[EndpointRecord]) -> "MembershipSnapshot":
        """Index records by identity; a later record for the same identity wins."""
        return cls(peers=MappingProxyType({r.identity: r for r in records}))

    def __len__(self) -> int:
        return len(self.peers)


@dataclass(frozen=True)
class StakeSnapshot:
    stakes: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))

    @classmethod
    def from_amounts(cls, amounts: Iterable[Tuple[str, int]]) -> "StakeSnapshot":
        """Sum stake per identity; an identity may appear once per vote account."""
        totals: dict[str, int] = {}
        for identity, lamports in amounts:
            totals[identity] = totals.get(identity, 0) + int(lamports)
        return cls(stakes=MappingProxyType(totals))

    def stake_of(self, identity: str) -> int:
        return self.stakes.get(identity, 0)

    def __len__(self) -> int:
        return len(self.stakes)


class SnapshotCell(Generic[T]):
    def __init__(self, default: T, *, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._current: Snapshot[T] = Snapshot(value=default, captured_at=clock())
        self._closed = False

    def publish(self, value: T) -> Snapshot[T]:
        if self._closed:
            raise SnapshotClosedError("snapshot cell has no remaining readers")
        snap = Snapshot(value=value, captured_at=self._clock(), sequence=self._current.sequence + 1)
        self._current = snap
        return snap

    def latest(self) -> Snapshot[T]:
        return self._current

    def age(self) -> float:
        """Seconds since the current value was captured."""
        return max(0.0, self._clock() - self._current.captured_at)

    def close(self) -> None:
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed
