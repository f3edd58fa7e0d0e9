from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

from .genome import Genome


class LineageTracker(Protocol):
    @property
    def current(self) -> int: ...

    def try_reuse(self, parents: Sequence[Genome], src: int, dst: int) -> int | None: ...

    def allocate(self, src: int, dst: int) -> int: ...


def next_innovation(tracker: LineageTracker, parents: Sequence[Genome], src: int, dst: int) -> int:
    innov = tracker.try_reuse(parents, src, dst)
    if innov is None:
        innov = tracker.allocate(src, dst)
    return innov


@dataclass
class SpeciesInnovationCounter:
    """Innovation counter owned by a single species.

    A structural mutation reuses the current value, without incrementing,
    when either crossover parent already carries a gene with that innovation
    id. Otherwise the counter is incremented and the new value minted.

    Both genes of an add-node mutation go through the same check, so they
    share one id whenever the reuse fires, and may also share it with a gene
    the child inherited. Crossover later keeps only the first gene per id.
    """

    value: int = 0

    @property
    def current(self) -> int:
        return self.value

    def try_reuse(self, parents: Sequence[Genome], src: int, dst: int) -> int | None:
        for parent in parents:
            if any(record.innovation == self.value for record in parent.innovations):
                return self.value
        return None

    def allocate(self, src: int, dst: int) -> int:
        self.value += 1
        return self.value


@dataclass
class GlobalInnovationTracker:
    """Population-wide tracker: the same (src, dst) pair always maps to the same innovation."""

    next_innov: int = 1
    conn_innov: dict[tuple[int, int], int] = field(default_factory=dict)

    @property
    def current(self) -> int:
        return self.next_innov - 1

    def try_reuse(self, parents: Sequence[Genome], src: int, dst: int) -> int | None:
        return self.conn_innov.get((src, dst))

    def allocate(self, src: int, dst: int) -> int:
        innov = self.next_innov
        self.next_innov += 1
        self.conn_innov[(src, dst)] = innov
        return innov
