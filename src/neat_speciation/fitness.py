from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

import numpy as np

from .genome import Genome

# (max absolute error, points) pairs; the first tier an output falls within wins.
GRADED_TIERS: tuple[tuple[float, float], ...] = (
    (0.01, 25.0),
    (0.2, 12.5),
    (0.3, 8.33),
    (0.4, 6.25),
    (0.5, 5.0),
)

XOR_PROBES: tuple[tuple[float, float], ...] = ((0.0, 0.0), (0.0, 1.0), (1.0, 0.0), (1.0, 1.0))
XOR_TARGETS: tuple[float, ...] = (0.0, 1.0, 1.0, 0.0)


@runtime_checkable
class FitnessFunction(Protocol):
    """Any callable mapping a genome to a non-negative score; plain functions qualify."""

    def __call__(self, genome: Genome) -> float: ...


class TruthTableFitness:
    """Scores a genome by how closely its outputs match a fixed truth table."""

    def __init__(
        self,
        probes: Sequence[Sequence[float]],
        targets: Sequence[float] | Sequence[Sequence[float]],
        tiers: Sequence[tuple[float, float]] = GRADED_TIERS,
    ):
        self.probes = np.asarray(probes, dtype=float)
        if self.probes.ndim != 2:
            raise ValueError(f"Probes must be a 2-D table, got shape {self.probes.shape}")
        self.targets = np.asarray(targets, dtype=float).reshape(len(self.probes), -1)
        self.tiers = tuple(sorted(tiers))
        if not self.tiers:
            raise ValueError("At least one scoring tier is required")
        if any(points < 0 for _, points in self.tiers):
            raise ValueError("Tier points must be non-negative")

    @property
    def max_score(self) -> float:
        return float(self.targets.size * max(points for _, points in self.tiers))

    def evaluate(self, genome: Genome) -> np.ndarray:
        return np.stack([genome.evaluate(probe) for probe in self.probes])

    def score(self, outputs: np.ndarray) -> float:
        errors = np.abs(np.asarray(outputs, dtype=float).reshape(self.targets.shape) - self.targets)
        total = 0.0
        for err in errors.ravel():
            for bound, points in self.tiers:
                if err <= bound:
                    total += points
                    break
        return total

    def __call__(self, genome: Genome) -> float:
        return self.score(self.evaluate(genome))


def xor_fitness() -> TruthTableFitness:
    return TruthTableFitness(XOR_PROBES, XOR_TARGETS)
