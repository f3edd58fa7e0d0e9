from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from .alignment import compatibility_distance
from .config import EvolutionConfig
from .fitness import FitnessFunction
from .genome import Genome
from .innovation import LineageTracker, SpeciesInnovationCounter
from .reproduction import breed


class EmptySpeciesError(ValueError):
    """Raised when a selection is requested from a species or population with no genomes."""


class Species:
    """A cluster of genomes sharing a representative and an innovation lineage."""

    def __init__(
        self,
        species_id: int,
        members: Iterable[Genome],
        cfg: EvolutionConfig,
        tracker: LineageTracker | None = None,
    ):
        self.species_id = species_id
        self.members: list[Genome] = list(members)
        if not self.members:
            raise EmptySpeciesError(f"Species {species_id} created without genomes")
        self.cfg = cfg
        self.tracker = tracker if tracker is not None else SpeciesInnovationCounter()
        self.stagnation = 0

        if not any(g.is_representative for g in self.members):
            self.members[0].is_representative = True

    def __len__(self) -> int:
        return len(self.members)

    @property
    def representative(self) -> Genome:
        self._require_members("representative")
        for genome in self.members:
            if genome.is_representative:
                return genome
        return self.members[0]

    def add(self, genome: Genome) -> None:
        genome.is_representative = False
        self.members.append(genome)

    def compute_fitness(self, fitness_fn: FitnessFunction) -> np.ndarray:
        size = len(self.members)
        fits = np.zeros(size, dtype=float)
        for i, genome in enumerate(self.members):
            genome.fitness = float(fitness_fn(genome))
            # Explicit fitness sharing.
            genome.adjusted_fitness = genome.fitness / size
            fits[i] = genome.fitness
        return fits

    def cull(self) -> None:
        """Keep the fitter half, rounded up, and re-elect the representative if it was dropped."""
        if len(self.members) <= 1:
            return

        old_rep = self.representative
        self.members.sort(key=lambda g: g.fitness, reverse=True)
        survivors = self.members[: (len(self.members) + 1) // 2]
        self.members = survivors

        if any(g is old_rep for g in survivors):
            return
        old_rep.is_representative = False
        new_rep = min(survivors, key=lambda g: compatibility_distance(old_rep, g, self.cfg.distance))
        new_rep.is_representative = True

    def best_genome(self) -> Genome:
        self._require_members("best genome")
        return max(self.members, key=lambda g: g.fitness)

    def best_fitness(self) -> float:
        return self.best_genome().fitness

    def is_stagnant(self, holds_best: bool) -> bool:
        return self.stagnation >= self.cfg.max_stagnation and not holds_best

    def produce_offspring(self, count: int, rng: np.random.Generator) -> list[Genome]:
        if count <= 0:
            return []
        self._require_members("offspring")

        children: list[Genome] = []
        n = len(self.members)
        for _ in range(count):
            # Parents are drawn with replacement; a genome may be crossed with itself.
            parent_a = self.members[rng.integers(n)]
            parent_b = self.members[rng.integers(n)]
            children.append(breed(rng, parent_a, parent_b, self.tracker, self.cfg))
        return children

    def _require_members(self, what: str) -> None:
        if not self.members:
            raise EmptySpeciesError(f"Cannot select {what} from empty species {self.species_id}")

    def __str__(self) -> str:
        return (
            f"Species {self.species_id} (stagnation={self.stagnation}, "
            f"innovation={self.tracker.current}, members={len(self.members)})"
        )
