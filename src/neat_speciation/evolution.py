from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import numpy as np

from .alignment import compatibility_distance
from .config import EvolutionConfig
from .fitness import FitnessFunction
from .genome import Genome
from .innovation import LineageTracker, SpeciesInnovationCounter
from .species import EmptySpeciesError, Species


@dataclass
class GenerationRecord:
    generation: int
    species_count: int
    population_size: int
    best_fitness: float
    mean_fitness: float
    best_hidden_nodes: int
    best_enabled_connections: int
    species_founded: int = 0
    max_innovation: int = 0


class SpeciesIdAllocator:
    def __init__(self, start: int = 1):
        self._next = start

    def __call__(self) -> int:
        sid = self._next
        self._next += 1
        return sid


def create_initial_population(
    cfg: EvolutionConfig,
    ids: SpeciesIdAllocator,
    tracker: LineageTracker | None = None,
) -> Species:
    """Generation zero: one species of ``pop_size`` genomes without connections."""
    genomes = [
        Genome(
            connections=[],
            input_size=cfg.input_size,
            output_size=cfg.output_size,
            max_hidden=cfg.max_hidden,
        )
        for _ in range(cfg.pop_size)
    ]
    genomes[0].is_representative = True
    return Species(ids(), genomes, cfg, tracker)


def split_quota(total: int, buckets: int) -> list[int]:
    """Split ``total`` as evenly as possible; the remainder goes to the first buckets."""
    if buckets <= 0:
        return []
    base, rest = divmod(max(total, 0), buckets)
    return [base + 1 if i < rest else base for i in range(buckets)]


class Population:
    def __init__(
        self,
        cfg: EvolutionConfig,
        fitness_fn: FitnessFunction,
        rng: np.random.Generator | None = None,
        species: Iterable[Species] | None = None,
        tracker_factory: Callable[[], LineageTracker] | None = None,
        logger: logging.Logger | None = None,
    ):
        self.cfg = cfg.validate()
        if not isinstance(fitness_fn, FitnessFunction):
            raise TypeError(f"fitness_fn must be callable, got {type(fitness_fn).__name__}")
        self.fitness_fn = fitness_fn
        self.rng = rng if rng is not None else np.random.default_rng(cfg.seed)
        self.tracker_factory = tracker_factory if tracker_factory is not None else SpeciesInnovationCounter
        self.logger = logger if logger is not None else logging.getLogger("neat_speciation")
        self.ids = SpeciesIdAllocator()

        if species is None:
            self.species = [create_initial_population(cfg, self.ids, self.tracker_factory())]
        else:
            self.species = list(species)
            if self.species:
                self.ids = SpeciesIdAllocator(max(sp.species_id for sp in self.species) + 1)

        self.generation = 0
        self.reached_threshold = False
        self.best: Genome | None = None
        self.history: list[GenerationRecord] = []

    @property
    def size(self) -> int:
        return sum(len(sp.members) for sp in self.species)

    def learn(self, threshold: float, max_iterations: int) -> Genome:
        """Evolve until the best genome scores ``threshold`` or ``max_iterations`` generations ran."""
        score = 0.0
        iterations = 0
        best: Genome | None = None

        while score < threshold and iterations < max_iterations:
            best = self.step()
            score = best.fitness
            iterations += 1

        if best is None:
            for sp in self.species:
                sp.compute_fitness(self.fitness_fn)
            best = self.best_genome()
            self.best = best

        self.reached_threshold = best.fitness >= threshold
        if self.reached_threshold:
            self.logger.info(
                "Threshold reached: %.2f >= %.2f after %d generations", best.fitness, threshold, iterations
            )
        else:
            self.logger.info("Generation cap (%d) reached, best fitness %.2f", max_iterations, best.fitness)
        return best

    def step(self) -> Genome:
        for sp in self.species:
            sp.compute_fitness(self.fitness_fn)
            sp.cull()

        self.remove_stagnant()

        quotas = split_quota(self.cfg.pop_size - self.size, len(self.species))
        children: list[Genome] = []
        for sp, quota in zip(self.species, quotas):
            children.extend(sp.produce_offspring(quota, self.rng))

        founded = self.speciate(children)

        for sp in self.species:
            sp.compute_fitness(self.fitness_fn)
        best = self.best_genome()
        best.fitness = float(self.fitness_fn(best))
        self.best = best

        self.generation += 1
        self._record_generation(best, founded)
        return best

    def remove_stagnant(self) -> None:
        if not self.species:
            raise EmptySpeciesError("Population has no species")
        champion = self.best_species()
        self.species = [
            sp for sp in self.species if sp.members and not sp.is_stagnant(holds_best=sp is champion)
        ]

    def speciate(self, children: Iterable[Genome]) -> int:
        """Place each child in the closest species within the distance threshold, or found a new one.

        Returns the number of species founded.
        """
        received: set[int] = set()
        founded = 0

        for child in children:
            best_sp: Species | None = None
            best_delta = float("inf")
            for sp in self.species:
                delta = compatibility_distance(sp.representative, child, self.cfg.distance)
                if delta <= self.cfg.distance.threshold and delta < best_delta:
                    best_sp = sp
                    best_delta = delta

            if best_sp is None:
                child.is_representative = True
                self.species.append(Species(self.ids(), [child], self.cfg, self.tracker_factory()))
                founded += 1
            else:
                best_sp.add(child)
                best_sp.stagnation = 0
                received.add(best_sp.species_id)

        for sp in self.species:
            if sp.species_id not in received:
                sp.stagnation += 1
        return founded

    def best_species(self) -> Species:
        populated = [sp for sp in self.species if sp.members]
        if not populated:
            raise EmptySpeciesError("Population has no genomes")
        return max(populated, key=lambda sp: sp.best_fitness())

    def best_genome(self) -> Genome:
        return self.best_species().best_genome()

    def _record_generation(self, best: Genome, founded: int) -> None:
        fitness = np.array([g.fitness for sp in self.species for g in sp.members], dtype=float)
        best_hidden, best_conn = best.complexity()
        record = GenerationRecord(
            generation=self.generation,
            species_count=len(self.species),
            population_size=int(fitness.size),
            best_fitness=float(best.fitness),
            mean_fitness=float(np.mean(fitness)) if fitness.size else 0.0,
            best_hidden_nodes=best_hidden,
            best_enabled_connections=best_conn,
            species_founded=founded,
            max_innovation=max((sp.tracker.current for sp in self.species), default=0),
        )
        self.history.append(record)

        self.logger.info(
            "[gen %d] best=%.2f mean=%.2f species=%d",
            record.generation,
            record.best_fitness,
            record.mean_fitness,
            record.species_count,
        )
        if self.logger.isEnabledFor(logging.DEBUG):
            for sp in self.species:
                self.logger.debug("    %s", sp)
