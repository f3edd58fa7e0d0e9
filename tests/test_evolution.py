from __future__ import annotations

import logging

import numpy as np
import pytest

from conftest import OUT, make_genome
from neat_speciation.config import DistanceConfig, EvolutionConfig
from neat_speciation.evolution import (
    Population,
    SpeciesIdAllocator,
    create_initial_population,
    split_quota,
)
from neat_speciation.fitness import xor_fitness
from neat_speciation.innovation import GlobalInnovationTracker
from neat_speciation.species import EmptySpeciesError, Species


def constant_fitness(genome):
    return 1.0


@pytest.mark.parametrize(
    "total, buckets, expected",
    [
        (10, 3, [4, 3, 3]),
        (2, 3, [1, 1, 0]),
        (9, 3, [3, 3, 3]),
        (0, 2, [0, 0]),
        (5, 0, []),
    ],
)
def test_split_quota(total, buckets, expected):
    assert split_quota(total, buckets) == expected


def test_species_id_allocator():
    ids = SpeciesIdAllocator(start=7)
    assert [ids(), ids(), ids()] == [7, 8, 9]


def test_initial_population(cfg):
    sp = create_initial_population(cfg, SpeciesIdAllocator())
    assert sp.species_id == 1
    assert len(sp) == cfg.pop_size
    assert all(g.connections == [] for g in sp.members)
    assert sum(g.is_representative for g in sp.members) == 1
    assert sp.representative is sp.members[0]


def test_population_starts_with_one_species(cfg):
    pop = Population(cfg, constant_fitness)
    assert len(pop.species) == 1
    assert pop.size == cfg.pop_size
    assert pop.generation == 0
    assert pop.history == []


def test_speciate_founds_new_species(cfg):
    old = Species(1, [make_genome([])], cfg)
    pop = Population(cfg, constant_fitness, species=[old])
    child = make_genome([(0, OUT, 1, 1.0)])

    # Against an empty representative every gene is excess: delta = c1 * 1 / 1 = 2.
    pop.speciate([child])

    assert len(pop.species) == 2
    founded = pop.species[1]
    assert founded.species_id == 2
    assert founded.members == [child]
    assert founded.representative is child
    assert old.stagnation == 1


def test_speciate_picks_closest_species(cfg):
    cfg.distance = DistanceConfig(threshold=10.0)
    first = Species(1, [make_genome([(0, OUT, 1, 1.0)])], cfg)
    second = Species(2, [make_genome([(0, OUT, 1, 3.0)])], cfg)
    second.stagnation = 2
    pop = Population(cfg, constant_fitness, species=[first, second])
    child = make_genome([(0, OUT, 1, 2.8)])

    pop.speciate([child])

    assert len(pop.species) == 2
    assert child in second.members
    assert not child.is_representative
    assert second.stagnation == 0
    assert first.stagnation == 1


def test_remove_stagnant_protects_best_species(cfg):
    champion = Species(1, [make_genome([], fitness=5.0)], cfg)
    laggard = Species(2, [make_genome([], fitness=1.0)], cfg)
    fresh = Species(3, [make_genome([], fitness=0.5)], cfg)
    champion.stagnation = laggard.stagnation = cfg.max_stagnation
    pop = Population(cfg, constant_fitness, species=[champion, laggard, fresh])

    pop.remove_stagnant()

    assert pop.species == [champion, fresh]


def test_best_species_prefers_first_on_ties(cfg):
    a = Species(1, [make_genome([], fitness=3.0)], cfg)
    b = Species(2, [make_genome([], fitness=3.0)], cfg)
    pop = Population(cfg, constant_fitness, species=[a, b])
    assert pop.best_species() is a
    assert pop.best_genome() is a.members[0]


def test_step_without_species_fails(cfg):
    pop = Population(cfg, constant_fitness, species=[])
    with pytest.raises(EmptySpeciesError):
        pop.step()
    with pytest.raises(EmptySpeciesError):
        pop.best_genome()


def test_step_keeps_population_size(cfg):
    pop = Population(cfg, xor_fitness())
    for expected in range(1, 6):
        best = pop.step()
        assert pop.generation == expected
        assert pop.size == cfg.pop_size
        assert all(len(sp) > 0 for sp in pop.species)
        assert best is pop.best
        assert best.fitness == max(g.fitness for sp in pop.species for g in sp.members)


def test_learn_xor_runs_and_records_history():
    cfg = EvolutionConfig(pop_size=200, input_size=2, output_size=1, max_hidden=100, seed=3)
    pop = Population(cfg, xor_fitness())

    best = pop.learn(threshold=90.0, max_iterations=3)

    assert best is not None
    assert 1 <= pop.generation <= 3
    assert len(pop.history) == pop.generation
    assert pop.size == 200
    assert pop.reached_threshold == (best.fitness >= 90.0)
    assert pop.history[-1].best_fitness == pytest.approx(best.fitness)
    assert all(r.population_size == 200 for r in pop.history)


def test_learn_with_no_iterations_still_scores(cfg):
    pop = Population(cfg, xor_fitness())
    best = pop.learn(threshold=90.0, max_iterations=0)

    assert pop.generation == 0
    assert best.fitness == pytest.approx(20.0)
    assert not pop.reached_threshold


def test_learn_stops_at_threshold(cfg):
    pop = Population(cfg, constant_fitness)
    best = pop.learn(threshold=1.0, max_iterations=50)

    assert pop.generation == 1
    assert pop.reached_threshold
    assert best.fitness == 1.0


def test_same_seed_same_run(cfg):
    runs = []
    for _ in range(2):
        pop = Population(cfg, xor_fitness())
        pop.learn(threshold=100.0, max_iterations=4)
        runs.append([(r.species_count, r.best_fitness, r.mean_fitness) for r in pop.history])
    assert runs[0] == runs[1]


def test_explicit_rng_overrides_seed(cfg):
    pop = Population(cfg, constant_fitness, rng=np.random.default_rng(99))
    assert pop.rng.integers(1_000_000) == np.random.default_rng(99).integers(1_000_000)


def test_global_tracker_is_shared_when_injected(cfg):
    shared = GlobalInnovationTracker()
    pop = Population(cfg, xor_fitness(), tracker_factory=lambda: shared)
    pop.learn(threshold=100.0, max_iterations=3)

    assert all(sp.tracker is shared for sp in pop.species)


def test_generation_is_logged(cfg, caplog):
    pop = Population(cfg, xor_fitness())
    with caplog.at_level(logging.INFO, logger="neat_speciation"):
        pop.learn(threshold=100.0, max_iterations=2)

    messages = [r.getMessage() for r in caplog.records]
    assert any(m.startswith("[gen 1]") for m in messages)
    assert any("Generation cap (2)" in m for m in messages)


def test_injected_logger(cfg, caplog):
    logger = logging.getLogger("tests.neat")
    pop = Population(cfg, constant_fitness, logger=logger)
    with caplog.at_level(logging.DEBUG, logger="tests.neat"):
        pop.step()

    assert any(r.name == "tests.neat" and "Species 1" in r.getMessage() for r in caplog.records)


@pytest.mark.parametrize(
    "overrides",
    [
        {"pop_size": 0},
        {"input_size": 0},
        {"max_hidden": 0},
        {"max_stagnation": 0},
    ],
)
def test_invalid_config_is_rejected(overrides):
    cfg = EvolutionConfig(**overrides)
    with pytest.raises(ValueError):
        Population(cfg, constant_fitness)


def test_invalid_mutation_rate_is_rejected():
    cfg = EvolutionConfig()
    cfg.mutation.rate_percent = 150.0
    with pytest.raises(ValueError):
        cfg.validate()


def test_fitness_must_be_callable(cfg):
    with pytest.raises(TypeError):
        Population(cfg, 90.0)


def test_history_tracks_founded_species_and_innovation(cfg):
    pop = Population(cfg, xor_fitness())
    pop.learn(threshold=100.0, max_iterations=4)

    assert all(rec.species_founded >= 0 for rec in pop.history)
    assert sum(rec.species_founded for rec in pop.history) == pop.ids() - 2
    assert pop.history[-1].max_innovation == max(sp.tracker.current for sp in pop.species)
