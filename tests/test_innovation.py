from __future__ import annotations

from conftest import OUT, make_genome
from neat_speciation.innovation import (
    GlobalInnovationTracker,
    SpeciesInnovationCounter,
    next_innovation,
)


def test_species_counter_mints_increasing_ids():
    tracker = SpeciesInnovationCounter()
    parents = (make_genome([]), make_genome([]))

    assert next_innovation(tracker, parents, 0, OUT) == 1
    assert next_innovation(tracker, parents, 1, OUT) == 2
    assert tracker.current == 2


def test_species_counter_reuses_value_seen_in_a_parent():
    tracker = SpeciesInnovationCounter(value=3)
    parents = (make_genome([(0, OUT, 1, 1.0)]), make_genome([(1, OUT, 3, 1.0)]))

    assert next_innovation(tracker, parents, 0, 4) == 3
    assert tracker.current == 3


def test_species_counter_ignores_older_parent_ids():
    tracker = SpeciesInnovationCounter(value=3)
    parents = (make_genome([(0, OUT, 1, 1.0)]), make_genome([(1, OUT, 2, 1.0)]))

    assert tracker.try_reuse(parents, 0, 4) is None
    assert next_innovation(tracker, parents, 0, 4) == 4


def test_species_counters_are_independent():
    first = SpeciesInnovationCounter()
    second = SpeciesInnovationCounter()
    first.allocate(0, OUT)
    first.allocate(1, OUT)

    assert second.allocate(0, OUT) == 1


def test_global_tracker_keys_by_endpoints():
    tracker = GlobalInnovationTracker()
    parents = (make_genome([]), make_genome([]))

    a = next_innovation(tracker, parents, 0, OUT)
    b = next_innovation(tracker, parents, 1, OUT)
    again = next_innovation(tracker, parents, 0, OUT)

    assert (a, b, again) == (1, 2, 1)
    assert tracker.current == 2
