from __future__ import annotations

import numpy as np
import pytest

from neat_speciation.config import EvolutionConfig
from neat_speciation.genes import ConnectionGene
from neat_speciation.genome import Genome

# 2 inputs, bias at 2, hidden ids from 4, single output at 12.
INPUTS = 2
OUTPUTS = 1
MAX_HIDDEN = 10
OUT = INPUTS + MAX_HIDDEN


def make_genome(
    genes: list[tuple],
    fitness: float = 0.0,
    max_hidden: int = MAX_HIDDEN,
) -> Genome:
    return Genome(
        connections=[ConnectionGene(*g) for g in genes],
        input_size=INPUTS,
        output_size=OUTPUTS,
        max_hidden=max_hidden,
        fitness=fitness,
    )


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


@pytest.fixture
def cfg() -> EvolutionConfig:
    return EvolutionConfig(
        pop_size=20,
        input_size=INPUTS,
        output_size=OUTPUTS,
        max_hidden=MAX_HIDDEN,
        max_stagnation=3,
        seed=0,
    )
