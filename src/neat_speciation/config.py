from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class DistanceConfig:
    c1: float = 2.0
    c2: float = 2.0
    c3: float = 0.4
    threshold: float = 0.15


@dataclass
class MutationConfig:
    # Chance, in percent, that a freshly crossed-over child is mutated once.
    rate_percent: float = 20.0
    weight_limit: float = 10.0
    perturb_limit: float = 5.0


@dataclass
class EvolutionConfig:
    pop_size: int = 200
    input_size: int = 2
    output_size: int = 1
    max_hidden: int = 100
    max_stagnation: int = 20
    seed: int | None = None
    distance: DistanceConfig = field(default_factory=DistanceConfig)
    mutation: MutationConfig = field(default_factory=MutationConfig)

    def validate(self) -> "EvolutionConfig":
        if self.pop_size <= 0:
            raise ValueError(f"pop_size must be positive, got {self.pop_size}")
        if self.input_size <= 0 or self.output_size <= 0:
            raise ValueError(
                f"input_size and output_size must be positive, got {self.input_size}/{self.output_size}"
            )
        if self.max_hidden < 1:
            raise ValueError(f"max_hidden must be at least 1, got {self.max_hidden}")
        if self.max_stagnation <= 0:
            raise ValueError(f"max_stagnation must be positive, got {self.max_stagnation}")
        if self.distance.threshold < 0:
            raise ValueError(f"distance threshold must be >= 0, got {self.distance.threshold}")
        if not 0.0 <= self.mutation.rate_percent <= 100.0:
            raise ValueError(f"mutation rate must be within [0, 100], got {self.mutation.rate_percent}")
        return self
