"""Speciated NEAT with per-species innovation tracking."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import DistanceConfig, EvolutionConfig, MutationConfig

if TYPE_CHECKING:
    from .evolution import Population
    from .genome import Genome

__all__ = ["DistanceConfig", "EvolutionConfig", "Genome", "MutationConfig", "Population"]


def __getattr__(name: str):
    if name == "Population":
        from .evolution import Population as _Population

        return _Population
    if name == "Genome":
        from .genome import Genome as _Genome

        return _Genome
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
