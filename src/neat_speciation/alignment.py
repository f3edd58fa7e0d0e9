"""Gene alignment between two connection lists.

Genes are matched by innovation id, never by position. Disjoint and excess
genes are always classified relative to a reference list: a gene of the
comparand with no counterpart in the reference is disjoint when its
innovation id falls within the reference's range and excess when it lies
beyond the reference's highest innovation id. Every gene of the comparand
is excess against an empty reference.
"""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np

from .config import DistanceConfig
from .genes import ConnectionGene
from .genome import Genome


def common_genes(
    reference: Sequence[ConnectionGene],
    comparand: Sequence[ConnectionGene],
) -> list[tuple[ConnectionGene, ConnectionGene]]:
    by_innov: dict[int, list[ConnectionGene]] = {}
    for gene in comparand:
        by_innov.setdefault(gene.innovation, []).append(gene)
    return [(a, b) for a in reference for b in by_innov.get(a.innovation, ())]


def _unmatched(
    reference: Sequence[ConnectionGene],
    comparand: Sequence[ConnectionGene],
) -> list[ConnectionGene]:
    shared = {gene.innovation for gene in reference}
    return [gene for gene in comparand if gene.innovation not in shared]


def disjoint_genes(
    reference: Sequence[ConnectionGene],
    comparand: Sequence[ConnectionGene],
) -> list[ConnectionGene]:
    if not reference:
        return []
    max_innov = max(gene.innovation for gene in reference)
    return [gene for gene in _unmatched(reference, comparand) if gene.innovation <= max_innov]


def excess_genes(
    reference: Sequence[ConnectionGene],
    comparand: Sequence[ConnectionGene],
) -> list[ConnectionGene]:
    if not reference:
        return list(comparand)
    max_innov = max(gene.innovation for gene in reference)
    return [gene for gene in _unmatched(reference, comparand) if gene.innovation > max_innov]


def mean_weight_difference(pairs: Sequence[tuple[ConnectionGene, ConnectionGene]]) -> float:
    if not pairs:
        return 0.0
    return float(np.mean([abs(a.weight - b.weight) for a, b in pairs]))


def compatibility_distance(representative: Genome, candidate: Genome, cfg: DistanceConfig) -> float:
    """delta = c1 * E / N + c2 * D / N + c3 * W, counted from the representative's genes."""
    ref = representative.connections
    other = candidate.connections

    n = max(len(ref), len(other))
    if n == 0:
        return 0.0

    excess = len(excess_genes(ref, other))
    disjoint = len(disjoint_genes(ref, other))
    w_diff = mean_weight_difference(common_genes(ref, other))
    return cfg.c1 * excess / n + cfg.c2 * disjoint / n + cfg.c3 * w_diff
