from __future__ import annotations

from collections.abc import Callable, Sequence
from enum import Enum

import numpy as np

from .alignment import common_genes, disjoint_genes, excess_genes
from .config import EvolutionConfig, MutationConfig
from .genes import ConnectionGene, NodeRole
from .genome import Genome, build_network, creates_cycle
from .innovation import LineageTracker, next_innovation


class MutationKind(Enum):
    ADD_CONNECTION = 0
    ADD_NODE = 1
    MUTATE_WEIGHT = 2
    TOGGLE_ENABLED = 3


def random_weight(rng: np.random.Generator, limit: float) -> float:
    weight = float(rng.uniform(0.0, limit))
    if rng.random() < 0.5:
        weight = -weight
    return weight


def _inherit(child: list[ConnectionGene], gene: ConnectionGene) -> bool:
    if any(existing.duplicates(gene) for existing in child):
        return False
    if creates_cycle(child, gene.src, gene.dst):
        return False
    child.append(gene.clone())
    return True


def crossover(rng: np.random.Generator, parent_a: Genome, parent_b: Genome) -> list[ConnectionGene]:
    """Build the child's connection list from two parents.

    Common genes come from either parent by a fair coin. The disjoint and
    excess genes come as one block from the fitter parent, or from a parent
    picked by a single coin flip on a tie. Inherited genes are copies.
    """
    genes_a = parent_a.connections
    genes_b = parent_b.connections
    child: list[ConnectionGene] = []

    for gene_a, gene_b in common_genes(genes_a, genes_b):
        _inherit(child, gene_a if rng.random() < 0.5 else gene_b)

    own_a = disjoint_genes(genes_b, genes_a) + excess_genes(genes_b, genes_a)
    own_b = disjoint_genes(genes_a, genes_b) + excess_genes(genes_a, genes_b)
    if parent_a.fitness > parent_b.fitness:
        extra = own_a
    elif parent_b.fitness > parent_a.fitness:
        extra = own_b
    else:
        extra = own_a if rng.random() < 0.5 else own_b

    for gene in extra:
        _inherit(child, gene)
    return child


def _pick_pair(
    rng: np.random.Generator,
    child: list[ConnectionGene],
    template: Genome,
    allow_joined: bool,
) -> tuple[int, int] | None:
    nodes = build_network(child, template.input_size, template.output_size, template.max_hidden)
    sources = [nid for nid, n in nodes.items() if n.role != NodeRole.OUTPUT]
    targets = [nid for nid, n in nodes.items() if n.role != NodeRole.INPUT]
    joined = {(c.src, c.dst) for c in child} | {(c.dst, c.src) for c in child}

    pairs = [
        (src, dst)
        for src in sources
        for dst in targets
        if src != dst and (allow_joined or (src, dst) not in joined)
    ]
    for idx in rng.permutation(len(pairs)):
        src, dst = pairs[idx]
        if not creates_cycle(child, src, dst):
            return src, dst
    return None


def _next_hidden_id(child: list[ConnectionGene], template: Genome) -> int:
    nodes = build_network(child, template.input_size, template.output_size, template.max_hidden)
    hidden = [nid for nid, n in nodes.items() if n.role == NodeRole.HIDDEN]
    return max(hidden, default=template.input_size + 1) + 1


def add_connection(
    rng: np.random.Generator,
    child: list[ConnectionGene],
    parents: Sequence[Genome],
    tracker: LineageTracker,
    cfg: MutationConfig,
) -> None:
    pair = _pick_pair(rng, child, parents[0], allow_joined=False)
    if pair is None:
        return
    src, dst = pair
    innov = next_innovation(tracker, parents, src, dst)
    child.append(ConnectionGene(src, dst, innov, random_weight(rng, cfg.weight_limit)))


def add_node(
    rng: np.random.Generator,
    child: list[ConnectionGene],
    parents: Sequence[Genome],
    tracker: LineageTracker,
    cfg: MutationConfig,
) -> None:
    template = parents[0]
    new_id = _next_hidden_id(child, template)
    if new_id >= template.input_size + template.max_hidden:
        return

    pair = _pick_pair(rng, child, template, allow_joined=True)
    if pair is None:
        return
    src, dst = pair

    for conn in child:
        if (conn.src, conn.dst) == (src, dst):
            conn.enabled = False

    innov_in = next_innovation(tracker, parents, src, new_id)
    into = ConnectionGene(src, new_id, innov_in, random_weight(rng, cfg.weight_limit))
    innov_out = next_innovation(tracker, parents, new_id, dst)
    out = ConnectionGene(new_id, dst, innov_out, random_weight(rng, cfg.weight_limit))
    child.extend([into, out])


def mutate_weight(
    rng: np.random.Generator,
    child: list[ConnectionGene],
    parents: Sequence[Genome],
    tracker: LineageTracker,
    cfg: MutationConfig,
) -> None:
    if not child:
        return
    conn = child[rng.integers(len(child))]
    if rng.random() < 0.5:
        conn.weight = random_weight(rng, cfg.weight_limit)
    else:
        conn.weight += random_weight(rng, cfg.perturb_limit)
        conn.weight = float(np.clip(conn.weight, -cfg.weight_limit, cfg.weight_limit))


def toggle_enabled(
    rng: np.random.Generator,
    child: list[ConnectionGene],
    parents: Sequence[Genome],
    tracker: LineageTracker,
    cfg: MutationConfig,
) -> None:
    if not child:
        return
    child[rng.integers(len(child))].toggle()


MutationHandler = Callable[
    [np.random.Generator, list[ConnectionGene], Sequence[Genome], LineageTracker, MutationConfig],
    None,
]

MUTATIONS: dict[MutationKind, MutationHandler] = {
    MutationKind.ADD_CONNECTION: add_connection,
    MutationKind.ADD_NODE: add_node,
    MutationKind.MUTATE_WEIGHT: mutate_weight,
    MutationKind.TOGGLE_ENABLED: toggle_enabled,
}


def mutate(
    rng: np.random.Generator,
    child: list[ConnectionGene],
    parents: Sequence[Genome],
    tracker: LineageTracker,
    cfg: MutationConfig,
    kind: MutationKind | None = None,
) -> MutationKind:
    if kind is None:
        kinds = list(MutationKind)
        kind = kinds[rng.integers(len(kinds))]
    MUTATIONS[kind](rng, child, parents, tracker, cfg)
    return kind


def breed(
    rng: np.random.Generator,
    parent_a: Genome,
    parent_b: Genome,
    tracker: LineageTracker,
    cfg: EvolutionConfig,
) -> Genome:
    genes = crossover(rng, parent_a, parent_b)
    if rng.random() * 100.0 < cfg.mutation.rate_percent:
        mutate(rng, genes, (parent_a, parent_b), tracker, cfg.mutation)
    return Genome(
        connections=genes,
        input_size=parent_a.input_size,
        output_size=parent_a.output_size,
        max_hidden=parent_a.max_hidden,
    )
