from __future__ import annotations

import heapq
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

import numpy as np

from .activations import steepened_sigmoid
from .genes import ConnectionGene, Innovation, NodeGene, NodeRole


class NetworkCycleError(ValueError):
    """Raised when the connection graph of a genome cannot be evaluated feed-forward."""


def bias_id(input_size: int) -> int:
    return input_size


def output_ids(input_size: int, output_size: int, max_hidden: int) -> range:
    start = input_size + max_hidden
    return range(start, start + output_size)


def node_role(node_id: int, input_size: int, output_size: int, max_hidden: int) -> NodeRole:
    if 0 <= node_id <= bias_id(input_size):
        return NodeRole.INPUT
    if node_id in output_ids(input_size, output_size, max_hidden):
        return NodeRole.OUTPUT
    return NodeRole.HIDDEN


def build_network(
    connections: Iterable[ConnectionGene],
    input_size: int,
    output_size: int,
    max_hidden: int,
) -> dict[int, NodeGene]:
    """Derive the node map of a genome from its connection list.

    Inputs occupy ids ``0..input_size-1`` and the bias node sits at
    ``input_size`` with a constant value of 1. Outputs occupy the fixed range
    starting at ``input_size + max_hidden``. Every other id named by a
    connection endpoint becomes a hidden node. Connections are never modified.
    """
    nodes: dict[int, NodeGene] = {}
    for nid in range(input_size):
        nodes[nid] = NodeGene(node_id=nid, role=NodeRole.INPUT)
    nodes[bias_id(input_size)] = NodeGene(node_id=bias_id(input_size), role=NodeRole.INPUT, value=1.0)
    for nid in output_ids(input_size, output_size, max_hidden):
        nodes[nid] = NodeGene(node_id=nid, role=NodeRole.OUTPUT)

    for conn in connections:
        for nid in (conn.src, conn.dst):
            if nid not in nodes:
                nodes[nid] = NodeGene(node_id=nid, role=node_role(nid, input_size, output_size, max_hidden))
        nodes[conn.dst].incoming.append(conn)

    return dict(sorted(nodes.items()))


def evaluation_order(nodes: dict[int, NodeGene], input_size: int) -> list[int]:
    """Order the non-input nodes so that every source is computed before its destination.

    Ties are broken by the lowest id, so a graph whose connections all run
    from lower to higher ids is evaluated in plain ascending-id order.
    Disabled connections still count as edges.
    """
    pending = {nid: 0 for nid in nodes if nid > bias_id(input_size)}
    dependents: dict[int, list[int]] = {nid: [] for nid in pending}
    for nid in pending:
        for conn in nodes[nid].incoming:
            if conn.src in pending:
                pending[nid] += 1
                dependents[conn.src].append(nid)

    ready = [nid for nid, count in pending.items() if count == 0]
    heapq.heapify(ready)
    order: list[int] = []
    while ready:
        nid = heapq.heappop(ready)
        order.append(nid)
        for dep in dependents[nid]:
            pending[dep] -= 1
            if pending[dep] == 0:
                heapq.heappush(ready, dep)

    if len(order) != len(pending):
        done = set(order)
        stuck = sorted(nid for nid in pending if nid not in done)
        raise NetworkCycleError(f"Connection graph contains a cycle through nodes {stuck}")
    return order


def reaches(connections: Iterable[ConnectionGene], start: int, target: int) -> bool:
    """True when ``target`` is reachable from ``start`` following connection direction."""
    outgoing: dict[int, list[int]] = {}
    for conn in connections:
        outgoing.setdefault(conn.src, []).append(conn.dst)

    visited: set[int] = set()
    stack = [start]
    while stack:
        nid = stack.pop()
        if nid == target:
            return True
        if nid in visited:
            continue
        visited.add(nid)
        stack.extend(outgoing.get(nid, ()))
    return False


def creates_cycle(connections: Iterable[ConnectionGene], src: int, dst: int) -> bool:
    return src == dst or reaches(connections, dst, src)


class FeedForwardNetwork:
    def __init__(self, nodes: dict[int, NodeGene], input_size: int, outputs: Sequence[int]):
        self._nodes = nodes
        self._input_size = input_size
        self._output_ids = list(outputs)
        self._compute_order = evaluation_order(nodes, input_size)

    def forward(self, inputs: Sequence[float]) -> np.ndarray:
        values = np.asarray(inputs, dtype=float).reshape(-1)
        if values.shape[0] != self._input_size:
            raise ValueError(f"Expected {self._input_size} inputs, got {values.shape[0]}")

        for nid in range(self._input_size):
            self._nodes[nid].value = float(values[nid])
        self._nodes[bias_id(self._input_size)].value = 1.0
        for nid in self._compute_order:
            self._nodes[nid].value = 0.0

        for nid in self._compute_order:
            node = self._nodes[nid]
            total = 0.0
            for conn in node.incoming:
                if conn.enabled:
                    total += self._nodes[conn.src].value * conn.weight
            node.value = steepened_sigmoid(total)

        return np.array([self._nodes[nid].value for nid in self._output_ids], dtype=float)


@dataclass
class Genome:
    connections: list[ConnectionGene]
    input_size: int
    output_size: int
    max_hidden: int
    fitness: float = 0.0
    adjusted_fitness: float = 0.0
    is_representative: bool = False
    _nodes: dict[int, NodeGene] | None = field(default=None, init=False, repr=False, compare=False)
    _phenotype: FeedForwardNetwork | None = field(default=None, init=False, repr=False, compare=False)

    @property
    def nodes(self) -> dict[int, NodeGene]:
        if self._nodes is None:
            self._nodes = build_network(self.connections, self.input_size, self.output_size, self.max_hidden)
        return self._nodes

    @property
    def innovations(self) -> list[Innovation]:
        return sorted(Innovation(c.innovation, c.src, c.dst) for c in self.connections)

    @property
    def output_ids(self) -> range:
        return output_ids(self.input_size, self.output_size, self.max_hidden)

    @property
    def hidden_ids(self) -> list[int]:
        return [nid for nid, n in self.nodes.items() if n.role == NodeRole.HIDDEN]

    def complexity(self) -> tuple[int, int]:
        enabled = sum(1 for c in self.connections if c.enabled)
        return len(self.hidden_ids), enabled

    def to_phenotype(self) -> FeedForwardNetwork:
        if self._phenotype is None:
            self._phenotype = FeedForwardNetwork(self.nodes, self.input_size, self.output_ids)
        return self._phenotype

    def evaluate(self, inputs: Sequence[float]) -> np.ndarray:
        return self.to_phenotype().forward(inputs)

    def clone(self) -> "Genome":
        return Genome(
            connections=[c.clone() for c in self.connections],
            input_size=self.input_size,
            output_size=self.output_size,
            max_hidden=self.max_hidden,
            fitness=self.fitness,
            adjusted_fitness=self.adjusted_fitness,
            is_representative=self.is_representative,
        )

    def __str__(self) -> str:
        return f"Genome(fitness={self.fitness:.2f}, nodes={len(self.nodes)}, connections={len(self.connections)})"
