from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum


class NodeRole(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    HIDDEN = "hidden"


@dataclass
class NodeGene:
    node_id: int
    role: NodeRole
    value: float = 0.0
    incoming: list[ConnectionGene] = field(default_factory=list)


@dataclass
class ConnectionGene:
    src: int
    dst: int
    innovation: int
    weight: float
    enabled: bool = True

    def clone(self) -> "ConnectionGene":
        return replace(self)

    def toggle(self) -> bool:
        self.enabled = not self.enabled
        return self.enabled

    def duplicates(self, other: "ConnectionGene") -> bool:
        """True when ``other`` carries the same innovation or joins the same pair of nodes."""
        return self.innovation == other.innovation or (self.src, self.dst) == (other.src, other.dst)


@dataclass(frozen=True, order=True)
class Innovation:
    innovation: int
    src: int
    dst: int
