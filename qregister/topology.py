"""
Interaction Topology
====================

Adjacency structure that drives cluster entanglement.

Layouts:
    - Ring: n qubits on a cycle, neighbours ordered [right, left]
    - Torus: w x h grid, row-major, periodic on both axes,
             neighbours ordered [up, down, right, left]

Neighbour order is part of the contract: CNOTs do not commute, so the
orchestrator replays them exactly in the order returned here.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Dict, List
import numpy as np

from .errors import InvalidArgumentError, InvalidTopologyError


class TopologyKind(Enum):
    RING = auto()
    TORUS = auto()


@dataclass(frozen=True)
class Topology:
    """
    Immutable topology descriptor.

    Attributes:
        kind: RING or TORUS
        width: Ring length, or torus columns
        height: Torus rows (always 1 for a ring)

    Example:
        >>> topo = Topology.torus(2, 2)
        >>> neighbors(0, topo)
        [2, 2, 1, 1]
    """
    kind: TopologyKind
    width: int
    height: int = 1

    @classmethod
    def ring(cls, n: int) -> "Topology":
        return cls(TopologyKind.RING, n, 1)

    @classmethod
    def torus(cls, width: int, height: int) -> "Topology":
        return cls(TopologyKind.TORUS, width, height)

    @property
    def n_qubits(self) -> int:
        return self.width * self.height

    def validate(self, register_size: int) -> None:
        """
        Check that this topology fits a register.

        Raises:
            InvalidTopologyError if dimensions and register size disagree
        """
        for name, value in (("width", self.width), ("height", self.height)):
            if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
                raise InvalidTopologyError(
                    f"Topology {name} must be an integer, got {value!r}"
                )

        if self.kind == TopologyKind.RING:
            if self.height != 1:
                raise InvalidTopologyError(f"Ring height must be 1, got {self.height}")
            if self.width < 2:
                raise InvalidTopologyError(
                    f"Ring needs at least 2 qubits, got {self.width}"
                )
            if self.width != register_size:
                raise InvalidTopologyError(
                    f"Ring width {self.width} != register size {register_size}"
                )
        elif self.kind == TopologyKind.TORUS:
            if self.width < 1 or self.height < 1:
                raise InvalidTopologyError(
                    f"Torus dimensions must be positive, got {self.width}x{self.height}"
                )
            if self.width * self.height != register_size:
                raise InvalidTopologyError(
                    f"Torus {self.width}x{self.height} does not cover "
                    f"{register_size} qubits"
                )
        else:
            raise InvalidTopologyError(f"Unknown topology kind: {self.kind}")

    def __str__(self) -> str:
        if self.kind == TopologyKind.RING:
            return f"Ring({self.width})"
        return f"Torus({self.width}x{self.height})"


def neighbors(index: int, topology: Topology) -> List[int]:
    """
    Neighbour indices of a qubit, in the fixed interaction order.

    Args:
        index: Qubit index in [0, n)
        topology: Ring or torus descriptor

    Returns:
        [right, left] for a ring, [up, down, right, left] for a torus
    """
    n = topology.n_qubits
    topology.validate(n)

    if not 0 <= index < n:
        raise InvalidArgumentError(f"Qubit {index} out of range [0, {n})")

    if topology.kind == TopologyKind.RING:
        return [(index + 1) % n, (index - 1 + n) % n]

    w, h = topology.width, topology.height
    row, col = divmod(index, w)
    up = ((row - 1) % h) * w + col
    down = ((row + 1) % h) * w + col
    right = row * w + (col + 1) % w
    left = row * w + (col - 1) % w
    return [up, down, right, left]


def neighbor_map(topology: Topology) -> Dict[int, List[int]]:
    """Neighbour lists for every qubit, keyed by ascending index."""
    return {i: neighbors(i, topology) for i in range(topology.n_qubits)}
