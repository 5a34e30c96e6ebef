"""
Gate ISA: The Fixed Unitary Instruction Set
===========================================

The closed set of gates the register engine understands.

Key Concepts:
    - Every gate acts on one target qubit, optionally conditioned on a control
    - Single-qubit gates carry a 2x2 unitary
    - Controlled gates apply the 2x2 unitary to the target where control = 1
    - Rotations use exact half-angle trigonometric formulas (no approximations)

Matrix conventions match qiskit's standard gates, so a gate history can be
replayed as a QuantumCircuit without phase corrections.
"""

from enum import Enum, auto
from dataclasses import dataclass, field
from typing import Optional
import numpy as np

from .errors import InvalidGateError


# =============================================================================
# MATRIX CONSTRUCTORS
# =============================================================================

def _frozen(matrix: np.ndarray) -> np.ndarray:
    matrix = np.array(matrix, dtype=np.complex128)
    matrix.setflags(write=False)
    return matrix


_HADAMARD = _frozen(np.array([[1, 1], [1, -1]]) / np.sqrt(2))
_PAULI_X = _frozen(np.array([[0, 1], [1, 0]]))
_IDENTITY = _frozen(np.eye(2))


def hadamard() -> np.ndarray:
    """Hadamard gate. Self-inverse."""
    return _HADAMARD


def pauli_x() -> np.ndarray:
    """Bit-flip gate."""
    return _PAULI_X


def identity() -> np.ndarray:
    return _IDENTITY


def rotation_x(theta: float) -> np.ndarray:
    """
    RX(θ) = exp(-iθX/2).

    Args:
        theta: Rotation angle in radians
    """
    c = np.cos(theta / 2)
    s = np.sin(theta / 2)
    return _frozen([[c, -1j * s], [-1j * s, c]])


def rotation_y(theta: float) -> np.ndarray:
    """RY(θ) = exp(-iθY/2)."""
    c = np.cos(theta / 2)
    s = np.sin(theta / 2)
    return _frozen([[c, -s], [s, c]])


def rotation_z(theta: float) -> np.ndarray:
    """RZ(θ) = exp(-iθZ/2)."""
    phase = np.exp(-0.5j * theta)
    return _frozen([[phase, 0], [0, np.conj(phase)]])


def is_unitary(matrix: np.ndarray, atol: float = 1e-12) -> bool:
    """Check U†U = I for a square matrix."""
    matrix = np.asarray(matrix)
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        return False
    return bool(np.allclose(matrix.conj().T @ matrix, np.eye(matrix.shape[0]), atol=atol))


# =============================================================================
# OPCODES
# =============================================================================

class OpCode(Enum):
    """
    Gate opcodes.

        H:  Hadamard
        X:  Pauli-X (bit flip)
        RX/RY/RZ: Parametrized axis rotations
        CX: Controlled-NOT
        U:  Arbitrary 2x2 unitary (single or controlled)
    """
    H = auto()
    X = auto()
    RX = auto()
    RY = auto()
    RZ = auto()
    CX = auto()
    U = auto()


class GateKind(Enum):
    SINGLE = auto()
    CONTROLLED = auto()


_ROTATIONS = {
    OpCode.RX: rotation_x,
    OpCode.RY: rotation_y,
    OpCode.RZ: rotation_z,
}


# =============================================================================
# GATE DESCRIPTOR
# =============================================================================

@dataclass(frozen=True)
class Gate:
    """
    A single gate application.

    Attributes:
        opcode: Which gate
        target: Qubit the unitary acts on
        control: Control qubit (controlled gates only)
        theta: Rotation angle (RX/RY/RZ only)
        matrix: Explicit 2x2 unitary (OpCode.U only)
    """
    opcode: OpCode
    target: int
    control: Optional[int] = None
    theta: Optional[float] = None
    matrix: Optional[np.ndarray] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        if self.control is not None and self.control == self.target:
            raise InvalidGateError(
                f"Control and target must differ, both are {self.target}"
            )
        if self.opcode in _ROTATIONS and self.theta is None:
            raise InvalidGateError(f"{self.opcode.name} requires an angle")
        if self.opcode == OpCode.CX and self.control is None:
            raise InvalidGateError("CX requires a control qubit")
        if self.opcode == OpCode.U:
            if self.matrix is None or np.shape(self.matrix) != (2, 2):
                raise InvalidGateError(
                    f"U requires a 2x2 matrix, got shape {np.shape(self.matrix)}"
                )

    def __str__(self) -> str:
        args = [] if self.control is None else [f"q{self.control}"]
        args.append(f"q{self.target}")
        head = self.opcode.name
        if self.theta is not None:
            head += f"({self.theta:.6g})"
        return f"{head} {', '.join(args)}"

    @property
    def kind(self) -> GateKind:
        return GateKind.SINGLE if self.control is None else GateKind.CONTROLLED

    def unitary(self) -> np.ndarray:
        """The 2x2 unitary applied to the target qubit."""
        if self.opcode == OpCode.H:
            return hadamard()
        if self.opcode in (OpCode.X, OpCode.CX):
            return pauli_x()
        if self.opcode in _ROTATIONS:
            return _ROTATIONS[self.opcode](self.theta)
        return _frozen(self.matrix)

    @classmethod
    def h(cls, target: int) -> "Gate":
        return cls(OpCode.H, target)

    @classmethod
    def x(cls, target: int) -> "Gate":
        return cls(OpCode.X, target)

    @classmethod
    def rx(cls, target: int, theta: float) -> "Gate":
        return cls(OpCode.RX, target, theta=float(theta))

    @classmethod
    def ry(cls, target: int, theta: float) -> "Gate":
        return cls(OpCode.RY, target, theta=float(theta))

    @classmethod
    def rz(cls, target: int, theta: float) -> "Gate":
        return cls(OpCode.RZ, target, theta=float(theta))

    @classmethod
    def cx(cls, control: int, target: int) -> "Gate":
        """Controlled-NOT: flip target where control reads 1."""
        return cls(OpCode.CX, target, control=control)

    @classmethod
    def single(cls, target: int, matrix: np.ndarray) -> "Gate":
        """Arbitrary single-qubit unitary."""
        return cls(OpCode.U, target, matrix=matrix)

    @classmethod
    def controlled(cls, control: int, target: int, matrix: np.ndarray) -> "Gate":
        """Arbitrary controlled unitary."""
        return cls(OpCode.U, target, control=control, matrix=matrix)
