"""
Quantum Register: Dense State-Vector Engine
===========================================

Owns the 2^n complex amplitudes of an n-qubit register.

Layout:
    - Basis index bit i = logical qubit i (little-endian, as in qiskit)
    - Amplitudes stored as one contiguous complex128 array
    - Gates act on a (2, 2, ..., 2) view of that array, so a single-qubit
      gate touches 2^(n-1) amplitude pairs and never builds a 2^n x 2^n matrix

Pair updates are simultaneous: both amplitudes of a pair are read before
either is written. The per-pair work is vectorised by numpy; gates
themselves are applied strictly in sequence.
"""

import logging
from typing import Optional, Tuple
import numpy as np

from .config import SimulatorConstants
from .errors import (
    CapacityExceededError,
    InvalidArgumentError,
    InvalidGateError,
    NormalizationError,
)
from .isa import Gate, GateKind, pauli_x


logger = logging.getLogger(__name__)


class StateVector:
    """
    Dense amplitude vector for one register.

    Example:
        >>> from qregister.isa import hadamard, pauli_x
        >>> state = StateVector.initialize(2)
        >>> state.apply_single(0, hadamard())
        >>> state.apply_controlled(0, 1, pauli_x())
        >>> state.probabilities()
        array([0.5, 0. , 0. , 0.5])
    """

    def __init__(self, amplitudes: np.ndarray):
        amplitudes = np.array(amplitudes, dtype=np.complex128)
        dim = amplitudes.shape[0] if amplitudes.ndim == 1 else 0
        if dim < 2 or dim & (dim - 1):
            raise InvalidArgumentError(
                f"Amplitude vector length must be a power of two >= 2, got {amplitudes.shape}"
            )
        self.n_qubits = dim.bit_length() - 1
        self._data = amplitudes

    @classmethod
    def initialize(cls, n_qubits: int, max_qubits: Optional[int] = None) -> "StateVector":
        """
        Allocate |0...0⟩.

        Args:
            n_qubits: Register size (>= 1)
            max_qubits: Ceiling on n_qubits (default: SimulatorConstants)

        Raises:
            InvalidArgumentError for n_qubits < 1
            CapacityExceededError when 2^n_qubits exceeds the ceiling
        """
        if isinstance(n_qubits, bool) or not isinstance(n_qubits, (int, np.integer)):
            raise InvalidArgumentError(f"Register size must be an integer, got {n_qubits!r}")
        if n_qubits < 1:
            raise InvalidArgumentError(f"Register size must be >= 1, got {n_qubits}")

        ceiling = SimulatorConstants.DEFAULT_MAX_QUBITS if max_qubits is None else max_qubits
        ceiling = min(ceiling, SimulatorConstants.HARD_MAX_QUBITS)
        if n_qubits > ceiling:
            raise CapacityExceededError(
                f"Cannot allocate {n_qubits} qubits ({2 ** n_qubits} amplitudes). "
                f"Max is {ceiling} qubits."
            )

        data = np.zeros(2 ** int(n_qubits), dtype=np.complex128)
        data[0] = 1.0
        logger.debug(f"Allocated {n_qubits}-qubit register ({data.nbytes} bytes)")
        return cls(data)

    @property
    def dim(self) -> int:
        return self._data.shape[0]

    @property
    def amplitudes(self) -> np.ndarray:
        """Copy of the amplitude vector."""
        return self._data.copy()

    def copy(self) -> "StateVector":
        return StateVector(self._data)

    def _validate_qubit(self, qubit: int) -> None:
        if not 0 <= qubit < self.n_qubits:
            raise InvalidArgumentError(
                f"Qubit {qubit} out of range [0, {self.n_qubits})"
            )

    @staticmethod
    def _validate_matrix(unitary: np.ndarray) -> np.ndarray:
        unitary = np.asarray(unitary, dtype=np.complex128)
        if unitary.shape != (2, 2):
            raise InvalidGateError(f"Expected a 2x2 unitary, got shape {unitary.shape}")
        return unitary

    def _pair_views(self, target: int,
                    control: Optional[int] = None) -> Tuple[np.ndarray, np.ndarray]:
        """
        Views of the target-bit-0 and target-bit-1 halves of the register.

        Axis k of the tensor view holds bit (n - 1 - k). With a control, both
        views are restricted to the control-bit-1 subspace. The trailing unit
        axis keeps the result a writable view when every bit axis is fixed.
        """
        n = self.n_qubits
        tensor = self._data.reshape((2,) * n + (1,))
        low = [slice(None)] * (n + 1)
        high = [slice(None)] * (n + 1)
        low[n - 1 - target] = 0
        high[n - 1 - target] = 1
        if control is not None:
            low[n - 1 - control] = 1
            high[n - 1 - control] = 1
        return tensor[tuple(low)], tensor[tuple(high)]

    # =========================================================================
    # GATE APPLICATION
    # =========================================================================

    def apply_single(self, qubit: int, unitary: np.ndarray) -> None:
        """
        Apply a 2x2 unitary to one qubit.

        Args:
            qubit: Target qubit index
            unitary: 2x2 complex matrix
        """
        self._validate_qubit(qubit)
        u = self._validate_matrix(unitary)
        self._update_pairs(u, *self._pair_views(qubit))

    def apply_controlled(self, control: int, target: int, unitary: np.ndarray) -> None:
        """
        Apply a 2x2 unitary to target wherever control reads 1.

        Raises:
            InvalidGateError if control == target
        """
        self._validate_qubit(control)
        self._validate_qubit(target)
        if control == target:
            raise InvalidGateError(f"Control and target must differ, both are {target}")
        u = self._validate_matrix(unitary)
        self._update_pairs(u, *self._pair_views(target, control))

    def apply_pauli_x(self, qubit: int) -> None:
        self.apply_single(qubit, pauli_x())

    def apply(self, gate: Gate) -> None:
        """Dispatch a gate descriptor to the matching primitive."""
        if gate.kind == GateKind.SINGLE:
            self.apply_single(gate.target, gate.unitary())
        else:
            self.apply_controlled(gate.control, gate.target, gate.unitary())

    @staticmethod
    def _update_pairs(u: np.ndarray, low: np.ndarray, high: np.ndarray) -> None:
        a0 = low.copy()
        a1 = high.copy()
        low[...] = u[0, 0] * a0 + u[0, 1] * a1
        high[...] = u[1, 0] * a0 + u[1, 1] * a1

    # =========================================================================
    # PROBABILITIES
    # =========================================================================

    def probabilities(self) -> np.ndarray:
        """|amplitude|^2 for every basis state."""
        return np.abs(self._data) ** 2

    def norm(self) -> float:
        """Total probability (squared norm)."""
        return float(np.vdot(self._data, self._data).real)

    def probability_of_one(self, qubit: int) -> float:
        """Marginal probability that a qubit reads 1."""
        self._validate_qubit(qubit)
        _, high = self._pair_views(qubit)
        return float(np.sum(np.abs(high) ** 2))

    def collapse(self, qubit: int, outcome: int) -> float:
        """
        Project a qubit onto an outcome and renormalize.

        Returns:
            Probability mass that survived the projection (before rescaling)
        """
        self._validate_qubit(qubit)
        low, high = self._pair_views(qubit)
        kept, dropped = (high, low) if outcome else (low, high)
        mass = float(np.sum(np.abs(kept) ** 2))
        dropped[...] = 0
        if mass > 0:
            kept /= np.sqrt(mass)
        return mass

    def check_normalization(self, tolerance: float = SimulatorConstants.TOLERANCE) -> None:
        """
        Raises:
            NormalizationError if |‖ψ‖² - 1| > tolerance
        """
        total = self.norm()
        if abs(total - 1.0) > tolerance:
            raise NormalizationError(
                f"Total probability {total!r} drifted beyond tolerance {tolerance}"
            )

    def __repr__(self) -> str:
        return f"StateVector(qubits={self.n_qubits}, dim={self.dim})"
