"""
Measurement Unit - Born-Rule Sampling
=====================================

Reads qubits out of a StateVector one at a time.

For each requested qubit, in order:
    1. P(1) = sum of |a|^2 over basis states with that bit set
    2. Draw u in [0, 1) from the session generator; outcome = 1 if u < P(1)
    3. Collapse onto the outcome and renormalize
    4. Record the outcome

Later qubits see the state already collapsed by earlier ones, so correlated
registers (GHZ) read out consistently.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple
import numpy as np

from .config import SimulatorConstants
from .errors import DegenerateStateError, InvalidArgumentError
from .register import StateVector


logger = logging.getLogger(__name__)


# =============================================================================
# MEASUREMENT RESULT
# =============================================================================

@dataclass(frozen=True)
class MeasurementResult:
    """
    Outcomes of one measurement call.

    Behaves as a read-only sequence of the 0/1 outcomes.

    Attributes:
        indices: Qubits measured, in measurement order
        outcomes: 0/1 outcome for each entry of indices
        probabilities: P(1) of each qubit at the moment it was measured
    """
    indices: Tuple[int, ...]
    outcomes: Tuple[int, ...]
    probabilities: Tuple[float, ...] = ()

    def __iter__(self) -> Iterator[int]:
        return iter(self.outcomes)

    def __len__(self) -> int:
        return len(self.outcomes)

    def __getitem__(self, i):
        return self.outcomes[i]

    @property
    def bitstring(self) -> str:
        """Outcomes written left to right in measurement order."""
        return "".join(str(b) for b in self.outcomes)

    def as_dict(self) -> dict:
        """{qubit: outcome}."""
        return dict(zip(self.indices, self.outcomes))

    def __str__(self) -> str:
        pairs = [f"q{q}={v}" for q, v in zip(self.indices, self.outcomes)]
        return f"MeasurementResult({', '.join(pairs)})"


# =============================================================================
# MEASUREMENT
# =============================================================================

def resolve_indices(indices: Optional[Sequence[int]], n_qubits: int) -> Tuple[int, ...]:
    """
    Validate a measurement request.

    An empty or missing request means every qubit, ascending.

    Raises:
        InvalidArgumentError for any index outside [0, n_qubits)
    """
    if not indices:
        return tuple(range(n_qubits))
    resolved = []
    for q in indices:
        if isinstance(q, bool) or not isinstance(q, (int, np.integer)):
            raise InvalidArgumentError(f"Qubit index must be an integer, got {q!r}")
        if not 0 <= q < n_qubits:
            raise InvalidArgumentError(f"Qubit {q} out of range [0, {n_qubits})")
        resolved.append(int(q))
    return tuple(resolved)


def measure(state: StateVector,
            indices: Optional[Sequence[int]] = None,
            rng: Optional[np.random.Generator] = None,
            reset: bool = False,
            tolerance: float = SimulatorConstants.TOLERANCE) -> MeasurementResult:
    """
    Measure qubits in place.

    Args:
        state: Register to measure (mutated)
        indices: Qubits to measure, in order (default: all, ascending)
        rng: Random generator (default: a fresh numpy Generator)
        reset: Flip every qubit read as 1 back to 0 afterwards
        tolerance: Minimum surviving probability mass

    Returns:
        MeasurementResult aligned with the measured indices

    Raises:
        DegenerateStateError if a collapse leaves no probability mass
    """
    targets = resolve_indices(indices, state.n_qubits)
    rng = rng if rng is not None else np.random.default_rng()

    outcomes = []
    probs = []
    for q in targets:
        p_one = min(max(state.probability_of_one(q), 0.0), 1.0)
        outcome = 1 if rng.random() < p_one else 0

        mass = state.collapse(q, outcome)
        if mass <= tolerance:
            raise DegenerateStateError(
                f"Qubit {q} collapsed to {outcome} with surviving mass {mass!r}"
            )

        outcomes.append(outcome)
        probs.append(p_one)

    result = MeasurementResult(
        indices=targets,
        outcomes=tuple(outcomes),
        probabilities=tuple(probs),
    )
    logger.debug(f"Measured {result}")

    if reset:
        reset_measured(state, result)

    return result


def reset_measured(state: StateVector, result: MeasurementResult) -> None:
    """
    Return measured qubits to |0⟩.

    Applies X to every qubit recorded as 1. Unmeasured qubits keep their
    superposition. A qubit listed more than once is flipped at most once.
    """
    for q, outcome in result.as_dict().items():
        if outcome == 1:
            state.apply_pauli_x(q)
