"""
Sequencer - Circuit Orchestrator
================================

Drives one register through its lifecycle:

    ALLOCATED -> PREPARED -> ENTANGLED -> EVOLVING -> MEASURED -> RESET -> RELEASED

Circuit family:
    1. PREPARE: H on every qubit
    2. GHZ: H on qubit 0, then CX(i-1, i) for i = 1..n-1
    3. EVOLVE (per step t): RX/RY/RZ interaction rotations on every qubit,
       then CX(idx, nb) for every qubit and every topology neighbour
    4. MEASURE: Born-rule readout of the requested qubits
    5. RESET: every qubit forced back to |0⟩

Gate order is fixed (ascending qubit, then resolver neighbour order) because
the CNOT cluster does not commute. Any gate failure aborts the run with a
SimulationError carrying the step and operation; there is no rollback.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Sequence
import numpy as np

from qiskit import QuantumCircuit, QuantumRegister, ClassicalRegister
from qiskit.circuit.library import UnitaryGate

from .config import SimulatorConfig, SimulatorConstants
from .errors import (
    InvalidArgumentError,
    SimulationCancelledError,
    SimulationError,
    SimulatorError,
)
from .isa import Gate, OpCode
from .measurement import MeasurementResult, measure, resolve_indices
from .register import StateVector
from .topology import Topology, neighbor_map


logger = logging.getLogger(__name__)


# =============================================================================
# PHASES & OPERATIONS
# =============================================================================

class Phase(Enum):
    ALLOCATED = auto()
    PREPARED = auto()
    ENTANGLED = auto()
    EVOLVING = auto()
    MEASURED = auto()
    RESET = auto()
    RELEASED = auto()


@dataclass
class Operation:
    """A recorded step of the session."""
    phase: Phase
    gate: Optional[Gate] = None
    step: Optional[int] = None
    label: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


def interaction_angle(step: int) -> float:
    """Base rotation angle 2*pi*t / 10 for evolution step t."""
    return 2 * np.pi * step / SimulatorConstants.ANGLE_DIVISOR


# =============================================================================
# SEQUENCER
# =============================================================================

class Sequencer:
    """
    One simulation session: a register, its topology and its random source.

    The session owns its numpy Generator, so independent sessions can run
    in parallel without sharing random state.

    Example:
        >>> seq = Sequencer(Topology.ring(4), seed=7)
        >>> seq.prepare().entangle_ghz().evolve(3)
        >>> result = seq.measure()
        >>> seq.reset()
        >>> seq.release()
    """

    def __init__(self,
                 topology: Topology,
                 register_size: Optional[int] = None,
                 seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None,
                 config: Optional[SimulatorConfig] = None):
        """
        Allocate a register in |0...0⟩.

        Args:
            topology: Interaction topology (must cover the register)
            register_size: Number of qubits (default: topology.n_qubits)
            seed: Seed for the session generator (overrides config.seed)
            rng: Explicit generator (overrides seed)
            config: Simulator settings (default: SimulatorConfig.load())
        """
        self.config = config or SimulatorConfig.load()
        n = topology.n_qubits if register_size is None else register_size
        if isinstance(n, bool) or not isinstance(n, (int, np.integer)) or n < 1:
            raise InvalidArgumentError(f"Register size must be a positive integer, got {n!r}")
        topology.validate(n)

        self.topology = topology
        self.n_qubits = int(n)
        self.neighbors = neighbor_map(topology)

        if rng is None:
            rng = np.random.default_rng(seed if seed is not None else self.config.seed)
        self.rng = rng

        self._state: Optional[StateVector] = StateVector.initialize(
            self.n_qubits, max_qubits=self.config.max_qubits
        )
        self.phase = Phase.ALLOCATED
        self.steps_completed = 0
        self.operations: List[Operation] = []
        self.last_result: Optional[MeasurementResult] = None

    # =========================================================================
    # INTERNALS
    # =========================================================================

    @property
    def state(self) -> StateVector:
        if self._state is None:
            raise SimulationError("Register has been released", operation="state")
        return self._state

    def _require(self, operation: str, *allowed: Phase) -> None:
        if self.phase not in allowed:
            names = ", ".join(p.name for p in allowed)
            raise SimulationError(
                f"Cannot {operation} in phase {self.phase.name} (expected {names})",
                step=None,
                operation=operation,
            )

    def _apply(self, gate: Gate, step: Optional[int] = None) -> None:
        try:
            self.state.apply(gate)
        except SimulatorError as err:
            raise SimulationError(
                f"Gate {gate} failed: {err}", step=step, operation=gate.opcode.name
            ) from err
        self.operations.append(Operation(self.phase, gate=gate, step=step))

    def _check(self, operation: str, step: Optional[int] = None) -> None:
        try:
            self.state.check_normalization(self.config.tolerance)
        except SimulatorError as err:
            raise SimulationError(str(err), step=step, operation=operation) from err

    # =========================================================================
    # CIRCUIT PHASES
    # =========================================================================

    def prepare(self) -> "Sequencer":
        """Uniform superposition: H on every qubit."""
        self._require("prepare", Phase.ALLOCATED)
        self.phase = Phase.PREPARED
        for q in range(self.n_qubits):
            self._apply(Gate.h(q))
        self._check("prepare")
        logger.info(f"🌊 Prepared {self.n_qubits}-qubit superposition")
        return self

    def entangle_ghz(self) -> "Sequencer":
        """
        GHZ chain: H on qubit 0, then CX(i-1, i) down the register.

        After prepare() this applies a second H to qubit 0, which undoes the
        first one on that qubit. From ALLOCATED it produces a GHZ state.
        """
        self._require("entangle_ghz", Phase.ALLOCATED, Phase.PREPARED)
        self.phase = Phase.ENTANGLED
        self._apply(Gate.h(0))
        for i in range(1, self.n_qubits):
            self._apply(Gate.cx(i - 1, i))
        self._check("entangle_ghz")
        logger.info(f"🔗 GHZ chain across {self.n_qubits} qubits")
        return self

    def evolve(self,
               steps: int,
               should_cancel: Optional[Callable[[], bool]] = None) -> "Sequencer":
        """
        Run interaction steps.

        Step numbering continues across calls, so evolve(2); evolve(1)
        equals evolve(3).

        Args:
            steps: Number of steps S >= 0
            should_cancel: Polled before every step; True aborts the run

        Raises:
            SimulationCancelledError when should_cancel fires
            SimulationError on any gate or normalization failure
        """
        if isinstance(steps, bool) or not isinstance(steps, (int, np.integer)) or steps < 0:
            raise InvalidArgumentError(f"Step count must be a non-negative integer, got {steps!r}")
        self._require("evolve", Phase.ENTANGLED, Phase.EVOLVING)
        self.phase = Phase.EVOLVING

        if steps:
            logger.info(f"🌀 Evolving {steps} step(s) on {self.topology}")

        for _ in range(steps):
            t = self.steps_completed + 1
            if should_cancel is not None and should_cancel():
                raise SimulationCancelledError(
                    "Evolution cancelled", step=t, operation="evolve"
                )
            self._interaction_layer(t)
            self._cluster_layer(t)
            self._check("evolve", step=t)
            self.steps_completed = t
            logger.debug(f"   step {t}: norm={self.state.norm():.12f}")

        return self

    def _interaction_layer(self, t: int) -> None:
        angle = interaction_angle(t)
        n = self.n_qubits
        for idx in range(n):
            self._apply(Gate.rx(idx, angle * (idx + 1) / n), step=t)
            self._apply(Gate.ry(idx, angle / 2), step=t)
            self._apply(Gate.rz(idx, angle / 3), step=t)

    def _cluster_layer(self, t: int) -> None:
        for idx in range(self.n_qubits):
            for nb in self.neighbors[idx]:
                # A torus side of length 1 makes a qubit its own neighbour
                try:
                    gate = Gate.cx(idx, nb)
                except SimulatorError as err:
                    raise SimulationError(
                        f"CX q{idx}, q{nb} rejected: {err}", step=t, operation="CX"
                    ) from err
                self._apply(gate, step=t)

    # =========================================================================
    # READOUT
    # =========================================================================

    def measure(self,
                indices: Optional[Sequence[int]] = None,
                reset: bool = False) -> MeasurementResult:
        """
        Measure qubits (default: all, ascending).

        Args:
            indices: Qubits to read, in order
            reset: Flip every qubit read as 1 back to |0⟩

        Returns:
            MeasurementResult aligned with the measured indices
        """
        self._require(
            "measure",
            Phase.ALLOCATED, Phase.PREPARED, Phase.ENTANGLED,
            Phase.EVOLVING, Phase.MEASURED, Phase.RESET,
        )
        targets = resolve_indices(indices, self.n_qubits)

        try:
            result = measure(
                self.state, targets, rng=self.rng,
                tolerance=self.config.tolerance,
            )
        except SimulatorError as err:
            raise SimulationError(str(err), operation="measure") from err

        self.operations.append(Operation(
            self.phase, label="MEASURE",
            metadata={"indices": list(result.indices), "outcomes": list(result.outcomes)},
        ))
        if self.phase != Phase.RESET:
            self.phase = Phase.MEASURED
        if reset:
            self._flip_ones(result)
        self.last_result = result
        logger.info(f"📖 Read {len(result)} qubit(s): {result.bitstring}")
        return result

    def _flip_ones(self, result: MeasurementResult) -> None:
        # Logged X gates, one per qubit read as 1 (repeats flipped once)
        for q, outcome in result.as_dict().items():
            if outcome == 1:
                self._apply(Gate.x(q))

    def reset(self) -> "Sequencer":
        """
        Force every qubit to |0⟩.

        Every qubit is read out, then X is applied to those found in |1⟩, so
        the register ends in |0...0⟩ whatever the outcomes were. The X gates
        are recorded in the operation log under Phase.RESET.
        """
        self._require(
            "reset",
            Phase.ALLOCATED, Phase.PREPARED, Phase.ENTANGLED,
            Phase.EVOLVING, Phase.MEASURED, Phase.RESET,
        )
        try:
            result = measure(
                self.state, None, rng=self.rng,
                tolerance=self.config.tolerance,
            )
        except SimulatorError as err:
            raise SimulationError(str(err), operation="reset") from err

        self.phase = Phase.RESET
        self._flip_ones(result)

        ground = abs(self.state.amplitudes[0]) ** 2
        if abs(ground - 1.0) > self.config.tolerance:
            raise SimulationError(
                f"Reset left ground-state probability {ground!r}", operation="reset"
            )

        self.operations.append(Operation(
            self.phase, label="RESET", metadata={"flipped": result.as_dict()},
        ))
        logger.info("♻️ Register reset to ground state")
        return self

    def release(self) -> None:
        """Drop the register. Terminal."""
        self._state = None
        self.phase = Phase.RELEASED

    def run(self,
            steps: int,
            measure_indices: Optional[Sequence[int]] = None,
            reset: bool = True,
            should_cancel: Optional[Callable[[], bool]] = None) -> MeasurementResult:
        """
        Full pipeline: prepare, GHZ, evolve, measure, then reset and release.

        Returns:
            MeasurementResult for the requested qubits
        """
        self.prepare()
        self.entangle_ghz()
        self.evolve(steps, should_cancel=should_cancel)
        result = self.measure(measure_indices)
        if reset:
            self.reset()
        self.release()
        return result

    def __enter__(self) -> "Sequencer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()

    # =========================================================================
    # CIRCUIT EXPORT
    # =========================================================================

    def gates(self) -> List[Gate]:
        """Applied gates, in order."""
        return [op.gate for op in self.operations if op.gate is not None]

    def to_circuit(self,
                   measurements: Optional[Sequence[int]] = None,
                   barriers: bool = True) -> QuantumCircuit:
        """
        Replay the applied gates as a qiskit QuantumCircuit.

        Qubit i of the circuit is qubit i of the register, so
        Statevector.from_instruction(circuit) reproduces the engine's state
        up to the first readout. Readouts themselves are not replayed; the X
        gates a reset applies are.

        Args:
            measurements: Qubits to measure at the end (default: none)
            barriers: Insert a barrier between phases and evolution steps

        Returns:
            The circuit
        """
        qreg = QuantumRegister(self.n_qubits, 'q')
        targets = resolve_indices(measurements, self.n_qubits) if measurements else ()
        if targets:
            creg = ClassicalRegister(len(targets), 'meas')
            qc = QuantumCircuit(qreg, creg, name="QRegister")
        else:
            qc = QuantumCircuit(qreg, name="QRegister")

        previous = None
        for op in self.operations:
            if op.gate is None:
                continue
            segment = (op.phase, op.step)
            if barriers and previous is not None and segment != previous:
                qc.barrier()
            previous = segment

            gate = op.gate
            if gate.opcode == OpCode.H:
                qc.h(qreg[gate.target])
            elif gate.opcode == OpCode.X:
                qc.x(qreg[gate.target])
            elif gate.opcode == OpCode.RX:
                qc.rx(gate.theta, qreg[gate.target])
            elif gate.opcode == OpCode.RY:
                qc.ry(gate.theta, qreg[gate.target])
            elif gate.opcode == OpCode.RZ:
                qc.rz(gate.theta, qreg[gate.target])
            elif gate.opcode == OpCode.CX:
                qc.cx(qreg[gate.control], qreg[gate.target])
            elif gate.control is None:
                qc.append(UnitaryGate(gate.unitary()), [qreg[gate.target]])
            else:
                qc.append(
                    UnitaryGate(gate.unitary()).control(1),
                    [qreg[gate.control], qreg[gate.target]],
                )

        if targets:
            if barriers:
                qc.barrier()
            for i, q in enumerate(targets):
                qc.measure(qreg[q], creg[i])

        return qc

    # =========================================================================
    # UTILITY
    # =========================================================================

    def dump(self) -> List[Dict[str, Any]]:
        """Dump the operation log for debugging."""
        return [
            {
                "idx": i,
                "phase": op.phase.name,
                "op": op.gate.opcode.name if op.gate is not None else op.label,
                "control": op.gate.control if op.gate is not None else None,
                "target": op.gate.target if op.gate is not None else None,
                "theta": op.gate.theta if op.gate is not None else None,
                "step": op.step,
                **op.metadata,
            }
            for i, op in enumerate(self.operations)
        ]

    def __repr__(self) -> str:
        return (
            f"Sequencer({self.topology}, qubits={self.n_qubits}, "
            f"phase={self.phase.name}, steps={self.steps_completed})"
        )
