"""
qregister: Quantum Register Simulator
=====================================

Dense state-vector simulation of a closed n-qubit register driven by a
ring or torus interaction topology.

Core Components:
    - topology: Ring / torus neighbour resolution
    - isa: Fixed gate set (H, X, RX, RY, RZ, CX) and gate descriptors
    - register: StateVector engine (2^n complex amplitudes)
    - measurement: Born-rule sampling with collapse and reset
    - sequencer: Circuit orchestrator (prepare, GHZ, evolve, measure, reset)
    - runtime: simulate() entry point and repeated-trial sampling

Example:
    >>> from qregister import Topology, simulate
    >>>
    >>> result = simulate(4, steps=3, topology=Topology.ring(4), seed=42)
    >>> print(list(result))
"""

from .config import (
    SimulatorConstants,
    SimulatorConfig,
    configure_logging,
)

from .errors import (
    SimulatorError,
    InvalidArgumentError,
    InvalidTopologyError,
    CapacityExceededError,
    InvalidGateError,
    DegenerateStateError,
    NormalizationError,
    SimulationError,
    SimulationCancelledError,
)

from .topology import (
    Topology,
    TopologyKind,
    neighbors,
    neighbor_map,
)

from .isa import (
    OpCode,
    GateKind,
    Gate,
    hadamard,
    pauli_x,
    rotation_x,
    rotation_y,
    rotation_z,
    is_unitary,
)

from .register import StateVector

from .measurement import (
    MeasurementResult,
    measure,
    reset_measured,
)

from .sequencer import (
    Sequencer,
    Phase,
    Operation,
    interaction_angle,
)

from .runtime import (
    simulate,
    run_trials,
    SimulationRunner,
    TrialSummary,
    ExperimentLogger,
    calculate_dominance,
    verify_ghz,
)

__version__ = "1.0.0"
__all__ = [
    # Config
    "SimulatorConstants",
    "SimulatorConfig",
    "configure_logging",
    # Errors
    "SimulatorError",
    "InvalidArgumentError",
    "InvalidTopologyError",
    "CapacityExceededError",
    "InvalidGateError",
    "DegenerateStateError",
    "NormalizationError",
    "SimulationError",
    "SimulationCancelledError",
    # Topology
    "Topology",
    "TopologyKind",
    "neighbors",
    "neighbor_map",
    # Gates
    "OpCode",
    "GateKind",
    "Gate",
    "hadamard",
    "pauli_x",
    "rotation_x",
    "rotation_y",
    "rotation_z",
    "is_unitary",
    # Engine
    "StateVector",
    "MeasurementResult",
    "measure",
    "reset_measured",
    # Orchestration
    "Sequencer",
    "Phase",
    "Operation",
    "interaction_angle",
    # Runtime
    "simulate",
    "run_trials",
    "SimulationRunner",
    "TrialSummary",
    "ExperimentLogger",
    "calculate_dominance",
    "verify_ghz",
]
