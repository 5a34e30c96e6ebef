"""
Simulation Runtime
==================

Entry points into the register simulator.

Features:
    - simulate(): one validated run, returning one measurement result set
    - SimulationRunner.run_trials(): evolve once, then sample many shots
    - Dominance and GHZ-consistency checks on sampled counts
    - Experiment logging and JSON export
"""

import os
import json
import logging
from datetime import datetime
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
import numpy as np

from .config import SimulatorConfig, configure_logging
from .errors import InvalidArgumentError
from .measurement import MeasurementResult, measure, resolve_indices
from .sequencer import Sequencer
from .topology import Topology


logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


# =============================================================================
# VALIDATION
# =============================================================================

def validate_request(register_size: int,
                     steps: int,
                     topology: Topology,
                     measure_indices: Optional[Sequence[int]] = None) -> Tuple[int, ...]:
    """
    Check a simulation request before any state is allocated.

    Returns:
        The resolved measurement indices (all qubits, ascending, if empty)

    Raises:
        InvalidArgumentError (or InvalidTopologyError) on any bad input
    """
    if isinstance(register_size, bool) or not isinstance(register_size, (int, np.integer)):
        raise InvalidArgumentError(f"Register size must be an integer, got {register_size!r}")
    if register_size < 1:
        raise InvalidArgumentError(f"Register size must be >= 1, got {register_size}")
    if isinstance(steps, bool) or not isinstance(steps, (int, np.integer)) or steps < 0:
        raise InvalidArgumentError(f"Step count must be a non-negative integer, got {steps!r}")
    topology.validate(register_size)
    return resolve_indices(measure_indices, register_size)


# =============================================================================
# SINGLE RUN
# =============================================================================

def simulate(register_size: int,
             steps: int,
             topology: Topology,
             measure_indices: Optional[Sequence[int]] = None,
             *,
             seed: Optional[int] = None,
             rng: Optional[np.random.Generator] = None,
             config: Optional[SimulatorConfig] = None,
             reset: bool = True,
             should_cancel: Optional[Callable[[], bool]] = None) -> MeasurementResult:
    """
    Run the full circuit once and measure.

    Pipeline: prepare -> GHZ -> evolve(steps) -> measure -> reset -> release.

    Args:
        register_size: Number of qubits (>= 1, >= 2 for a ring)
        steps: Evolution steps (>= 0)
        topology: Ring or torus covering the register
        measure_indices: Qubits to read (empty = all, ascending)
        seed: Seed for this run's generator
        rng: Explicit generator (overrides seed)
        config: Simulator settings (default: SimulatorConfig.load(), so
            QREGISTER_* variables and qregister.json apply)
        reset: Return the register to |0...0⟩ before releasing it
        should_cancel: Cooperative cancellation check, polled between steps

    Returns:
        MeasurementResult aligned with the measured indices
    """
    targets = validate_request(register_size, steps, topology, measure_indices)
    seq = Sequencer(topology, register_size, seed=seed, rng=rng, config=config)
    return seq.run(steps, targets, reset=reset, should_cancel=should_cancel)


# =============================================================================
# REPEATED TRIALS
# =============================================================================

@dataclass
class TrialSummary:
    """
    Outcome histogram of repeated runs.

    Attributes:
        counts: {bitstring: count}, bits in measured-index order
        dominance: Frequency of the most common bitstring
        top_state: Most common bitstring
        shots: Number of trials
        indices: Qubits measured
        metadata: Run parameters and derived metrics
    """
    counts: Dict[str, int]
    dominance: float
    top_state: str
    shots: int
    indices: List[int] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def frequency(self, bitstring: str) -> float:
        return self.counts.get(bitstring, 0) / max(self.shots, 1)

    def __str__(self) -> str:
        return (
            f"TrialSummary({self.shots} shots)\n"
            f"  Top State: |{self.top_state}⟩ @ {self.dominance:.2%}\n"
            f"  Distinct outcomes: {len(self.counts)}"
        )


def calculate_dominance(counts: Dict[str, int]) -> Tuple[float, str]:
    """
    Frequency and bitstring of the most common outcome.

    Returns:
        (dominance, top_state); (0.0, "") for empty counts
    """
    total = sum(counts.values())
    if total == 0:
        return 0.0, ""
    top_state, top_count = max(counts.items(), key=lambda x: x[1])
    return top_count / total, top_state


class SimulationRunner:
    """
    Samples many measurement outcomes from one evolved register.

    Evolution is deterministic, so the register is evolved once and every
    shot measures a fresh copy of the pre-measurement state.

    Example:
        >>> runner = SimulationRunner(seed=1)
        >>> summary = runner.run_trials(4, 3, Topology.ring(4), shots=1000)
        >>> print(summary.top_state)
    """

    def __init__(self,
                 config: Optional[SimulatorConfig] = None,
                 seed: Optional[int] = None):
        self.config = config or SimulatorConfig.load()
        configure_logging(self.config.log_level)
        seed = seed if seed is not None else self.config.seed
        self.rng = np.random.default_rng(seed)

    def run_trials(self,
                   register_size: int,
                   steps: int,
                   topology: Topology,
                   measure_indices: Optional[Sequence[int]] = None,
                   shots: Optional[int] = None,
                   prepare: bool = True,
                   should_cancel: Optional[Callable[[], bool]] = None) -> TrialSummary:
        """
        Evolve once and sample repeated measurements.

        Args:
            register_size: Number of qubits
            steps: Evolution steps
            topology: Ring or torus covering the register
            measure_indices: Qubits to read (empty = all, ascending)
            shots: Number of samples (default: config.shots)
            prepare: Apply the uniform-superposition layer before the GHZ chain
            should_cancel: Cooperative cancellation check

        Returns:
            TrialSummary of the sampled bitstrings
        """
        targets = validate_request(register_size, steps, topology, measure_indices)
        shots = self.config.shots if shots is None else shots
        if isinstance(shots, bool) or not isinstance(shots, (int, np.integer)) or shots < 1:
            raise InvalidArgumentError(f"Shot count must be a positive integer, got {shots!r}")

        with Sequencer(topology, register_size, rng=self.rng, config=self.config) as seq:
            if prepare:
                seq.prepare()
            seq.entangle_ghz()
            seq.evolve(steps, should_cancel=should_cancel)
            snapshot = seq.state.copy()

        logger.info(f"🚀 Sampling {shots} shot(s) on {topology}...")
        counts: Dict[str, int] = {}
        for _ in range(shots):
            result = measure(
                snapshot.copy(), targets, rng=self.rng,
                tolerance=self.config.tolerance,
            )
            key = result.bitstring
            counts[key] = counts.get(key, 0) + 1

        dominance, top_state = calculate_dominance(counts)
        probs = np.array(list(counts.values()), dtype=float) / shots

        summary = TrialSummary(
            counts=counts,
            dominance=dominance,
            top_state=top_state,
            shots=shots,
            indices=list(targets),
            metadata={
                "register_size": register_size,
                "steps": steps,
                "topology": str(topology),
                "prepare": prepare,
                "purity": float(np.sum(probs ** 2)),
            },
        )
        logger.info(f"✅ Top state |{top_state}⟩ @ {dominance:.2%}")
        return summary


def run_trials(register_size: int,
               steps: int,
               topology: Topology,
               measure_indices: Optional[Sequence[int]] = None,
               shots: Optional[int] = None,
               seed: Optional[int] = None) -> TrialSummary:
    """Convenience wrapper around SimulationRunner.run_trials."""
    runner = SimulationRunner(seed=seed)
    return runner.run_trials(register_size, steps, topology, measure_indices, shots=shots)


def verify_ghz(summary: TrialSummary) -> Tuple[bool, str]:
    """
    Check that sampled counts look like a GHZ readout.

    Passes when every outcome is all-0 or all-1.

    Returns:
        Tuple of (passed, message)
    """
    width = len(summary.indices)
    zeros, ones = "0" * width, "1" * width
    mixed = summary.shots - summary.counts.get(zeros, 0) - summary.counts.get(ones, 0)
    if mixed:
        return False, f"MIXED OUTCOMES: {mixed}/{summary.shots} shots disagree"
    return True, (
        f"GHZ CONFIRMED (|{zeros}⟩ {summary.frequency(zeros):.2%}, "
        f"|{ones}⟩ {summary.frequency(ones):.2%})"
    )


# =============================================================================
# EXPERIMENT LOGGER
# =============================================================================

class ExperimentLogger:
    """Logs trial summaries to JSON files."""

    def __init__(self, output_dir: str = "."):
        self.output_dir = output_dir
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    def log_result(self, summary: TrialSummary, name: str = "trials") -> str:
        """
        Write one summary to <output_dir>/<name>_<timestamp>.json.

        Returns:
            Path of the written file
        """
        filename = f"{name}_{self.timestamp}.json"
        filepath = os.path.join(self.output_dir, filename)

        data = {
            "timestamp": self.timestamp,
            "shots": summary.shots,
            "indices": summary.indices,
            "counts": summary.counts,
            "dominance": summary.dominance,
            "top_state": summary.top_state,
            "metadata": summary.metadata,
        }

        with open(filepath, 'w') as f:
            json.dump(data, f, indent=4)

        logger.info(f"💾 Saved: {filepath}")
        return filepath
