"""
Runtime Tests
=============

simulate() validation and results, repeated-trial sampling and export.
"""

import sys
import os
import json
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qregister.config import SimulatorConfig
from qregister.errors import (
    CapacityExceededError,
    InvalidArgumentError,
    InvalidTopologyError,
    SimulationCancelledError,
    SimulationError,
)
from qregister.measurement import MeasurementResult
from qregister.runtime import (
    ExperimentLogger,
    SimulationRunner,
    TrialSummary,
    calculate_dominance,
    run_trials,
    simulate,
    verify_ghz,
)
from qregister.topology import Topology


class TestSimulateValidation(unittest.TestCase):
    """Every bad request fails before any amplitude is allocated."""

    def test_register_size_zero(self):
        with self.assertRaises(InvalidArgumentError):
            simulate(0, 1, Topology.ring(1))

    def test_single_qubit_ring(self):
        with self.assertRaises(InvalidTopologyError):
            simulate(1, 1, Topology.ring(1))

    def test_measure_index_out_of_range(self):
        with self.assertRaises(InvalidArgumentError):
            simulate(4, 1, Topology.ring(4), [0, 4])
        with self.assertRaises(InvalidArgumentError):
            simulate(4, 1, Topology.ring(4), [-1])

    def test_negative_steps(self):
        with self.assertRaises(InvalidArgumentError):
            simulate(4, -1, Topology.ring(4))

    def test_topology_mismatch(self):
        with self.assertRaises(InvalidTopologyError):
            simulate(5, 1, Topology.torus(2, 2))

    def test_index_checked_before_capacity(self):
        with self.assertRaises(InvalidArgumentError):
            simulate(30, 0, Topology.ring(30), [31])

    def test_capacity(self):
        with self.assertRaises(CapacityExceededError):
            simulate(26, 0, Topology.ring(26))

    def test_degenerate_torus_fails_in_evolution(self):
        with self.assertRaises(SimulationError):
            simulate(1, 1, Topology.torus(1, 1))

    def test_non_integer_topology(self):
        with self.assertRaises(InvalidArgumentError):
            simulate(2, 1, Topology.ring(2.0))
        with self.assertRaises(InvalidTopologyError):
            simulate(4, 1, Topology.torus(2.0, 2))


class TestEnvironmentConfig(unittest.TestCase):
    """Without an explicit config, QREGISTER_* variables reach the entry points."""

    def setUp(self):
        self._saved = {k: v for k, v in os.environ.items() if k.startswith("QREGISTER_")}
        for key in self._saved:
            del os.environ[key]

    def tearDown(self):
        for key in [k for k in os.environ if k.startswith("QREGISTER_")]:
            del os.environ[key]
        os.environ.update(self._saved)

    def test_env_ceiling_reaches_simulate(self):
        os.environ["QREGISTER_MAX_QUBITS"] = "3"
        with self.assertRaises(CapacityExceededError):
            simulate(4, 0, Topology.ring(4))
        self.assertEqual(len(simulate(3, 0, Topology.ring(3), seed=0)), 3)

    def test_env_shots_reach_runner(self):
        os.environ["QREGISTER_SHOTS"] = "64"
        summary = SimulationRunner(seed=0).run_trials(2, 0, Topology.ring(2))
        self.assertEqual(summary.shots, 64)

    def test_env_seed_reaches_runner(self):
        os.environ["QREGISTER_SEED"] = "17"
        a = SimulationRunner().run_trials(3, 2, Topology.ring(3), shots=50)
        b = SimulationRunner().run_trials(3, 2, Topology.ring(3), shots=50)
        self.assertEqual(a.counts, b.counts)

    def test_explicit_config_wins(self):
        os.environ["QREGISTER_MAX_QUBITS"] = "3"
        result = simulate(4, 0, Topology.ring(4), seed=0, config=SimulatorConfig())
        self.assertEqual(len(result), 4)


class TestSimulateResults(unittest.TestCase):

    def test_all_qubits_by_default(self):
        result = simulate(4, 3, Topology.ring(4), seed=42)
        self.assertIsInstance(result, MeasurementResult)
        self.assertEqual(result.indices, (0, 1, 2, 3))
        self.assertTrue(all(b in (0, 1) for b in result))

    def test_requested_indices(self):
        result = simulate(6, 2, Topology.torus(3, 2), [5, 0, 3], seed=1)
        self.assertEqual(result.indices, (5, 0, 3))
        self.assertEqual(len(result), 3)

    def test_zero_steps(self):
        """Without evolution qubit 0 is back in |0⟩ after the double H."""
        for seed in range(10):
            result = simulate(3, 0, Topology.ring(3), seed=seed)
            self.assertEqual(result[0], 0)

    def test_seed_determinism(self):
        a = simulate(5, 4, Topology.ring(5), seed=123)
        b = simulate(5, 4, Topology.ring(5), seed=123)
        self.assertEqual(list(a), list(b))

    def test_single_qubit_torus_without_evolution(self):
        result = simulate(1, 0, Topology.torus(1, 1), seed=0)
        self.assertEqual(list(result), [0])

    def test_cancellation(self):
        with self.assertRaises(SimulationCancelledError):
            simulate(3, 4, Topology.ring(3), should_cancel=lambda: True)


class TestTrials(unittest.TestCase):

    def test_ghz_counts(self):
        runner = SimulationRunner(seed=7)
        summary = runner.run_trials(3, 0, Topology.ring(3), shots=2000, prepare=False)
        self.assertEqual(set(summary.counts), {"000", "111"})
        self.assertEqual(sum(summary.counts.values()), 2000)
        self.assertAlmostEqual(summary.frequency("111"), 0.5, delta=0.05)
        passed, msg = verify_ghz(summary)
        self.assertTrue(passed, msg)

    def test_prepared_register_leading_zero(self):
        summary = run_trials(3, 0, Topology.ring(3), shots=200, seed=3)
        self.assertTrue(all(key.startswith("0") for key in summary.counts))
        self.assertEqual(summary.metadata["prepare"], True)
        self.assertEqual(summary.metadata["topology"], "Ring(3)")

    def test_verify_ghz_rejects_mixed(self):
        summary = TrialSummary(
            counts={"00": 5, "01": 1}, dominance=5 / 6, top_state="00",
            shots=6, indices=[0, 1],
        )
        passed, _ = verify_ghz(summary)
        self.assertFalse(passed)

    def test_bitstrings_follow_index_order(self):
        runner = SimulationRunner(seed=0)
        summary = runner.run_trials(3, 0, Topology.ring(3), [2, 0], shots=100)
        self.assertEqual(summary.indices, [2, 0])
        self.assertTrue(all(len(key) == 2 and key[1] == "0" for key in summary.counts))

    def test_invalid_shots(self):
        runner = SimulationRunner(seed=0)
        with self.assertRaises(InvalidArgumentError):
            runner.run_trials(3, 1, Topology.ring(3), shots=0)

    def test_cancellation(self):
        runner = SimulationRunner(seed=0)
        with self.assertRaises(SimulationCancelledError):
            runner.run_trials(3, 2, Topology.ring(3), shots=10, should_cancel=lambda: True)


class TestDominance(unittest.TestCase):

    def test_dominance(self):
        self.assertEqual(calculate_dominance({"00": 3, "11": 1}), (0.75, "00"))

    def test_empty(self):
        self.assertEqual(calculate_dominance({}), (0.0, ""))


class TestExperimentLogger(unittest.TestCase):

    def test_log_result(self):
        summary = run_trials(2, 1, Topology.ring(2), shots=50, seed=11)
        with tempfile.TemporaryDirectory() as tmp:
            path = ExperimentLogger(tmp).log_result(summary)
            self.assertTrue(os.path.basename(path).startswith("trials_"))
            with open(path) as f:
                data = json.load(f)
        self.assertEqual(data["shots"], 50)
        self.assertEqual(data["counts"], summary.counts)
        self.assertEqual(data["top_state"], summary.top_state)
        self.assertEqual(data["metadata"]["steps"], 1)


if __name__ == "__main__":
    unittest.main(verbosity=2)
