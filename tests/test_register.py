"""
StateVector Engine Tests
========================

Tests allocation, gate application and normalization of the dense engine,
cross-checked against qiskit's Statevector.
"""

import sys
import os
import unittest
import numpy as np

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qiskit import QuantumCircuit
from qiskit.quantum_info import Statevector

from qregister.errors import (
    CapacityExceededError,
    InvalidArgumentError,
    InvalidGateError,
    NormalizationError,
)
from qregister.isa import Gate, hadamard, pauli_x, rotation_x, rotation_y
from qregister.register import StateVector


class TestAllocation(unittest.TestCase):

    def test_ground_state(self):
        state = StateVector.initialize(3)
        self.assertEqual(state.n_qubits, 3)
        self.assertEqual(state.dim, 8)
        expected = np.zeros(8)
        expected[0] = 1
        self.assertTrue(np.allclose(state.amplitudes, expected))

    def test_register_size_zero(self):
        with self.assertRaises(InvalidArgumentError):
            StateVector.initialize(0)

    def test_register_size_not_integer(self):
        with self.assertRaises(InvalidArgumentError):
            StateVector.initialize(2.5)
        with self.assertRaises(InvalidArgumentError):
            StateVector.initialize(True)

    def test_capacity(self):
        with self.assertRaises(CapacityExceededError):
            StateVector.initialize(5, max_qubits=4)
        with self.assertRaises(CapacityExceededError):
            StateVector.initialize(31)

    def test_bad_amplitude_length(self):
        with self.assertRaises(InvalidArgumentError):
            StateVector(np.array([1, 0, 0]))
        with self.assertRaises(InvalidArgumentError):
            StateVector(np.array([1]))

    def test_copy_is_independent(self):
        state = StateVector.initialize(2)
        clone = state.copy()
        clone.apply_pauli_x(0)
        self.assertAlmostEqual(abs(state.amplitudes[0]), 1.0)
        self.assertAlmostEqual(abs(clone.amplitudes[1]), 1.0)


class TestSingleQubitGates(unittest.TestCase):

    def test_hadamard_twice_round_trip(self):
        state = StateVector.initialize(1)
        state.apply_single(0, hadamard())
        self.assertTrue(np.allclose(state.amplitudes, [1 / np.sqrt(2), 1 / np.sqrt(2)]))
        state.apply_single(0, hadamard())
        self.assertTrue(np.allclose(state.amplitudes, [1, 0]))

    def test_bit_order(self):
        """Qubit i is bit i of the basis index."""
        state = StateVector.initialize(3)
        state.apply_pauli_x(0)
        self.assertAlmostEqual(abs(state.amplitudes[1]), 1.0)

        state = StateVector.initialize(3)
        state.apply_pauli_x(2)
        self.assertAlmostEqual(abs(state.amplitudes[4]), 1.0)

    def test_hadamard_on_high_qubit(self):
        state = StateVector.initialize(2)
        state.apply_single(1, hadamard())
        r = 1 / np.sqrt(2)
        self.assertTrue(np.allclose(state.amplitudes, [r, 0, r, 0]))

    def test_simultaneous_pair_update(self):
        """X swaps a pair; a sequential update would duplicate one amplitude."""
        state = StateVector(np.array([0.6, 0.8]))
        state.apply_pauli_x(0)
        self.assertTrue(np.allclose(state.amplitudes, [0.8, 0.6]))

    def test_qubit_out_of_range(self):
        state = StateVector.initialize(3)
        with self.assertRaises(InvalidArgumentError):
            state.apply_single(3, hadamard())
        with self.assertRaises(InvalidArgumentError):
            state.apply_single(-1, hadamard())

    def test_bad_matrix_shape(self):
        state = StateVector.initialize(2)
        with self.assertRaises(InvalidGateError):
            state.apply_single(0, np.eye(4))


class TestControlledGates(unittest.TestCase):

    def test_control_clear_is_identity(self):
        state = StateVector.initialize(3)
        state.apply_controlled(0, 1, pauli_x())
        self.assertAlmostEqual(abs(state.amplitudes[0]), 1.0)

    def test_control_set_flips_target(self):
        state = StateVector.initialize(3)
        state.apply_pauli_x(0)
        state.apply_controlled(0, 2, pauli_x())
        self.assertAlmostEqual(abs(state.amplitudes[0b101]), 1.0)

    def test_bell_pair(self):
        state = StateVector.initialize(2)
        state.apply_single(0, hadamard())
        state.apply_controlled(0, 1, pauli_x())
        self.assertTrue(np.allclose(state.probabilities(), [0.5, 0, 0, 0.5]))

    def test_control_equals_target(self):
        state = StateVector.initialize(2)
        with self.assertRaises(InvalidGateError):
            state.apply_controlled(1, 1, pauli_x())

    def test_controlled_rotation(self):
        """Only the control-set half of the register rotates."""
        state = StateVector.initialize(2)
        state.apply_single(1, hadamard())
        state.apply_controlled(1, 0, rotation_y(np.pi))
        r = 1 / np.sqrt(2)
        self.assertTrue(np.allclose(state.amplitudes, [r, 0, 0, r]))


class TestInvariants(unittest.TestCase):

    def test_normalization_preserved(self):
        rng = np.random.default_rng(2024)
        state = StateVector.initialize(5)
        for _ in range(300):
            kind = rng.integers(3)
            q = int(rng.integers(5))
            if kind == 0:
                state.apply_single(q, hadamard())
            elif kind == 1:
                state.apply_single(q, rotation_x(float(rng.uniform(-np.pi, np.pi))))
            else:
                c = int((q + 1 + rng.integers(4)) % 5)
                state.apply_controlled(c, q, pauli_x())
            self.assertLess(abs(state.norm() - 1.0), 1e-9)
        state.check_normalization()

    def test_check_normalization_raises(self):
        state = StateVector(np.array([1.0, 1.0]))
        with self.assertRaises(NormalizationError):
            state.check_normalization()

    def test_probability_of_one(self):
        state = StateVector.initialize(2)
        state.apply_single(0, hadamard())
        self.assertAlmostEqual(state.probability_of_one(0), 0.5)
        self.assertAlmostEqual(state.probability_of_one(1), 0.0)

    def test_collapse(self):
        state = StateVector.initialize(2)
        state.apply_single(0, hadamard())
        state.apply_controlled(0, 1, pauli_x())
        mass = state.collapse(1, 1)
        self.assertAlmostEqual(mass, 0.5)
        self.assertTrue(np.allclose(state.amplitudes, [0, 0, 0, 1]))

    def test_matches_qiskit(self):
        """Random gate sequence gives the same amplitudes as qiskit."""
        rng = np.random.default_rng(7)
        n = 4
        state = StateVector.initialize(n)
        qc = QuantumCircuit(n)
        for _ in range(60):
            q = int(rng.integers(n))
            theta = float(rng.uniform(0, 2 * np.pi))
            pick = int(rng.integers(5))
            if pick == 0:
                gate = Gate.h(q)
                qc.h(q)
            elif pick == 1:
                gate = Gate.rx(q, theta)
                qc.rx(theta, q)
            elif pick == 2:
                gate = Gate.ry(q, theta)
                qc.ry(theta, q)
            elif pick == 3:
                gate = Gate.rz(q, theta)
                qc.rz(theta, q)
            else:
                c = (q + 1 + int(rng.integers(n - 1))) % n
                gate = Gate.cx(c, q)
                qc.cx(c, q)
            state.apply(gate)

        expected = Statevector.from_instruction(qc).data
        self.assertTrue(np.allclose(state.amplitudes, expected, atol=1e-10))


if __name__ == "__main__":
    unittest.main(verbosity=2)
