"""
Run GHZ Check
=============

Builds the GHZ chain on a ring register (no preparation layer, no
evolution), samples it and checks that every shot reads all-0 or all-1.

Usage:
    python examples/run_ghz_check.py [n_qubits]
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qregister import SimulationRunner, Topology, verify_ghz


def main():
    n = int(sys.argv[1]) if len(sys.argv) > 1 else 5

    print("=" * 60)
    print(f"    QREGISTER: {n}-Qubit GHZ Verification")
    print("=" * 60)

    runner = SimulationRunner(seed=2024)
    summary = runner.run_trials(n, 0, Topology.ring(n), shots=4096, prepare=False)

    print("\n" + "=" * 60)
    print("    RESULTS")
    print("=" * 60)
    print(f"\nRaw Counts: {summary.counts}")
    print(f"\nDominance: {summary.dominance:.2%}")
    print(f"Top State: |{summary.top_state}⟩")

    zeros, ones = "0" * n, "1" * n
    p_0 = summary.frequency(zeros)
    p_1 = summary.frequency(ones)

    print(f"\n📊 GHZ ANALYSIS:")
    print(f"   |{zeros}⟩: {p_0:.2%}")
    print(f"   |{ones}⟩: {p_1:.2%}")
    print(f"   Balance: {abs(p_0 - p_1):.2%}")

    print("\n" + "-" * 60)
    passed, msg = verify_ghz(summary)
    if passed:
        print(f"✅ SUCCESS: {msg}")
    else:
        print(f"⚠️ WARNING: {msg}")

    return 0 if passed else 1


if __name__ == "__main__":
    sys.exit(main())
