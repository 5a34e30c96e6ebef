"""
Run Torus Evolution
===================

Evolves a 3x3 torus register for increasing step counts, samples each
evolved state and exports the summaries as JSON (plot them with plot.py).

Usage:
    python examples/run_torus_evolution.py [max_steps]
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from qregister import ExperimentLogger, Sequencer, SimulationRunner, Topology


def main():
    max_steps = int(sys.argv[1]) if len(sys.argv) > 1 else 5
    topology = Topology.torus(3, 3)

    print("=" * 60)
    print(f"    QREGISTER: {topology} Evolution Sweep")
    print("=" * 60)

    # One reference circuit for inspection
    with Sequencer(topology, seed=0) as seq:
        seq.prepare().entangle_ghz().evolve(1)
        circuit = seq.to_circuit(measurements=list(range(topology.n_qubits)))
    print(f"\n📝 One step = {circuit.size()} ops, depth {circuit.depth()}")

    runner = SimulationRunner(seed=7)
    exporter = ExperimentLogger(".")

    print(f"\n{'Steps':>5} | {'Top State':>11} | {'Dominance':>9} | {'Purity':>7}")
    print("-" * 44)
    for steps in range(max_steps + 1):
        summary = runner.run_trials(topology.n_qubits, steps, topology, shots=2048)
        print(f"{steps:>5} | {summary.top_state:>11} | "
              f"{summary.dominance:>9.2%} | {summary.metadata['purity']:>7.4f}")
        exporter.log_result(summary, name=f"trials_torus_s{steps}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
