# Copyright (c) 2023 - 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Tests for the simulator module.

This module tests the public entry point of the batch simulator end to end:
  - the result matrix shape, dtype and the empty-circuit sentinel,
  - agreement with qiskit state vectors for parameterized circuits,
  - input-shape validation and the propagation of normalization, topology and engine errors,
  - both scheduling strategies and the table form of the parameter input,
  - CPU discovery.
"""

from __future__ import annotations

import numpy as np
import pytest
from qiskit.circuit import Parameter, QuantumCircuit
from qiskit.quantum_info import SparsePauliOp, Statevector

from mqt.mpsbatch import simulator
from mqt.mpsbatch.core.data_structures.simulation_parameters import BatchSimParams
from mqt.mpsbatch.exceptions import InputShapeError, NormalizationError, SimulationError, TopologyError


def hardware_efficient_ansatz(num_qubits: int, layers: int) -> QuantumCircuit:
    """Parameterized ansatz of RY/RZ rotations and a CX ladder.

    Returns:
        QuantumCircuit: The ansatz with parameters named t0, t1, ...
    """
    qc = QuantumCircuit(num_qubits)
    count = 0
    for _ in range(layers):
        for q in range(num_qubits):
            qc.ry(Parameter(f"t{count}"), q)
            qc.rz(Parameter(f"t{count + 1}"), q)
            count += 2
        for q in range(num_qubits - 1):
            qc.cx(q, q + 1)
    return qc


def test_concrete_scenario() -> None:
    """Test identity on one qubit with <Z> = 1 next to an empty circuit yielding the sentinel."""
    identity = QuantumCircuit(1)
    identity.id(0)
    empty = QuantumCircuit(1)

    results = simulator.run([identity, empty], None, [["Z"], ["Z"]], BatchSimParams(max_workers=1))
    assert results.shape == (2, 1)
    assert results.dtype == np.float32
    assert results[0, 0] == pytest.approx(1.0)
    assert results[1, 0] == -2.0


def test_sentinel_in_every_column() -> None:
    """Test that an empty circuit yields -2.0 for every requested observable."""
    empty = QuantumCircuit(3)
    empty.measure_all()
    observables = [["ZII", "XXX", SparsePauliOp.from_list([("IIY", 0.5), ("ZZZ", 2.0)])]]
    results = simulator.run([empty], [{}], observables)
    np.testing.assert_array_equal(results, [[-2.0, -2.0, -2.0]])


def test_empty_batch() -> None:
    """Test that an empty batch gives an empty matrix."""
    results = simulator.run([], [], [])
    assert results.shape == (0, 0)


@pytest.mark.parametrize("strategy", ["sequential", "parallel"])
def test_matches_statevector(strategy: str) -> None:
    """Test parameterized circuits against qiskit with a bond dimension large enough to be exact."""
    rng = np.random.default_rng(7)
    programs = []
    bindings = []
    for num_qubits in (2, 4, 3, 5):
        qc = hardware_efficient_ansatz(num_qubits, layers=2)
        programs.append(qc)
        bindings.append({param.name: float(rng.uniform(-np.pi, np.pi)) for param in qc.parameters})

    observables = [
        [
            SparsePauliOp.from_list([("Z" * qc.num_qubits, 1.0)]),
            SparsePauliOp.from_list([("X" + "I" * (qc.num_qubits - 1), 0.5), ("I" * (qc.num_qubits - 2) + "YY", -1.5)]),
        ]
        for qc in programs
    ]

    sim_params = BatchSimParams(bond_dim=32, threshold=0.0, strategy=strategy, max_workers=3)
    results = simulator.run(programs, bindings, observables, sim_params)

    for i, qc in enumerate(programs):
        state = Statevector(qc.assign_parameters({p: bindings[i][p.name] for p in qc.parameters}))
        expected = [state.expectation_value(observable).real for observable in observables[i]]
        np.testing.assert_allclose(results[i], expected, atol=1e-5)


def test_truncated_simulation() -> None:
    """Test that a bond dimension of two still yields bounded, reproducible values."""
    qc = hardware_efficient_ansatz(8, layers=3)
    bindings = {param.name: 0.3 * i for i, param in enumerate(qc.parameters)}
    observables = [["Z", "ZZ", "X" * 8]]
    sim_params = BatchSimParams(bond_dim=2)

    first = simulator.run([qc], [bindings], observables, sim_params)
    second = simulator.run([qc], [bindings], observables, sim_params)
    assert np.all(np.isfinite(first))
    assert np.all(np.abs(first) <= 1.0 + 1e-5)
    np.testing.assert_array_equal(first, second)


def test_qasm_programs() -> None:
    """Test that OpenQASM 2 programs can be mixed with circuits."""
    qasm = 'OPENQASM 2.0;\ninclude "qelib1.inc";\nqreg q[2];\nx q[1];\n'
    qc = QuantumCircuit(2)
    qc.h(0)
    results = simulator.run([qasm, qc], None, [["ZI", "IX"], ["ZI", "IX"]])
    np.testing.assert_allclose(results, [[-1.0, 0.0], [1.0, 1.0]], atol=1e-6)


def test_run_symbol_table() -> None:
    """Test the table form of the parameter input."""
    theta = Parameter("theta")
    qc = QuantumCircuit(1)
    qc.ry(theta, 0)
    values = np.array([[0.0, 9.0], [np.pi / 2, 9.0], [np.pi, 9.0]])

    results = simulator.run_symbol_table([qc, qc, qc], ["theta", "unused"], values, [["Z"], ["Z"], ["Z"]])
    np.testing.assert_allclose(results[:, 0], [1.0, 0.0, -1.0], atol=1e-6)

    with pytest.raises(InputShapeError, match="rows of symbol values"):
        simulator.run_symbol_table([qc], ["theta", "unused"], values, [["Z"]])


@pytest.mark.parametrize(
    ("programs", "bindings", "observables", "match"),
    [
        ([QuantumCircuit(1)] * 2, [{}], [["Z"], ["Z"]], "parameter binding maps"),
        ([QuantumCircuit(1)] * 2, [{}, {}], [["Z"]], "observable rows"),
        ([QuantumCircuit(1)] * 2, [{}, {}], [["Z"], ["Z", "X"]], "expected 1"),
        ([QuantumCircuit(1)], [[0.1]], [["Z"]], "must be a mapping"),
        ([QuantumCircuit(1)], [{}], ["Z"], "must be a list"),
    ],
)
def test_input_shape_errors(
    programs: list[object], bindings: list[object], observables: list[object], match: str
) -> None:
    """Test that malformed batches raise an InputShapeError before any simulation."""
    with pytest.raises(InputShapeError, match=match):
        simulator.run(programs, bindings, observables)  # type: ignore[arg-type]


def test_single_normalization_failure_fails_batch() -> None:
    """Test that one unbound circuit fails the whole call."""
    theta = Parameter("theta")
    qc = QuantumCircuit(1)
    qc.rx(theta, 0)
    bindings = [{"theta": 0.1}, {"theta": 0.2}, {}, {"theta": 0.4}]
    with pytest.raises(NormalizationError, match="Batch item 2"):
        simulator.run([qc] * 4, bindings, [["Z"]] * 4, BatchSimParams(max_workers=2))


def test_topology_error() -> None:
    """Test that a gate between non-neighbouring qubits fails the call."""
    qc = QuantumCircuit(3)
    qc.cz(0, 2)
    with pytest.raises(TopologyError, match="Circuit 0"):
        simulator.run([qc], None, [["Z"]])


def test_errors_share_base_class() -> None:
    """Test that every failure can be caught as a SimulationError."""
    qc = QuantumCircuit(1)
    qc.reset(0)
    with pytest.raises(SimulationError):
        simulator.run([qc], None, [["Z"]])
    with pytest.raises(ValueError, match="observable rows"):
        simulator.run([qc], None, [])


def test_available_cpus_slurm(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that SLURM variables take precedence and malformed values are skipped."""
    monkeypatch.setenv("SLURM_CPUS_PER_TASK", "abc")
    monkeypatch.setenv("SLURM_CPUS_ON_NODE", "6")
    assert simulator.available_cpus() == 6

    monkeypatch.setenv("SLURM_CPUS_PER_TASK", "3")
    assert simulator.available_cpus() == 3


def test_available_cpus_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test the fallback to the process affinity or the CPU count."""
    monkeypatch.delenv("SLURM_CPUS_PER_TASK", raising=False)
    monkeypatch.delenv("SLURM_CPUS_ON_NODE", raising=False)
    assert simulator.available_cpus() >= 1


def test_resolve_workers(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that all CPUs but one are used unless the number of workers is configured."""
    monkeypatch.setattr(simulator, "available_cpus", lambda: 8)
    assert simulator.resolve_workers(BatchSimParams()) == 7
    assert simulator.resolve_workers(BatchSimParams(max_workers=2)) == 2
    monkeypatch.setattr(simulator, "available_cpus", lambda: 1)
    assert simulator.resolve_workers(BatchSimParams()) == 1


@pytest.mark.parametrize("strategy", ["sequential", "parallel"])
def test_zero_width_padding_circuit(strategy: str) -> None:
    """Test that an empty program without qubits yields the sentinel for observables on real qubits."""
    qc = QuantumCircuit(1)
    qc.x(0)
    sim_params = BatchSimParams(strategy=strategy, max_workers=2)
    results = simulator.run([qc, QuantumCircuit()], None, [["Z", "IZ"], ["Z", "XZ"]], sim_params)
    np.testing.assert_allclose(results[0, 0], -1.0, atol=1e-6)
    np.testing.assert_array_equal(results[1], [-2.0, -2.0])


def test_non_numeric_binding_fails_batch() -> None:
    """Test that a parameter value which is not a number is reported as a NormalizationError."""
    theta = Parameter("theta")
    qc = QuantumCircuit(1)
    qc.rx(theta, 0)
    with pytest.raises(NormalizationError, match="Batch item 1"):
        simulator.run([qc, qc], [{"theta": 0.5}, {"theta": "abc"}], [["Z"], ["Z"]])
