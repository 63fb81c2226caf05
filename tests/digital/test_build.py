# Copyright (c) 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Tests for the parallel build stage.

This module verifies the cost partitioning helper, the first-error slot, and that the build stage produces the
same result for any number of workers, fails as a whole if a single item fails, and never cancels work.
"""

from __future__ import annotations

import threading

import pytest
from qiskit.circuit import Parameter, QuantumCircuit

from mqt.mpsbatch.digital import build
from mqt.mpsbatch.digital.build import FirstErrorSlot, build_batch, partition_by_cost
from mqt.mpsbatch.exceptions import NormalizationError


def make_programs(batch_size: int) -> list[QuantumCircuit]:
    """Parameterized circuits of growing width.

    Returns:
        list[QuantumCircuit]: The circuits.
    """
    theta = Parameter("theta")
    programs = []
    for i in range(batch_size):
        qc = QuantumCircuit(i % 3 + 1)
        qc.rx(theta, 0)
        if qc.num_qubits > 1:
            qc.cx(0, 1)
        programs.append(qc)
    return programs


@pytest.mark.parametrize(
    ("costs", "num_workers", "expected"),
    [
        ([1, 1, 1, 1], 2, [(0, 2), (2, 4)]),
        ([8, 1, 1, 1, 1], 2, [(0, 1), (1, 5)]),
        ([1, 2, 3], 5, [(0, 1), (1, 2), (2, 3)]),
        ([5, 5], 1, [(0, 2)]),
        ([0, 0, 0], 2, [(0, 1), (1, 3)]),
        ([], 4, []),
    ],
)
def test_partition_by_cost(costs: list[float], num_workers: int, expected: list[tuple[int, int]]) -> None:
    """Test the ranges produced for several cost profiles."""
    assert partition_by_cost(costs, num_workers) == expected


def test_partition_by_cost_covers_all_items() -> None:
    """Test that ranges are contiguous, non-empty and cover every item for exponential costs."""
    costs = [2.0**n for n in (1, 5, 2, 2, 8, 3, 1, 1, 4)]
    for num_workers in range(1, 12):
        ranges = partition_by_cost(costs, num_workers)
        assert len(ranges) == min(num_workers, len(costs))
        assert ranges[0][0] == 0
        assert ranges[-1][1] == len(costs)
        for (_, end), (start, _) in zip(ranges, ranges[1:]):
            assert end == start
        assert all(start < end for start, end in ranges)


def test_first_error_slot_keeps_first() -> None:
    """Test that only the first recorded error is kept."""
    slot = FirstErrorSlot()
    assert not slot
    first = NormalizationError("first")
    assert slot.record(3, first)
    assert not slot.record(1, NormalizationError("second"))
    assert slot
    assert slot.index == 3
    assert slot.error is first


def test_first_error_slot_concurrent() -> None:
    """Test that exactly one of many concurrent records wins."""
    slot = FirstErrorSlot()
    wins = []

    def record(i: int) -> None:
        if slot.record(i, NormalizationError(str(i))):
            wins.append(i)

    threads = [threading.Thread(target=record, args=(i,)) for i in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert len(wins) == 1
    assert slot.index == wins[0]


@pytest.mark.parametrize("max_workers", [1, 2, 4])
def test_build_batch(max_workers: int) -> None:
    """Test that the build result does not depend on the number of workers."""
    programs = make_programs(7)
    bindings = [{"theta": 0.1 * i} for i in range(7)]
    observables = [["Z", "X"] for _ in range(7)]

    circuits, pauli_sums = build_batch(programs, bindings, observables, max_workers)
    assert len(circuits) == len(pauli_sums) == 7
    assert [circuit.num_qubits for circuit in circuits] == [i % 3 + 1 for i in range(7)]
    assert all(len(row) == 2 for row in pauli_sums)
    assert circuits[0].gates[0].name == "rx"


@pytest.mark.parametrize("max_workers", [1, 3])
def test_build_batch_single_failure_fails_batch(max_workers: int) -> None:
    """Test that one unbound circuit fails the whole batch with its index."""
    programs = make_programs(5)
    bindings = [{"theta": 1.0} for _ in range(5)]
    bindings[2] = {}
    observables = [["Z"] for _ in range(5)]

    with pytest.raises(NormalizationError, match=r"Batch item 2: .*theta") as exc_info:
        build_batch(programs, bindings, observables, max_workers)
    assert isinstance(exc_info.value.__cause__, NormalizationError)


def test_build_batch_reports_first_error_and_finishes(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that the first error wins and that every item is still processed."""
    calls = []
    normalize = build.normalize_circuit

    def counting_normalize(program: object, bindings: object) -> object:
        calls.append(program)
        return normalize(program, bindings)  # type: ignore[arg-type]

    monkeypatch.setattr(build, "normalize_circuit", counting_normalize)

    programs = make_programs(6)
    bindings = [{"theta": 1.0} for _ in range(6)]
    bindings[1] = {}
    bindings[4] = {}
    observables = [["Z"] for _ in range(6)]

    with pytest.raises(NormalizationError, match="Batch item 1"):
        build_batch(programs, bindings, observables, max_workers=1)
    assert len(calls) == 6


def test_build_batch_observable_failure() -> None:
    """Test that an observable outside the circuit fails the batch."""
    programs = make_programs(3)
    bindings = [{"theta": 0.0} for _ in range(3)]
    observables = [["Z"], ["ZZZ"], ["Z"]]
    with pytest.raises(NormalizationError, match="Batch item 1: Observable acts on qubit 2"):
        build_batch(programs, bindings, observables, max_workers=2)


@pytest.mark.parametrize("max_workers", [1, 2])
def test_build_batch_non_numeric_binding(monkeypatch: pytest.MonkeyPatch, max_workers: int) -> None:
    """Test that a binding which is not a number fails the batch as a NormalizationError after all items ran."""
    calls = []
    normalize = build.normalize_circuit

    def counting_normalize(program: object, bindings: object) -> object:
        calls.append(program)
        return normalize(program, bindings)  # type: ignore[arg-type]

    monkeypatch.setattr(build, "normalize_circuit", counting_normalize)

    programs = make_programs(4)
    bindings: list[dict[str, object]] = [{"theta": 1.0} for _ in range(4)]
    bindings[1] = {"theta": "abc"}
    observables = [["Z"] for _ in range(4)]

    with pytest.raises(NormalizationError, match="Batch item 1: Parameter values must be real numbers") as exc_info:
        build_batch(programs, bindings, observables, max_workers)  # type: ignore[arg-type]
    assert isinstance(exc_info.value.__cause__, NormalizationError)
    assert len(calls) == 4


def test_build_batch_unexpected_error_is_recorded(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test that any exception raised by an item is reported as a NormalizationError and later items still run."""
    calls = []

    def failing_normalize(program: object, bindings: object) -> object:
        calls.append(program)
        msg = "boom"
        raise KeyError(msg)

    monkeypatch.setattr(build, "normalize_circuit", failing_normalize)

    with pytest.raises(NormalizationError, match="Batch item 0") as exc_info:
        build_batch(make_programs(3), [{"theta": 0.0}] * 3, [["Z"]] * 3, max_workers=1)
    assert isinstance(exc_info.value.__cause__, KeyError)
    assert len(calls) == 3


def test_build_batch_widens_empty_circuits() -> None:
    """Test that circuits without gates are widened to the qubits named by their observables."""
    programs = [QuantumCircuit(), QuantumCircuit(1)]
    circuits, pauli_sums = build_batch(programs, [{}, {}], [["Z", "XII"], ["I"]], max_workers=1)
    assert circuits[0].is_empty
    assert circuits[0].num_qubits == 3
    assert circuits[1].num_qubits == 1
    assert pauli_sums[0][1].max_qubit() == 2
