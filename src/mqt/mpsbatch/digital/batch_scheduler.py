# Copyright (c) 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Batch Scheduler.

Drives the normalized circuits of a batch through state engines and assembles the (B, O) matrix of
expectation values. Two strategies are available:

  - Sequential ("large-batch"): a single state engine is reused for all circuits in index order. The buffers
    grow to the largest qubit count seen so far and are reset before every circuit, which bounds peak memory
    by one live and one scratch state.
  - Parallel ("small-batch"): the (circuit, observable) cells are split into contiguous ranges of similar cost
    (2^n for a circuit of n qubits) and processed by worker threads, each owning its own state engine with the
    same grow and reset discipline. A circuit is only re-simulated when a worker moves on to the next circuit.

Rows of circuits without gates hold EMPTY_CIRCUIT_SENTINEL in every column.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

import numpy as np
from threadpoolctl import threadpool_limits
from tqdm import tqdm

from ..core.data_structures.simulation_parameters import ExecutionStrategy
from ..exceptions import EngineError
from .build import FirstErrorSlot, partition_by_cost
from .state_engine import StateEngine

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from ..core.data_structures.circuit import CircuitInstance
    from ..core.data_structures.observables import PauliSum
    from ..core.data_structures.simulation_parameters import BatchSimParams

logger = logging.getLogger(__name__)

# Written to every column of a circuit that has no gates.
EMPTY_CIRCUIT_SENTINEL = -2.0


def select_strategy(
    num_qubits: Sequence[int], sim_params: BatchSimParams, num_workers: int | None = None
) -> ExecutionStrategy:
    """Choose the scheduling strategy for a batch.

    Explicit strategies are returned unchanged. AUTO selects the parallel strategy only if a qubit cutoff is
    configured, no circuit exceeds it, the batch holds at least `small_batch_min_circuits` circuits and more
    than one worker is available.

    Args:
        num_qubits: Qubit count of every circuit of the batch.
        sim_params: The batch parameters.
        num_workers: Number of available workers. Defaults to `sim_params.max_workers`, or 1 if unset.

    Returns:
        ExecutionStrategy: SEQUENTIAL or PARALLEL.
    """
    if sim_params.strategy is not ExecutionStrategy.AUTO:
        return sim_params.strategy
    if num_workers is None:
        num_workers = sim_params.max_workers or 1

    cutoff = sim_params.small_batch_max_qubits
    if (
        cutoff is not None
        and len(num_qubits) >= sim_params.small_batch_min_circuits
        and max(num_qubits, default=0) <= cutoff
        and num_workers > 1
    ):
        return ExecutionStrategy.PARALLEL
    return ExecutionStrategy.SEQUENTIAL


def _simulate(engine: StateEngine, circuit: CircuitInstance) -> None:
    """Prepare the final state of a circuit in the live buffer of an engine."""
    engine.reset(circuit.num_qubits)
    for gate in circuit.gates:
        engine.apply_gate(gate.qubits, gate.matrix)


def _empty_result(
    circuits: Sequence[CircuitInstance], observables: Sequence[Sequence[PauliSum]]
) -> NDArray[np.float32]:
    num_observables = len(observables[0]) if observables else 0
    assert all(len(row) == num_observables for row in observables), "Observable rows must have equal length."
    assert len(observables) == len(circuits), "Every circuit needs an observable row."
    return np.zeros((len(circuits), num_observables), dtype=np.float32)


def compute_sequential(
    circuits: Sequence[CircuitInstance],
    observables: Sequence[Sequence[PauliSum]],
    engine: StateEngine,
    *,
    show_progress: bool = False,
) -> NDArray[np.float32]:
    """Sequential strategy with a single reused state engine.

    Args:
        circuits: The B normalized circuits.
        observables: B rows of O Pauli sums.
        engine: The state engine. Its buffers grow to the largest circuit and are reset before every circuit.
        show_progress: If True, a progress bar is printed.

    Returns:
        NDArray[np.float32]: The (B, O) result matrix.

    Raises:
        EngineError: If the simulation of a circuit violates an engine contract or its linear algebra fails.
    """
    results = _empty_result(circuits, observables)
    for i, circuit in enumerate(tqdm(circuits, desc="Simulating circuits", ncols=80, disable=not show_progress)):
        try:
            _simulate(engine, circuit)
            logger.debug("Circuit %d: %d gates on %d qubits.", i, len(circuit.gates), circuit.num_qubits)
            for j, observable in enumerate(observables[i]):
                if circuit.is_empty:
                    results[i, j] = EMPTY_CIRCUIT_SENTINEL
                else:
                    results[i, j] = engine.expect(observable)
        except (EngineError, np.linalg.LinAlgError) as e:
            msg = f"Circuit {i}: {e}"
            raise EngineError(msg) from e
        logger.debug("Circuit %d results: %s", i, results[i])
    return results


def compute_parallel(
    circuits: Sequence[CircuitInstance],
    observables: Sequence[Sequence[PauliSum]],
    bond_dim: int,
    threshold: float,
    num_workers: int,
    *,
    show_progress: bool = False,
) -> NDArray[np.float32]:
    """Parallel strategy with one state engine per worker thread.

    Args:
        circuits: The B normalized circuits.
        observables: B rows of O Pauli sums.
        bond_dim: Bond dimension of every engine.
        threshold: SVD truncation threshold of every engine.
        num_workers: Number of worker threads.
        show_progress: If True, a progress bar is printed.

    Returns:
        NDArray[np.float32]: The (B, O) result matrix.

    Raises:
        EngineError: If any cell failed, including failures of the linear algebra. The first recorded error is
            chained as the cause.
    """
    results = _empty_result(circuits, observables)
    cells = [(i, j) for i in range(results.shape[0]) for j in range(results.shape[1])]
    ranges = partition_by_cost([2.0 ** circuits[i].num_qubits for i, _ in cells], num_workers)
    slot = FirstErrorSlot()

    def compute_range(start: int, end: int) -> None:
        engine = StateEngine(bond_dim, threshold)
        current = None
        for i, j in cells[start:end]:
            circuit = circuits[i]
            if circuit.is_empty:
                results[i, j] = EMPTY_CIRCUIT_SENTINEL
                continue
            try:
                if current != i:
                    current = None
                    _simulate(engine, circuit)
                    current = i
                results[i, j] = engine.expect(observables[i][j])
            except (EngineError, np.linalg.LinAlgError) as e:
                if slot.record(i, e):
                    logger.debug("Circuit %d failed in a worker: %s", i, e)

    # BLAS thread pools are process-global
    with threadpool_limits(limits=1), ThreadPoolExecutor(max_workers=max(len(ranges), 1)) as ex:
        with tqdm(total=len(cells), desc="Simulating cells", ncols=80, disable=not show_progress) as pbar:
            futures = {ex.submit(compute_range, start, end): end - start for start, end in ranges}
            for fut in as_completed(futures):
                fut.result()
                pbar.update(futures[fut])

    if slot:
        msg = f"Circuit {slot.index}: {slot.error}"
        raise EngineError(msg) from slot.error

    logger.debug("Computed %d cells with %d worker(s).", len(cells), len(ranges))
    return results


def compute_batch(
    circuits: Sequence[CircuitInstance],
    observables: Sequence[Sequence[PauliSum]],
    sim_params: BatchSimParams,
    num_workers: int = 1,
) -> NDArray[np.float32]:
    """Compute the result matrix with the strategy chosen by `select_strategy`.

    Args:
        circuits: The B normalized circuits.
        observables: B rows of O Pauli sums.
        sim_params: The batch parameters.
        num_workers: Number of available workers.

    Returns:
        NDArray[np.float32]: The (B, O) result matrix.
    """
    strategy = select_strategy([circuit.num_qubits for circuit in circuits], sim_params, num_workers)
    logger.debug("Scheduling %d circuits with the %s strategy.", len(circuits), strategy.value)
    if strategy is ExecutionStrategy.PARALLEL:
        return compute_parallel(
            circuits,
            observables,
            sim_params.bond_dim,
            sim_params.threshold,
            num_workers,
            show_progress=sim_params.show_progress,
        )
    engine = StateEngine(sim_params.bond_dim, sim_params.threshold)
    return compute_sequential(circuits, observables, engine, show_progress=sim_params.show_progress)
