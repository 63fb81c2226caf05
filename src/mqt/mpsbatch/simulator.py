# Copyright (c) 2023 - 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Batch expectation value simulator.

This module is the public entry point of the package. It computes the expectation values of Pauli-sum
observables for a batch of (parameterized) quantum circuits using Matrix Product States.

A call proceeds in four phases:
  1. Input-shape validation of the batch (programs, parameter bindings, observables).
  2. The parallel build stage, normalizing every circuit and observable.
  3. The chain-locality check of all normalized circuits.
  4. Strategy selection and scheduling, producing the (B, O) result matrix.

A call either returns the complete result matrix or raises; partial results are never returned.
"""

# ---------------------------------------------------------------------------
# 0) STANDARD LIBRARY IMPORTS
# ---------------------------------------------------------------------------
from __future__ import annotations

import logging
import multiprocessing
import os
from collections.abc import Mapping
from typing import TYPE_CHECKING

# ---------------------------------------------------------------------------
# 1) THIRD-PARTY IMPORTS
# ---------------------------------------------------------------------------
import numpy as np

# ---------------------------------------------------------------------------
# 2) LOCAL IMPORTS
# ---------------------------------------------------------------------------
from .circuits.normalizer import bindings_from_symbol_values, check_qubits_in_1d
from .core.data_structures.simulation_parameters import BatchSimParams
from .digital.batch_scheduler import compute_batch
from .digital.build import build_batch
from .exceptions import InputShapeError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import ArrayLike, NDArray

    from .circuits.normalizer import ObservableLike, Program

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# 3) CPU DISCOVERY: respect cgroup, SLURM and taskset limits.
# ---------------------------------------------------------------------------
def available_cpus() -> int:
    """Determine the number of available CPU cores for parallel execution.

    SLURM job variables take precedence, followed by the CPU affinity of the process. Otherwise the total
    number of CPUs reported by multiprocessing.cpu_count() is returned.

    Returns:
        int: The number of available CPU cores for parallel execution.
    """
    for var in ("SLURM_CPUS_PER_TASK", "SLURM_CPUS_ON_NODE"):
        value = os.environ.get(var, "").strip()
        if value:
            try:
                n = int(value)
                if n > 0:
                    return n
            except ValueError:
                # Ignore malformed values and continue
                pass

    try:
        return len(os.sched_getaffinity(0))
    except AttributeError:
        pass

    return multiprocessing.cpu_count() or 1


def resolve_workers(sim_params: BatchSimParams) -> int:
    """Number of worker threads used for a run.

    Args:
        sim_params: The batch parameters.

    Returns:
        int: `sim_params.max_workers` if set, otherwise all available CPUs but one (at least one).
    """
    if sim_params.max_workers is not None:
        return sim_params.max_workers
    return max(1, available_cpus() - 1)


# ---------------------------------------------------------------------------
# 4) INPUT-SHAPE VALIDATION
# ---------------------------------------------------------------------------
def _validate_batch(
    programs: Sequence[Program],
    bindings: Sequence[Mapping[str, float]],
    observables: Sequence[Sequence[ObservableLike]],
) -> int:
    """Check the shapes of the batch input.

    Returns:
        int: The number O of observables per circuit.

    Raises:
        InputShapeError: If the batch dimensions disagree or a row is malformed.
    """
    batch_size = len(programs)
    if len(bindings) != batch_size:
        msg = f"Got {batch_size} programs but {len(bindings)} parameter binding maps."
        raise InputShapeError(msg)
    if len(observables) != batch_size:
        msg = f"Got {batch_size} programs but {len(observables)} observable rows."
        raise InputShapeError(msg)

    for i, row in enumerate(bindings):
        if not isinstance(row, Mapping):
            msg = f"Parameter bindings of batch item {i} must be a mapping, got {type(row).__name__}."
            raise InputShapeError(msg)

    num_observables = None
    for i, row in enumerate(observables):
        if isinstance(row, (str, bytes)) or not hasattr(row, "__len__"):
            msg = f"Observables of batch item {i} must be a list, got {type(row).__name__}."
            raise InputShapeError(msg)
        if num_observables is None:
            num_observables = len(row)
        elif len(row) != num_observables:
            msg = f"Batch item {i} has {len(row)} observables, expected {num_observables}."
            raise InputShapeError(msg)
    return num_observables or 0


# ---------------------------------------------------------------------------
# 5) PUBLIC API
# ---------------------------------------------------------------------------
def run(
    programs: Sequence[Program],
    bindings: Sequence[Mapping[str, float]] | None,
    observables: Sequence[Sequence[ObservableLike]],
    sim_params: BatchSimParams | None = None,
) -> NDArray[np.float32]:
    """Compute the expectation values of a batch of circuits.

    Args:
        programs: B circuits, each a qiskit QuantumCircuit or OpenQASM 2 source.
        bindings: B maps from parameter name to value, or None if no circuit is parameterized.
        observables: B lists of O observables each (PauliSum, PauliTerm, SparsePauliOp or Pauli label).
        sim_params: The batch parameters. Defaults to BatchSimParams().

    Returns:
        NDArray[np.float32]: The (B, O) matrix whose entry (i, j) is the expectation value of observable j of
            circuit i. Rows of circuits without gates hold -2.0.

    Raises:
        InputShapeError: If the batch dimensions disagree.
        NormalizationError: If a circuit or observable cannot be normalized.
        TopologyError: If a circuit does not fit the nearest-neighbour qubit chain.
        EngineError: If the simulation violates an engine contract.
    """
    if sim_params is None:
        sim_params = BatchSimParams()
    programs = list(programs)
    bindings = [{} for _ in programs] if bindings is None else list(bindings)
    observables = list(observables)

    num_observables = _validate_batch(programs, bindings, observables)
    if not programs:
        return np.zeros((0, 0), dtype=np.float32)

    num_workers = resolve_workers(sim_params)
    logger.debug(
        "Running batch of %d circuits with %d observables each (bond dimension %d, %d workers).",
        len(programs),
        num_observables,
        sim_params.bond_dim,
        num_workers,
    )

    circuits, pauli_sums = build_batch(
        programs, bindings, observables, num_workers, show_progress=sim_params.show_progress
    )
    check_qubits_in_1d(circuits)
    return compute_batch(circuits, pauli_sums, sim_params, num_workers)


def run_symbol_table(
    programs: Sequence[Program],
    symbol_names: Sequence[str],
    symbol_values: ArrayLike,
    observables: Sequence[Sequence[ObservableLike]],
    sim_params: BatchSimParams | None = None,
) -> NDArray[np.float32]:
    """Compute expectation values with parameters given as a table.

    Args:
        programs: B circuits.
        symbol_names: The S parameter names shared by the batch.
        symbol_values: Array of shape (B, S), row i holding the parameter values of circuit i.
        observables: B lists of O observables each.
        sim_params: The batch parameters.

    Returns:
        NDArray[np.float32]: The (B, O) result matrix.

    Raises:
        InputShapeError: If the table does not match the batch.
    """
    bindings = bindings_from_symbol_values(symbol_names, symbol_values)
    if len(bindings) != len(programs):
        msg = f"Got {len(programs)} programs but {len(bindings)} rows of symbol values."
        raise InputShapeError(msg)
    return run(programs, bindings, observables, sim_params)
