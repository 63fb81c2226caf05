# Copyright (c) 2023 - 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Simulation Parameters for batched MPS expectation simulations.

This module provides the BatchSimParams class which configures a batch run: the bond dimension of the
state engine, the SVD truncation threshold, the scheduling strategy together with the tunable policy that
selects the parallel small-batch strategy, the number of workers, and progress reporting.
"""

from __future__ import annotations

from enum import Enum


class ExecutionStrategy(Enum):
    """Enumerates the scheduling strategies of the batch scheduler."""

    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    AUTO = "auto"


class BatchSimParams:
    """Batch Simulation Parameters.

    A class to represent the parameters for a batched expectation value simulation.

    Attributes:
    -----------
    bond_dim :
        The bond dimension of every state buffer. Fixed for the lifetime of a run.
    threshold :
        Maximal discarded relative weight of each SVD truncation.
    strategy :
        The scheduling strategy. AUTO chooses according to the small-batch policy.
    small_batch_max_qubits :
        AUTO selects the parallel strategy only if no circuit has more qubits than this. None disables it.
    small_batch_min_circuits :
        AUTO selects the parallel strategy only for batches with at least this many circuits.
    max_workers :
        Number of worker threads. None uses all available CPUs but one.
    show_progress :
        If True, progress bars are printed.
    """

    def __init__(
        self,
        bond_dim: int = 2,
        threshold: float = 1e-12,
        strategy: ExecutionStrategy | str = ExecutionStrategy.AUTO,
        small_batch_max_qubits: int | None = None,
        small_batch_min_circuits: int = 2,
        max_workers: int | None = None,
        *,
        show_progress: bool = False,
    ) -> None:
        """Batch simulation parameters initialization.

        Parameters
        ----------
        bond_dim :
            Bond dimension of the MPS, by default 2. Must be at least 2.
        threshold :
            SVD truncation threshold, by default 1e-12.
        strategy :
            Scheduling strategy or its name, by default AUTO.
        small_batch_max_qubits :
            Largest qubit count for which AUTO uses the parallel strategy, by default None (never).
        small_batch_min_circuits :
            Smallest batch size for which AUTO uses the parallel strategy, by default 2.
        max_workers :
            Number of worker threads, by default None.
        show_progress :
            If True, progress bars are printed, by default False.

        Raises:
        ------
        ValueError
            If a parameter is out of range.
        """
        if isinstance(bond_dim, bool) or int(bond_dim) != bond_dim or bond_dim < 2:
            msg = f"Bond dimension must be an integer >= 2, got {bond_dim}."
            raise ValueError(msg)
        if threshold < 0:
            msg = f"Truncation threshold must be non-negative, got {threshold}."
            raise ValueError(msg)
        if small_batch_max_qubits is not None and small_batch_max_qubits < 1:
            msg = f"small_batch_max_qubits must be positive or None, got {small_batch_max_qubits}."
            raise ValueError(msg)
        if small_batch_min_circuits < 1:
            msg = f"small_batch_min_circuits must be positive, got {small_batch_min_circuits}."
            raise ValueError(msg)
        if max_workers is not None and max_workers < 1:
            msg = f"max_workers must be positive or None, got {max_workers}."
            raise ValueError(msg)

        self.bond_dim = int(bond_dim)
        self.threshold = threshold
        self.strategy = ExecutionStrategy(strategy)
        self.small_batch_max_qubits = small_batch_max_qubits
        self.small_batch_min_circuits = small_batch_min_circuits
        self.max_workers = max_workers
        self.show_progress = show_progress
