# Copyright (c) 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Parallel Build Stage.

Normalizes the raw batch input (programs, parameter bindings and observables) into circuit instances and
Pauli-sum observables. The batch is split into contiguous index ranges which are processed by a pool of
worker threads. Workers write to disjoint output slots; the only shared mutable state is a first-error slot
guarded by a lock. Workers are never cancelled: a failing item is recorded and the worker continues with its
range. Once all workers joined, a single aggregated error is raised if any item failed.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import TYPE_CHECKING

from tqdm import tqdm

from ..circuits.normalizer import normalize_circuit, normalize_observable
from ..core.data_structures.circuit import CircuitInstance
from ..exceptions import NormalizationError

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from ..circuits.normalizer import ObservableLike, Program
    from ..core.data_structures.observables import PauliSum

logger = logging.getLogger(__name__)


class FirstErrorSlot:
    """Thread-safe slot that keeps the first error reported by any worker.

    Attributes:
        index: Batch index of the first recorded error, or None.
        error: The first recorded error, or None.
    """

    def __init__(self) -> None:
        """Creates an empty slot."""
        self._lock = threading.Lock()
        self.index: int | None = None
        self.error: Exception | None = None

    def record(self, index: int, error: Exception) -> bool:
        """Store an error unless one was stored before.

        Args:
            index: Index of the failed item.
            error: The error raised by the item.

        Returns:
            bool: True if this error is now the stored one.
        """
        with self._lock:
            if self.error is not None:
                return False
            self.index = index
            self.error = error
            return True

    def __bool__(self) -> bool:
        """True if an error was recorded."""
        with self._lock:
            return self.error is not None


def partition_by_cost(costs: Sequence[float], num_workers: int) -> list[tuple[int, int]]:
    """Split a sequence of items into contiguous ranges of approximately equal cost.

    Args:
        costs: Non-negative cost estimate of every item.
        num_workers: Maximal number of ranges.

    Returns:
        list[tuple[int, int]]: Half-open ranges (start, end) covering all items in order. No range is empty,
            and there are min(num_workers, len(costs)) of them.
    """
    num_items = len(costs)
    if num_items == 0:
        return []
    parts = max(1, min(num_workers, num_items))
    total = float(sum(costs))

    ranges: list[tuple[int, int]] = []
    start = 0
    accumulated = 0.0
    for index, cost in enumerate(costs):
        accumulated += cost
        open_parts = parts - len(ranges) - 1
        if open_parts == 0:
            break
        remaining_items = num_items - index - 1
        if remaining_items == open_parts or accumulated >= total * (len(ranges) + 1) / parts:
            ranges.append((start, index + 1))
            start = index + 1
    ranges.append((start, num_items))
    return ranges


def _build_item(
    program: Program, bindings: Mapping[str, float], observables: Sequence[ObservableLike]
) -> tuple[CircuitInstance, list[PauliSum]]:
    circuit = normalize_circuit(program, bindings)
    if not circuit.is_empty:
        return circuit, [normalize_observable(observable, circuit.num_qubits) for observable in observables]

    # Gate-less rows only yield the sentinel; widen them to cover their observables
    pauli_sums = [normalize_observable(observable) for observable in observables]
    width = max([circuit.num_qubits] + [pauli_sum.max_qubit() + 1 for pauli_sum in pauli_sums])
    return CircuitInstance((), width), pauli_sums


def build_batch(
    programs: Sequence[Program],
    bindings: Sequence[Mapping[str, float]],
    observables: Sequence[Sequence[ObservableLike]],
    max_workers: int = 1,
    *,
    show_progress: bool = False,
) -> tuple[list[CircuitInstance], list[list[PauliSum]]]:
    """Normalize a batch in parallel.

    Args:
        programs: B programs.
        bindings: B parameter binding maps.
        observables: B lists of observables.
        max_workers: Number of worker threads.
        show_progress: If True, a progress bar is printed.

    Returns:
        The B circuit instances and the B lists of Pauli sums.

    Raises:
        NormalizationError: If any item failed. The first recorded error is chained as the cause.
    """
    batch_size = len(programs)
    assert len(bindings) == batch_size, "Every program needs a binding map."
    assert len(observables) == batch_size, "Every program needs an observable list."

    circuits: list[CircuitInstance | None] = [None] * batch_size
    pauli_sums: list[list[PauliSum] | None] = [None] * batch_size
    slot = FirstErrorSlot()

    def build_range(start: int, end: int) -> None:
        for i in range(start, end):
            try:
                circuits[i], pauli_sums[i] = _build_item(programs[i], bindings[i], observables[i])
            except Exception as e:  # noqa: BLE001
                if slot.record(i, e):
                    logger.debug("Batch item %d failed to normalize: %s", i, e)

    ranges = partition_by_cost([1.0] * batch_size, max_workers)
    with tqdm(total=batch_size, desc="Building circuits", ncols=80, disable=not show_progress) as pbar:
        if len(ranges) <= 1:
            for start, end in ranges:
                build_range(start, end)
                pbar.update(end - start)
        else:
            with ThreadPoolExecutor(max_workers=len(ranges)) as ex:
                futures = {ex.submit(build_range, start, end): end - start for start, end in ranges}
                for fut in as_completed(futures):
                    fut.result()
                    pbar.update(futures[fut])

    if slot:
        msg = f"Batch item {slot.index}: {slot.error}"
        raise NormalizationError(msg) from slot.error

    logger.debug("Built %d batch items with %d worker(s).", batch_size, max(len(ranges), 1))
    return circuits, pauli_sums  # type: ignore[return-value]
