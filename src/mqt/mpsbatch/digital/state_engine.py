# Copyright (c) 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""MPS State Engine.

The state engine owns two co-managed state buffers of identical size: the live state, which holds the
result of applying a prefix of one circuit's gates to |0...0>, and a scratch state, which is only used to
evaluate expectation values without touching the live state. Both buffers grow together when a circuit
needs more qubits than currently allocated and never shrink. Smaller circuits reuse the allocation, the
unused trailing qubits stay in |0>.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from ..core.data_structures.circuit import validate_gate_matrix
from ..core.data_structures.networks import MPS
from ..core.methods.gate_application import apply_single_qubit_gate, apply_two_qubit_gate
from ..core.methods.operations import pauli_sum_expectation
from ..exceptions import EngineError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import NDArray

    from ..core.data_structures.observables import PauliSum

logger = logging.getLogger(__name__)


class StateEngine:
    """Live and scratch MPS buffers with a fixed bond dimension.

    Attributes:
        bond_dim: The bond dimension, fixed for the lifetime of the engine.
        threshold: Maximal discarded relative weight of each SVD truncation.
        capacity: Number of qubits currently allocated in both buffers.
        allocations: Number of buffer allocations performed so far.
        live: The live state.
        scratch: The scratch state used by `expect`.
    """

    def __init__(self, bond_dim: int, threshold: float = 1e-12) -> None:
        """Creates an engine with both buffers allocated for a single qubit.

        Args:
            bond_dim: The bond dimension. Must be at least 2.
            threshold: Maximal discarded relative weight of each SVD truncation.

        Raises:
            ValueError: If the bond dimension is smaller than 2.
        """
        if bond_dim < 2:
            msg = f"Bond dimension must be >= 2, got {bond_dim}."
            raise ValueError(msg)
        self.bond_dim = bond_dim
        self.threshold = threshold
        self.capacity = 0
        self.allocations = 0
        self._allocate(1)

    def _allocate(self, num_qubits: int) -> None:
        """Replace both buffers by fresh all-zero states of the given size."""
        self.live = MPS(num_qubits)
        self.scratch = MPS(num_qubits)
        self.capacity = num_qubits
        self.allocations += 1
        logger.debug("Allocated state buffers for %d qubits (bond dimension %d).", num_qubits, self.bond_dim)

    def reset(self, num_qubits: int) -> None:
        """Prepare the live state |0...0> for a circuit with `num_qubits` qubits.

        Both buffers are reallocated if `num_qubits` exceeds the current capacity. Otherwise the allocation
        is reused, so the live state keeps its current size.

        Args:
            num_qubits: Number of qubits of the next circuit.

        Raises:
            EngineError: If the qubit count is negative.
        """
        if num_qubits < 0:
            msg = f"Cannot reset the state for {num_qubits} qubits."
            raise EngineError(msg)
        if num_qubits > self.capacity:
            self._allocate(num_qubits)
        else:
            self.live.set_basis_state()

    def apply_gate(self, qubits: Sequence[int], matrix: NDArray[np.complex128]) -> None:
        """Apply a unitary to the live state.

        Args:
            qubits: The qubits the gate acts on, in the big-endian order of `matrix`.
            matrix: The dense (2^k, 2^k) unitary.

        Raises:
            EngineError: If the matrix dimension is wrong, a qubit is not allocated, or the gate acts on
                more than two or on non-neighbouring qubits.
        """
        qubits = tuple(qubits)
        matrix = np.asarray(matrix, dtype=np.complex128)
        validate_gate_matrix(qubits, matrix)
        for qubit in qubits:
            if not 0 <= qubit < self.capacity:
                msg = f"Qubit {qubit} is outside the allocated state of {self.capacity} qubits."
                raise EngineError(msg)

        if len(qubits) == 1:
            apply_single_qubit_gate(self.live, matrix, qubits[0])
        elif len(qubits) == 2:
            discarded = apply_two_qubit_gate(self.live, matrix, (qubits[0], qubits[1]), self.bond_dim, self.threshold)
            if discarded > 0.0:
                logger.debug("Truncation on qubits %s discarded weight %.3e.", list(qubits), discarded)
        else:
            msg = f"Gates on {len(qubits)} qubits are not supported by the MPS engine."
            raise EngineError(msg)

    def expect(self, observable: PauliSum) -> float:
        """Expectation value of a Pauli sum in the live state.

        The live state is not modified; the scratch buffer is overwritten.

        Args:
            observable: The Pauli-sum observable.

        Returns:
            float: The real part of <live|observable|live>.

        Raises:
            EngineError: If the observable acts on a qubit that is not allocated.
        """
        if observable.max_qubit() >= self.capacity:
            msg = (
                f"Observable acts on qubit {observable.max_qubit()} outside the allocated state of "
                f"{self.capacity} qubits."
            )
            raise EngineError(msg)
        return float(pauli_sum_expectation(self.live, self.scratch, observable))
