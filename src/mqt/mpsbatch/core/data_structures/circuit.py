# Copyright (c) 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Normalized circuit representation.

A normalized circuit is an ordered list of gate operations together with the number of qubits of the
circuit. Every gate carries the indices of the qubits it acts on and its dense unitary matrix, with the
first listed qubit being the most significant bit of the matrix index.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from ...exceptions import EngineError

if TYPE_CHECKING:
    from numpy.typing import NDArray


def validate_gate_matrix(qubits: tuple[int, ...], matrix: NDArray[np.complex128]) -> None:
    """Check that a matrix has the dimension required by the qubits it acts on.

    Args:
        qubits: The qubit indices the matrix acts on.
        matrix: The dense matrix.

    Raises:
        EngineError: If the matrix is not of shape (2^k, 2^k) for k qubits.
    """
    dim = 2 ** len(qubits)
    if matrix.shape != (dim, dim):
        msg = f"Gate on qubits {list(qubits)} requires a {dim}x{dim} matrix, got shape {matrix.shape}."
        raise EngineError(msg)


@dataclass(frozen=True)
class GateOp:
    """A unitary acting on an ordered tuple of qubits.

    Attributes:
        qubits: The qubit indices the gate acts on.
        matrix: Dense unitary of shape (2^k, 2^k), big-endian in `qubits`.
        name: Name of the originating instruction, used in error messages.
    """

    qubits: tuple[int, ...]
    matrix: NDArray[np.complex128]
    name: str = "unitary"

    def __post_init__(self) -> None:
        """Validates and freezes the gate data.

        Raises:
            EngineError: If the qubits are empty, negative, repeated or do not match the matrix dimension.
        """
        qubits = tuple(int(q) for q in self.qubits)
        if not qubits:
            msg = f"Gate '{self.name}' acts on no qubits."
            raise EngineError(msg)
        if min(qubits) < 0:
            msg = f"Gate '{self.name}' has negative qubit indices {list(qubits)}."
            raise EngineError(msg)
        if len(set(qubits)) != len(qubits):
            msg = f"Gate '{self.name}' acts on repeated qubits {list(qubits)}."
            raise EngineError(msg)

        matrix = np.array(self.matrix, dtype=np.complex128)
        validate_gate_matrix(qubits, matrix)
        matrix.setflags(write=False)

        object.__setattr__(self, "qubits", qubits)
        object.__setattr__(self, "matrix", matrix)


@dataclass(frozen=True)
class CircuitInstance:
    """One normalized circuit of a batch.

    Attributes:
        gates: The gates in application order.
        num_qubits: The number of qubits of the circuit.
    """

    gates: tuple[GateOp, ...]
    num_qubits: int

    def __post_init__(self) -> None:
        """Stores the gates as a tuple."""
        object.__setattr__(self, "gates", tuple(self.gates))

    @property
    def is_empty(self) -> bool:
        """True if the circuit has no gates."""
        return not self.gates
