# Copyright (c) 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Pauli-sum observables.

This module defines the PauliTerm and PauliSum classes. A PauliTerm is a real coefficient multiplying a tensor
product of single-qubit Pauli operators, stored as a mapping from qubit index to one of "X", "Y" or "Z" (identity
factors are implicit). A PauliSum is an ordered collection of such terms and represents a Hermitian observable.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from functools import reduce
from typing import TYPE_CHECKING

import numpy as np

from ...exceptions import NormalizationError
from ..libraries.observables_library import ObservablesLibrary

if TYPE_CHECKING:
    from collections.abc import Iterable

    from numpy.typing import NDArray
    from qiskit.quantum_info import SparsePauliOp

# Imaginary parts below this value are treated as numerical noise when importing coefficients.
IMAG_TOLERANCE = 1e-12


def _real_coefficient(coefficient: complex) -> float:
    """Convert a coefficient to a real number.

    Args:
        coefficient: The (possibly complex) coefficient.

    Returns:
        float: The real coefficient.

    Raises:
        NormalizationError: If the coefficient has a non-negligible imaginary part.
    """
    value = complex(coefficient)
    if abs(value.imag) > IMAG_TOLERANCE:
        msg = f"Pauli term coefficient {value} is not real; the observable is not Hermitian."
        raise NormalizationError(msg)
    return value.real


@dataclass(frozen=True)
class PauliTerm:
    """A weighted tensor product of single-qubit Pauli operators.

    Attributes:
        paulis: Pairs (qubit, label) sorted by qubit, label in {"X", "Y", "Z"}.
        coefficient: The real weight of the term.
    """

    paulis: tuple[tuple[int, str], ...] | Mapping[int, str]
    coefficient: float = 1.0

    def __post_init__(self) -> None:
        """Validates the labels, drops identities and sorts the factors by qubit.

        Raises:
            NormalizationError: If a label is unknown, a qubit is negative or appears twice.
        """
        items = self.paulis.items() if isinstance(self.paulis, Mapping) else self.paulis
        factors: dict[int, str] = {}
        for qubit, label in items:
            q = int(qubit)
            pauli = str(label).upper()
            if pauli not in ObservablesLibrary:
                msg = f"Unknown Pauli label {label!r} on qubit {q}."
                raise NormalizationError(msg)
            if q < 0:
                msg = f"Pauli term acts on negative qubit index {q}."
                raise NormalizationError(msg)
            if q in factors:
                msg = f"Pauli term acts twice on qubit {q}."
                raise NormalizationError(msg)
            factors[q] = pauli

        paulis = tuple(sorted((q, p) for q, p in factors.items() if p != "I"))
        object.__setattr__(self, "paulis", paulis)
        object.__setattr__(self, "coefficient", _real_coefficient(self.coefficient))

    @classmethod
    def from_label(cls, label: str, coefficient: complex = 1.0) -> PauliTerm:
        """Creates a term from a Pauli string such as "XZI".

        The label is read in qiskit order: the rightmost character acts on qubit 0.

        Args:
            label: The Pauli string.
            coefficient: The weight of the term.

        Returns:
            PauliTerm: The parsed term.
        """
        return cls(tuple((q, p) for q, p in enumerate(reversed(label))), coefficient)

    def max_qubit(self) -> int:
        """Largest qubit index with a non-identity factor, or -1 for a pure identity term.

        Returns:
            int: The largest qubit index.
        """
        return self.paulis[-1][0] if self.paulis else -1


@dataclass(frozen=True)
class PauliSum:
    """An ordered sum of Pauli terms representing a Hermitian observable.

    Attributes:
        terms: The terms in the order they are evaluated.
    """

    terms: tuple[PauliTerm, ...] = ()

    def __post_init__(self) -> None:
        """Stores the terms as a tuple."""
        object.__setattr__(self, "terms", tuple(self.terms))

    def __len__(self) -> int:
        """Number of terms."""
        return len(self.terms)

    @classmethod
    def from_terms(cls, terms: Iterable[tuple[complex, str]]) -> PauliSum:
        """Creates a sum from (coefficient, label) pairs.

        Args:
            terms: Pairs of coefficient and Pauli string in qiskit order.

        Returns:
            PauliSum: The observable.
        """
        return cls(tuple(PauliTerm.from_label(label, coeff) for coeff, label in terms))

    @classmethod
    def from_sparse_pauli_op(cls, operator: SparsePauliOp) -> PauliSum:
        """Converts a qiskit SparsePauliOp.

        Args:
            operator: The qiskit operator.

        Returns:
            PauliSum: The observable.

        Raises:
            NormalizationError: If a coefficient is complex or a coefficient is still symbolic.
        """
        terms = []
        for label, coeff in operator.to_list():
            try:
                value = complex(coeff)
            except (TypeError, ValueError) as e:
                msg = f"Coefficient {coeff} of Pauli term '{label}' is not numeric."
                raise NormalizationError(msg) from e
            terms.append(PauliTerm.from_label(label, value))
        return cls(tuple(terms))

    def max_qubit(self) -> int:
        """Largest qubit index touched by any term, or -1 if no qubit is touched.

        Returns:
            int: The largest qubit index.
        """
        return max((term.max_qubit() for term in self.terms), default=-1)

    def to_matrix(self, num_qubits: int) -> NDArray[np.complex128]:
        """Dense matrix of the observable.

        Qubit 0 is the least significant bit, matching the ordering of ``MPS.to_vec``.

        Args:
            num_qubits: Number of qubits of the full Hilbert space.

        Returns:
            NDArray[np.complex128]: The (2^n, 2^n) matrix.
        """
        assert self.max_qubit() < num_qubits, "Observable acts on qubits outside the register."
        dim = 2**num_qubits
        matrix = np.zeros((dim, dim), dtype=np.complex128)
        for term in self.terms:
            labels = dict(term.paulis)
            factors = [ObservablesLibrary[labels.get(q, "I")] for q in reversed(range(num_qubits))]
            matrix += term.coefficient * reduce(np.kron, factors, np.eye(1, dtype=np.complex128))
        return matrix
