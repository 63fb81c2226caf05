# Copyright (c) 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""General tensor network methods.

This module implements the expectation value of Pauli-sum observables on Matrix Product States.
A Pauli string is a product of single-site operators, so applying it never changes bond dimensions.
For every term the live state is copied into a scratch state, the Pauli factors are contracted into the
scratch tensors and the overlap <live|scratch> is accumulated with the term's coefficient.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import opt_einsum as oe

from ..libraries.observables_library import ObservablesLibrary

if TYPE_CHECKING:
    from ..data_structures.networks import MPS
    from ..data_structures.observables import PauliSum, PauliTerm


def apply_pauli_term(state: MPS, term: PauliTerm) -> None:
    """Apply the Pauli factors of a term in place.

    The coefficient is not applied.

    Args:
        state: The state the factors act on.
        term: The Pauli term.
    """
    for site, label in term.paulis:
        state.tensors[site] = oe.contract("ab, bcd->acd", ObservablesLibrary[label], state.tensors[site])


def pauli_sum_expectation(state: MPS, scratch: MPS, observable: PauliSum) -> np.float64:
    """Compute the expectation value of a Pauli sum.

    Args:
        state: The state to evaluate. It is not modified.
        scratch: A state of the same length which is overwritten.
        observable: The Pauli-sum observable.

    Returns:
        np.float64: The real part of <state|observable|state>.
    """
    result = np.complex128(0.0)
    for term in observable.terms:
        if not term.paulis:
            # Identity term: the overlap is the squared norm
            result += term.coefficient * state.scalar_product(state)
            continue
        scratch.copy_from(state)
        apply_pauli_term(scratch, term)
        result += term.coefficient * state.scalar_product(scratch)
    return np.float64(result.real)
