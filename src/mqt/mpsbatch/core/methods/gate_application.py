# Copyright (c) 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Gate application on Matrix Product States.

This module implements the numerical kernel used by the state engine. Single-qubit gates are contracted
directly into a site tensor and never change bond dimensions. Two-qubit gates must act on neighbouring
sites of the chain; the two site tensors are merged, the gate is applied, and the result is split again
by a truncated SVD which keeps at most `max_bond_dim` singular values. The application is exact as long
as the entanglement created does not exceed the bond dimension.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import opt_einsum as oe

from ...exceptions import EngineError
from .decompositions import two_site_svd

if TYPE_CHECKING:
    from numpy.typing import NDArray

    from ..data_structures.networks import MPS


def apply_single_qubit_gate(state: MPS, matrix: NDArray[np.complex128], site: int) -> None:
    """Apply single qubit gate.

    Parameters:
    state (MPS): The matrix product state (MPS) representing the quantum state.
    matrix (NDArray[np.complex128]): The 2x2 unitary.
    site (int): The site the gate acts on.
    """
    state.tensors[site] = oe.contract("ab, bcd->acd", matrix, state.tensors[site])


def apply_two_qubit_gate(
    state: MPS,
    matrix: NDArray[np.complex128],
    sites: tuple[int, int],
    max_bond_dim: int,
    threshold: float,
) -> float:
    """Apply two-qubit gate.

    Applies a nearest-neighbour two-qubit gate and truncates the new bond. The orthogonality center is moved
    to the left site first so that the SVD truncation is optimal in the two-norm. Afterwards the center sits
    on the right site.

    Args:
        state: The Matrix Product State to which the gate will be applied.
        matrix: The 4x4 unitary, big-endian in `sites`.
        sites: The two qubits the gate acts on, in the order of the matrix.
        max_bond_dim: Maximal bond dimension kept after the gate.
        threshold: Maximal discarded relative weight of the SVD truncation.

    Returns:
        float: Relative squared weight discarded by the truncation.

    Raises:
        EngineError: If the two sites are not neighbours on the chain.
    """
    first, second = sites
    if abs(first - second) != 1:
        msg = f"Two-qubit gate on qubits {list(sites)} does not act on neighbouring chain sites."
        raise EngineError(msg)

    tensor = np.reshape(matrix, (2, 2, 2, 2))
    if second < first:
        # Reverse control/target so the tensor matches the chain order
        tensor = np.transpose(tensor, (1, 0, 3, 2))
    left_site = min(first, second)

    state.move_orthogonality_center(left_site)
    a = state.tensors[left_site]
    b = state.tensors[left_site + 1]

    # Θ_(s t l r) = G_(s t, u v) A_(u l m) B_(v m r)
    theta = oe.contract("stuv, ulm, vmr->stlr", tensor, a, b)
    a_new, b_new, discarded = two_site_svd(theta, threshold, max_bond_dim)

    state.tensors[left_site] = a_new
    state.tensors[left_site + 1] = b_new
    state.orthogonality_center = left_site + 1
    return discarded
