# Copyright (c) 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Tensor Network Decompositions.

This module implements the right and left moving QR decompositions and the truncated two-site SVD
which are used to canonicalize the MPS and to split two-site tensors after gate application.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


def right_qr(mps_tensor: NDArray[np.complex128]) -> tuple[NDArray[np.complex128], NDArray[np.complex128]]:
    """Right QR.

    Performs the QR decomposition of an MPS tensor moving to the right.

    Args:
        mps_tensor: The tensor to be decomposed.

    Returns:
        q_tensor: The Q tensor with the left virtual leg and the physical
            leg (phys,left,new).
        r_mat: The R matrix with the right virtual leg (new,right).
    """
    old_shape = mps_tensor.shape
    qr_shape = (old_shape[0] * old_shape[1], old_shape[2])
    mps_tensor = mps_tensor.reshape(qr_shape)
    q_mat, r_mat = np.linalg.qr(mps_tensor)
    new_shape = (old_shape[0], old_shape[1], -1)
    q_tensor = q_mat.reshape(new_shape)
    return q_tensor, r_mat


def left_qr(mps_tensor: NDArray[np.complex128]) -> tuple[NDArray[np.complex128], NDArray[np.complex128]]:
    """Left QR.

    Performs the QR decomposition of an MPS tensor moving to the left.

    Args:
        mps_tensor: The tensor to be decomposed.

    Returns:
        q_tensor: The Q tensor with the physical leg and the right virtual
            leg (phys,new,right).
        r_mat: The R matrix with the left virtual leg (left,new).
    """
    old_shape = mps_tensor.shape
    mps_tensor = mps_tensor.transpose(0, 2, 1)
    qr_shape = (old_shape[0] * old_shape[2], old_shape[1])
    mps_tensor = mps_tensor.reshape(qr_shape)
    q_mat, r_mat = np.linalg.qr(mps_tensor)
    q_tensor = q_mat.reshape((old_shape[0], old_shape[2], -1))
    q_tensor = q_tensor.transpose(0, 2, 1)
    r_mat = r_mat.T
    return q_tensor, r_mat


def truncation_index(s_vec: NDArray[np.float64], threshold: float, max_bond_dim: int | None) -> int:
    """Number of singular values to keep.

    Discards the smallest singular values as long as their relative squared weight stays below
    `threshold`, then caps the result at `max_bond_dim`. At least one value is always kept.

    Args:
        s_vec: Singular values in descending order.
        threshold: Maximal discarded relative weight.
        max_bond_dim: Maximal number of kept values, or None for no cap.

    Returns:
        int: The number of singular values to keep.
    """
    keep = len(s_vec)
    total = float(np.sum(s_vec**2))
    if total > 0.0:
        discard = 0.0
        for s_val in reversed(s_vec):
            discard += float(s_val**2)
            if discard / total > threshold:
                break
            keep -= 1
    if max_bond_dim is not None:
        keep = min(keep, max_bond_dim)
    return max(keep, 1)


def two_site_svd(
    theta: NDArray[np.complex128],
    threshold: float,
    max_bond_dim: int | None = None,
) -> tuple[NDArray[np.complex128], NDArray[np.complex128], float]:
    """Split a two-site tensor by a truncated SVD.

    The two-site tensor Θ has index order (phys_i, phys_j, left, right). It is reshaped to a matrix
    (phys_i*left) x (phys_j*right), decomposed, truncated and split into A' (phys_i, left, keep), which is
    left-orthonormal, and B' (phys_j, keep, right), which carries the renormalized singular values.

    Args:
        theta: The two-site tensor.
        threshold: Maximal discarded relative weight.
        max_bond_dim: Maximal bond dimension of the new bond.

    Returns:
        a_new: The left tensor.
        b_new: The right tensor holding the orthogonality center.
        discarded: Relative squared weight of the discarded singular values.
    """
    phys_i, phys_j, left, right = theta.shape
    theta_mat = theta.transpose(0, 2, 1, 3).reshape(phys_i * left, phys_j * right)

    u_mat, s_vec, v_mat = np.linalg.svd(theta_mat, full_matrices=False)
    keep = truncation_index(s_vec, threshold, max_bond_dim)

    total = float(np.sum(s_vec**2))
    kept = s_vec[:keep]
    kept_weight = float(np.sum(kept**2))
    discarded = 0.0 if total == 0.0 else 1.0 - kept_weight / total
    if kept_weight > 0.0:
        kept = kept * np.sqrt(total / kept_weight)

    a_new = u_mat[:, :keep].reshape(phys_i, left, keep)
    v_tensor = (np.diag(kept) @ v_mat[:keep, :]).reshape(keep, phys_j, right)
    b_new = v_tensor.transpose(1, 0, 2)
    return a_new, b_new, discarded
