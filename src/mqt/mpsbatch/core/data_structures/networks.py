# Copyright (c) 2023 - 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Tensor Network Data Structures.

This module implements the Matrix Product State (MPS) used as the state buffer of the batch simulator.
It provides basis-state initialization, orthogonality center bookkeeping and scalar products.
Qubits are placed on a single chain, site i holding qubit i.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import opt_einsum as oe

from ..methods.decompositions import left_qr, right_qr

if TYPE_CHECKING:
    from numpy.typing import NDArray


class MPS:
    """Matrix Product State (MPS) class for representing qubit states on a chain.

    The index order of every site tensor is (sigma, chi_l-1, chi_l).

    Attributes:
    length (int): The number of sites in the MPS.
    tensors (list[NDArray[np.complex128]]): List of rank-3 tensors representing the MPS.
    orthogonality_center (int | None): Site of the orthogonality center if the state is known to be in
        mixed canonical form, None otherwise.

    Methods:
    set_basis_state(basis_string: str | None = None) -> None:
        Overwrites the tensors with a computational basis product state.
    get_max_bond() -> int:
        Returns the maximum bond dimension in the MPS.
    shift_orthogonality_center_right(current_orthogonality_center: int) -> None:
        Moves the orthogonality center one site to the right.
    shift_orthogonality_center_left(current_orthogonality_center: int) -> None:
        Moves the orthogonality center one site to the left.
    move_orthogonality_center(site: int) -> None:
        Moves the orthogonality center to the given site.
    copy_from(other: MPS) -> None:
        Overwrites this state with a copy of another state of equal length.
    scalar_product(other: MPS) -> np.complex128:
        Computes the inner product <self|other>.
    """

    def __init__(self, length: int, tensors: list[NDArray[np.complex128]] | None = None) -> None:
        """Initializes a Matrix Product State (MPS).

        Args:
            length: Number of sites (qubits) in the MPS.
            tensors: Predefined tensors representing the MPS. Must match `length` if provided.
                If None, all qubits are initialized to |0⟩.
        """
        assert length >= 1, "An MPS needs at least one site."
        self.length = length
        self.tensors: list[NDArray[np.complex128]] = []
        self.orthogonality_center: int | None = None

        if tensors is not None:
            assert len(tensors) == length
            self.tensors = tensors
        else:
            self.set_basis_state()

    def set_basis_state(self, basis_string: str | None = None) -> None:
        """Overwrite the tensors with a computational basis product state.

        All bonds are reset to dimension one. A product state is canonical around any site, so the
        orthogonality center is placed on the first site.

        Args:
            basis_string: A string like "0101", character i giving the state of qubit i.
                Defaults to the all-zero state.
        """
        if basis_string is None:
            basis_string = "0" * self.length
        assert len(basis_string) == self.length, "Basis string length must match number of sites."

        tensors = []
        for char in basis_string:
            tensor = np.zeros((2, 1, 1), dtype=np.complex128)
            tensor[int(char), 0, 0] = 1.0
            tensors.append(tensor)
        self.tensors = tensors
        self.orthogonality_center = 0

    def get_max_bond(self) -> int:
        """Write max bond dim.

        Returns:
            int: The maximum virtual bond dimension found among all tensors in the network.
        """
        return max(max(tensor.shape[1], tensor.shape[2]) for tensor in self.tensors)

    def shift_orthogonality_center_right(self, current_orthogonality_center: int) -> None:
        """Shifts orthogonality center right.

        This function performs a QR decomposition to shift the known current center to the right.

        Args:
            current_orthogonality_center (int): current center
        """
        site = current_orthogonality_center
        assert site + 1 < self.length, "Cannot shift the orthogonality center beyond the last site."
        site_tensor, bond_tensor = right_qr(self.tensors[site])
        self.tensors[site] = site_tensor
        self.tensors[site + 1] = oe.contract("ij, ajc->aic", bond_tensor, self.tensors[site + 1])
        self.orthogonality_center = site + 1

    def shift_orthogonality_center_left(self, current_orthogonality_center: int) -> None:
        """Shifts orthogonality center left.

        Args:
            current_orthogonality_center (int): current center
        """
        site = current_orthogonality_center
        assert site > 0, "Cannot shift the orthogonality center beyond the first site."
        site_tensor, bond_tensor = left_qr(self.tensors[site])
        self.tensors[site] = site_tensor
        self.tensors[site - 1] = oe.contract("aic, cj->aij", self.tensors[site - 1], bond_tensor)
        self.orthogonality_center = site - 1

    def set_canonical_form(self, orthogonality_center: int) -> None:
        """Sets canonical form of MPS.

        Left and right normalizes an MPS around a selected site.
        NOTE: Slow method compared to shifting based on known form and should be avoided.

        Args:
            orthogonality_center (int): site of matrix MPS around which we normalize
        """
        for site in range(orthogonality_center):
            self.shift_orthogonality_center_right(site)
        for site in range(self.length - 1, orthogonality_center, -1):
            self.shift_orthogonality_center_left(site)
        self.orthogonality_center = orthogonality_center

    def move_orthogonality_center(self, site: int) -> None:
        """Move the orthogonality center to the given site.

        Uses the tracked center if known and falls back to a full canonicalization otherwise.

        Args:
            site: The target site.
        """
        if self.orthogonality_center is None:
            self.set_canonical_form(site)
            return
        while self.orthogonality_center < site:
            self.shift_orthogonality_center_right(self.orthogonality_center)
        while self.orthogonality_center > site:
            self.shift_orthogonality_center_left(self.orthogonality_center)

    def copy_from(self, other: MPS) -> None:
        """Overwrite this state with a copy of another state of equal length.

        Args:
            other: The source state.
        """
        assert other.length == self.length, "Source and target states must have the same number of sites."
        self.tensors = [tensor.copy() for tensor in other.tensors]
        self.orthogonality_center = other.orthogonality_center

    def scalar_product(self, other: MPS) -> np.complex128:
        """Compute the scalar (inner) product <self|other> between two Matrix Product States.

        The tensors are contracted from left to right, keeping a (chi_self, chi_other) environment.

        Args:
            other (MPS): The second Matrix Product State.

        Returns:
            np.complex128: The resulting scalar product as a complex number.
        """
        assert self.length == other.length, "States must have the same number of sites."
        env = np.ones((1, 1), dtype=np.complex128)
        for a, b in zip(self.tensors, other.tensors):
            env = oe.contract("ij, aik, ajl->kl", env, np.conj(a), b)
        return np.complex128(env[0, 0])


    def to_vec(self) -> NDArray[np.complex128]:
        r"""Converts the MPS to a full state vector representation.

        Site 0 is the least significant bit of the basis index, matching qiskit's ordering.

        Returns:
                A one-dimensional NumPy array of length \(2^L\) representing the state vector.
        """
        vec = self.tensors[-1]
        for i in range(self.length - 2, -1, -1):
            vec = oe.contract("pab, qca->pqcb", vec, self.tensors[i])
            vec = vec.reshape(-1, vec.shape[2], vec.shape[3])
        return vec.reshape(-1)
