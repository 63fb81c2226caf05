# Copyright (c) 2023 - 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Library of quantum gates.

This module defines a collection of quantum gate classes used by the circuit normalizer.
Each gate is implemented as a class derived from BaseGate and provides its dense unitary matrix.
Multi-qubit matrices use big-endian ordering, i.e. the first qubit a gate is applied to is the most
significant bit of the matrix index. The GateLibrary class aggregates all gate classes by their
qiskit instruction name.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from numpy.typing import NDArray


class BaseGate:
    """Base class representing a quantum gate.

    Attributes:
        name: The name of the gate.
        matrix: The matrix representation of the gate.
        interaction: The number of qubits the gate acts on.
    """

    name: str
    matrix: NDArray[np.complex128]
    interaction: int

    def __init__(self, mat: NDArray[np.complex128]) -> None:
        """Initializes a BaseGate instance with the given matrix.

        Args:
            mat: The matrix representation of the gate.

        Raises:
            ValueError: If the matrix is not square.
            ValueError: If the matrix size is not a power of 2.
        """
        if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
            msg = "Matrix must be square"
            raise ValueError(msg)

        log = np.log2(mat.shape[0])
        if not float(log).is_integer() or log < 1:
            msg = f"Matrix dimension {mat.shape[0]} is not a power of 2"
            raise ValueError(msg)

        self.matrix = np.asarray(mat, dtype=np.complex128)
        self.interaction = int(log)


class X(BaseGate):
    """Class representing the Pauli-X (NOT) gate."""

    name = "x"

    def __init__(self) -> None:
        """Initializes the Pauli-X gate."""
        mat = np.array([[0, 1], [1, 0]])
        super().__init__(mat)


class Y(BaseGate):
    """Class representing the Pauli-Y gate."""

    name = "y"

    def __init__(self) -> None:
        """Initializes the Pauli-Y gate."""
        mat = np.array([[0, -1j], [1j, 0]])
        super().__init__(mat)


class Z(BaseGate):
    """Class representing the Pauli-Z gate."""

    name = "z"

    def __init__(self) -> None:
        """Initializes the Pauli-Z gate."""
        mat = np.array([[1, 0], [0, -1]])
        super().__init__(mat)


class H(BaseGate):
    """Class representing the Hadamard (H) gate."""

    name = "h"

    def __init__(self) -> None:
        """Initializes the Hadamard gate."""
        mat = np.array([[1 / np.sqrt(2), 1 / np.sqrt(2)], [1 / np.sqrt(2), -1 / np.sqrt(2)]])
        super().__init__(mat)


class Id(BaseGate):
    """Class representing the identity (Id) gate."""

    name = "id"

    def __init__(self) -> None:
        """Initializes the identity gate."""
        mat = np.array([[1, 0], [0, 1]])
        super().__init__(mat)


class S(BaseGate):
    """Class representing the phase (S) gate."""

    name = "s"

    def __init__(self) -> None:
        """Initializes the S gate."""
        mat = np.array([[1, 0], [0, 1j]])
        super().__init__(mat)


class Sdg(BaseGate):
    """Class representing the inverse phase (S dagger) gate."""

    name = "sdg"

    def __init__(self) -> None:
        """Initializes the S dagger gate."""
        mat = np.array([[1, 0], [0, -1j]])
        super().__init__(mat)


class T(BaseGate):
    """Class representing the T gate."""

    name = "t"

    def __init__(self) -> None:
        """Initializes the T gate."""
        mat = np.array([[1, 0], [0, np.exp(1j * np.pi / 4)]])
        super().__init__(mat)


class Tdg(BaseGate):
    """Class representing the T dagger gate."""

    name = "tdg"

    def __init__(self) -> None:
        """Initializes the T dagger gate."""
        mat = np.array([[1, 0], [0, np.exp(-1j * np.pi / 4)]])
        super().__init__(mat)


class SX(BaseGate):
    """Class representing the square-root X (SX) gate."""

    name = "sx"

    def __init__(self) -> None:
        """Initializes the square-root X gate."""
        mat = 0.5 * np.array([[1 + 1j, 1 - 1j], [1 - 1j, 1 + 1j]])
        super().__init__(mat)


class Rx(BaseGate):
    """Class representing a rotation gate about the x-axis.

    Attributes:
        theta: The rotation angle.
    """

    name = "rx"

    def __init__(self, params: list[float]) -> None:
        """Initializes the rotation gate about the x-axis.

        Args:
            params: A list containing a single rotation angle (`theta`).
        """
        self.theta = params[0]
        mat = np.array([
            [np.cos(self.theta / 2), -1j * np.sin(self.theta / 2)],
            [-1j * np.sin(self.theta / 2), np.cos(self.theta / 2)],
        ])
        super().__init__(mat)


class Ry(BaseGate):
    """Class representing a rotation gate about the y-axis.

    Attributes:
        theta: The rotation angle.
    """

    name = "ry"

    def __init__(self, params: list[float]) -> None:
        """Initializes the rotation gate about the y-axis.

        Args:
            params: A list containing a single rotation angle (`theta`).
        """
        self.theta = params[0]
        mat = np.array([
            [np.cos(self.theta / 2), -np.sin(self.theta / 2)],
            [np.sin(self.theta / 2), np.cos(self.theta / 2)],
        ])
        super().__init__(mat)


class Rz(BaseGate):
    """Class representing a rotation gate about the z-axis.

    Attributes:
        theta: The rotation angle.
    """

    name = "rz"

    def __init__(self, params: list[float]) -> None:
        """Initializes the rotation gate about the z-axis.

        Args:
            params: A list containing a single rotation angle (`theta`).
        """
        self.theta = params[0]
        mat = np.array([
            [np.exp(-1j * self.theta / 2), 0],
            [0, np.exp(1j * self.theta / 2)],
        ])
        super().__init__(mat)


class Phase(BaseGate):
    """Class representing a phase gate."""

    name = "p"

    def __init__(self, params: list[float]) -> None:
        """Initializes the phase gate.

        Args:
            params: A list containing a single phase angle (`theta`).
        """
        self.theta = params[0]
        mat = np.array([[1, 0], [0, np.exp(1j * self.theta)]])
        super().__init__(mat)


class U2(BaseGate):
    """Class representing a U2 gate."""

    name = "u2"

    def __init__(self, params: list[float]) -> None:
        """Initializes the U2 gate.

        Args:
            params: A list containing two rotation angles [phi, lambda].
        """
        self.phi, self.lam = params

        inv_sqrt2 = 1 / np.sqrt(2)
        mat = inv_sqrt2 * np.array(
            [[1, -np.exp(1j * self.lam)], [np.exp(1j * self.phi), np.exp(1j * (self.phi + self.lam))]],
            dtype=np.complex128,
        )
        super().__init__(mat)


class U(BaseGate):
    """Class representing a U3 gate."""

    name = "u"

    def __init__(self, params: list[float]) -> None:
        """Initializes the U3 gate.

        Args:
            params: A list containing three rotation angles (theta, phi, lambda).
        """
        self.theta, self.phi, self.lam = params
        mat = np.array([
            [np.cos(self.theta / 2), -np.exp(1j * self.lam) * np.sin(self.theta / 2)],
            [
                np.exp(1j * self.phi) * np.sin(self.theta / 2),
                np.exp(1j * (self.phi + self.lam)) * np.cos(self.theta / 2),
            ],
        ])
        super().__init__(mat)


class CX(BaseGate):
    """Class representing the controlled-NOT (CX) gate.

    The first qubit is the control, the second qubit the target.
    """

    name = "cx"

    def __init__(self) -> None:
        """Initializes the controlled-NOT (CX) gate."""
        mat = np.array([[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 0, 1], [0, 0, 1, 0]])
        super().__init__(mat)


class CY(BaseGate):
    """Class representing the controlled-Y (CY) gate."""

    name = "cy"

    def __init__(self) -> None:
        """Initializes the controlled-Y gate."""
        mat = np.array([[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 0, -1j], [0, 0, 1j, 0]])
        super().__init__(mat)


class CZ(BaseGate):
    """Class representing the controlled-Z (CZ) gate."""

    name = "cz"

    def __init__(self) -> None:
        """Initializes the controlled-Z (CZ) gate."""
        mat = np.array([[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 1, 0], [0, 0, 0, -1]])
        super().__init__(mat)


class CPhase(BaseGate):
    """Class representing the controlled phase gate."""

    name = "cp"

    def __init__(self, params: list[float]) -> None:
        """Initializes the controlled phase gate.

        Args:
            params: A list containing a single phase angle (`theta`).
        """
        self.theta = params[0]
        mat = np.array([[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 1, 0], [0, 0, 0, np.exp(1j * self.theta)]])
        super().__init__(mat)


class SWAP(BaseGate):
    """Class representing the SWAP gate."""

    name = "swap"

    def __init__(self) -> None:
        """Initializes the SWAP gate."""
        mat = np.array([[1, 0, 0, 0], [0, 0, 1, 0], [0, 1, 0, 0], [0, 0, 0, 1]])
        super().__init__(mat)


class Rxx(BaseGate):
    """Class representing the two-qubit XX rotation gate exp(-i theta/2 X⊗X)."""

    name = "rxx"

    def __init__(self, params: list[float]) -> None:
        """Initializes the Rxx gate.

        Args:
            params: A list containing a single rotation angle (`theta`).
        """
        self.theta = params[0]
        mat = np.array([
            [np.cos(self.theta / 2), 0, 0, -1j * np.sin(self.theta / 2)],
            [0, np.cos(self.theta / 2), -1j * np.sin(self.theta / 2), 0],
            [0, -1j * np.sin(self.theta / 2), np.cos(self.theta / 2), 0],
            [-1j * np.sin(self.theta / 2), 0, 0, np.cos(self.theta / 2)],
        ])
        super().__init__(mat)


class Ryy(BaseGate):
    """Class representing the two-qubit YY rotation gate exp(-i theta/2 Y⊗Y)."""

    name = "ryy"

    def __init__(self, params: list[float]) -> None:
        """Initializes the Ryy gate.

        Args:
            params: A list containing a single rotation angle (`theta`).
        """
        self.theta = params[0]
        mat = np.array([
            [np.cos(self.theta / 2), 0, 0, 1j * np.sin(self.theta / 2)],
            [0, np.cos(self.theta / 2), -1j * np.sin(self.theta / 2), 0],
            [0, -1j * np.sin(self.theta / 2), np.cos(self.theta / 2), 0],
            [1j * np.sin(self.theta / 2), 0, 0, np.cos(self.theta / 2)],
        ])
        super().__init__(mat)


class Rzz(BaseGate):
    """Class representing the two-qubit ZZ rotation gate exp(-i theta/2 Z⊗Z)."""

    name = "rzz"

    def __init__(self, params: list[float]) -> None:
        """Initializes the Rzz gate.

        Args:
            params: A list containing a single rotation angle (`theta`).
        """
        self.theta = params[0]
        mat = np.array([
            [np.exp(-1j * self.theta / 2), 0, 0, 0],
            [0, np.exp(1j * self.theta / 2), 0, 0],
            [0, 0, np.exp(1j * self.theta / 2), 0],
            [0, 0, 0, np.exp(-1j * self.theta / 2)],
        ])
        super().__init__(mat)


class GateLibrary:
    """A collection of quantum gate classes keyed by their qiskit instruction name.

    Attributes:
        x: Class for the X gate.
        y: Class for the Y gate.
        z: Class for the Z gate.
        h: Class for the Hadamard gate.
        id: Class for the identity gate.
        s: Class for the S gate.
        sdg: Class for the S dagger gate.
        t: Class for the T gate.
        tdg: Class for the T dagger gate.
        sx: Class for the square-root X gate.
        rx: Class for the rotation gate about the x-axis.
        ry: Class for the rotation gate about the y-axis.
        rz: Class for the rotation gate about the z-axis.
        p: Class for the phase gate.
        u: Class for the U3 gate.
        u1: Alias of the phase gate.
        u3: Alias of the U3 gate.
        u2: Class for the U2 gate.
        cx: Class for the controlled-NOT gate.
        cy: Class for the controlled-Y gate.
        cz: Class for the controlled-Z gate.
        cp: Class for the controlled phase gate.
        swap: Class for the SWAP gate.
        rxx: Class for the rotation gate about the xx-axis.
        ryy: Class for the rotation gate about the yy-axis.
        rzz: Class for the rotation gate about the zz-axis.
    """

    x = X
    y = Y
    z = Z
    h = H
    id = Id
    s = S
    sdg = Sdg
    t = T
    tdg = Tdg
    sx = SX
    rx = Rx
    ry = Ry
    rz = Rz
    p = Phase
    u = U
    u1 = Phase
    u3 = U
    u2 = U2
    cx = CX
    cy = CY
    cz = CZ
    cp = CPhase
    swap = SWAP
    rxx = Rxx
    ryy = Ryy
    rzz = Rzz
