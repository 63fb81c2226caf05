# Copyright (c) 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Circuit and observable normalization.

This module converts the raw description of one batch row into the internal representation:
  - A qiskit QuantumCircuit (or an OpenQASM 2 program) and a symbol binding map become a CircuitInstance,
    an ordered list of GateOp objects with dense unitaries taken from the GateLibrary.
  - Observables given as PauliSum, PauliTerm, qiskit SparsePauliOp or Pauli label strings become PauliSum objects.
It also provides the chain-locality check that every normalized batch must pass before simulation.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Union

import numpy as np
from qiskit import qasm2
from qiskit.circuit import ControlFlowOp, QuantumCircuit
from qiskit.exceptions import QiskitError
from qiskit.quantum_info import Operator, SparsePauliOp

from ..core.data_structures.circuit import CircuitInstance, GateOp
from ..core.data_structures.observables import PauliSum, PauliTerm
from ..core.libraries.gate_library import GateLibrary
from ..exceptions import InputShapeError, NormalizationError, TopologyError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from numpy.typing import ArrayLike

Program = Union[QuantumCircuit, str]
ObservableLike = Union[PauliSum, PauliTerm, SparsePauliOp, str]

# Instructions without effect on the simulated state.
IGNORED_INSTRUCTIONS = {"measure", "barrier", "delay"}


def bindings_from_symbol_values(symbol_names: Sequence[str], symbol_values: ArrayLike) -> list[dict[str, float]]:
    """Convert a table of symbol values into one binding map per batch row.

    Args:
        symbol_names: The S symbol names.
        symbol_values: Array of shape (B, S), row i holding the values of circuit i.

    Returns:
        list[dict[str, float]]: B maps from symbol name to value.

    Raises:
        InputShapeError: If the values are not a 2D array with one column per symbol name,
            or a symbol name repeats.
    """
    names = list(symbol_names)
    if len(set(names)) != len(names):
        msg = f"Symbol names must be unique, got {names}."
        raise InputShapeError(msg)
    values = np.asarray(symbol_values, dtype=np.float64)
    if values.ndim == 1 and values.size == 0:
        values = values.reshape(0, len(names))
    if values.ndim != 2:
        msg = f"symbol_values must be a 2D array, got {values.ndim} dimensions."
        raise InputShapeError(msg)
    if values.shape[1] != len(names):
        msg = f"symbol_values has {values.shape[1]} columns but {len(names)} symbol names were given."
        raise InputShapeError(msg)
    return [dict(zip(names, (float(v) for v in row))) for row in values]


def load_program(program: Program) -> QuantumCircuit:
    """Load a program into a QuantumCircuit.

    Args:
        program: A QuantumCircuit or the source of an OpenQASM 2 program.

    Returns:
        QuantumCircuit: The circuit.

    Raises:
        NormalizationError: If the program cannot be parsed or has an unsupported type.
    """
    if isinstance(program, QuantumCircuit):
        return program
    if isinstance(program, str):
        try:
            return qasm2.loads(program)
        except qasm2.QASM2ParseError as e:
            msg = f"Could not parse OpenQASM 2 program: {e}"
            raise NormalizationError(msg) from e
    msg = f"Unsupported program type {type(program).__name__}."
    raise NormalizationError(msg)


def bind_parameters(circuit: QuantumCircuit, bindings: Mapping[str, float]) -> QuantumCircuit:
    """Assign numeric values to all symbolic parameters of a circuit.

    Symbols in `bindings` that do not occur in the circuit are ignored.

    Args:
        circuit: The parameterized circuit.
        bindings: Map from parameter name to value.

    Returns:
        QuantumCircuit: A circuit without free parameters.

    Raises:
        NormalizationError: If a parameter of the circuit has no value or a value is not a number.
    """
    if not circuit.parameters:
        return circuit
    missing = [param.name for param in circuit.parameters if param.name not in bindings]
    if missing:
        msg = f"No value bound for circuit parameters {missing}."
        raise NormalizationError(msg)
    try:
        values = {param: float(bindings[param.name]) for param in circuit.parameters}
    except (TypeError, ValueError) as e:
        msg = f"Parameter values must be real numbers: {e}"
        raise NormalizationError(msg) from e
    return circuit.assign_parameters(values, inplace=False)


def _gate_matrix(operation: object, name: str, params: list[float], num_qubits: int) -> tuple[np.ndarray, bool]:
    """Dense matrix of an instruction.

    Returns:
        The matrix and whether it is given in big-endian qubit order.
    """
    gate_class = getattr(GateLibrary, name, None)
    if gate_class is not None:
        gate = gate_class(params) if params else gate_class()
        if gate.interaction == num_qubits:
            return gate.matrix, True
    try:
        return Operator(operation).data, False
    except (QiskitError, TypeError, ValueError) as e:
        msg = f"Instruction '{name}' is not a unitary gate."
        raise NormalizationError(msg) from e


def normalize_circuit(program: Program, bindings: Mapping[str, float] | None = None) -> CircuitInstance:
    """Convert a program and its parameter bindings into a CircuitInstance.

    Measurements, barriers and delays are dropped. Qubit q of the circuit is mapped to site q of the chain.

    Args:
        program: A QuantumCircuit or OpenQASM 2 source.
        bindings: Map from parameter name to value.

    Returns:
        CircuitInstance: The normalized circuit.

    Raises:
        NormalizationError: If the program cannot be parsed, a parameter is unbound, or an instruction
            is not a unitary gate.
    """
    circuit = bind_parameters(load_program(program), bindings or {})

    gates = []
    for instruction in circuit.data:
        operation = instruction.operation
        name = operation.name
        if name in IGNORED_INSTRUCTIONS:
            continue
        if name == "reset" or isinstance(operation, ControlFlowOp) or instruction.clbits:
            msg = f"Instruction '{name}' is not supported; only unitary gates can be simulated."
            raise NormalizationError(msg)

        qubits = [circuit.find_bit(qubit).index for qubit in instruction.qubits]
        try:
            params = [float(param) for param in operation.params]
        except (TypeError, ValueError) as e:
            msg = f"Instruction '{name}' has non-numeric parameters {operation.params}."
            raise NormalizationError(msg) from e

        matrix, big_endian = _gate_matrix(operation, name, params, len(qubits))
        if not big_endian:
            # qiskit matrices are little-endian in the instruction's qubits
            qubits.reverse()
        gates.append(GateOp(tuple(qubits), matrix, name))

    return CircuitInstance(tuple(gates), circuit.num_qubits)


def normalize_observable(observable: ObservableLike, num_qubits: int | None = None) -> PauliSum:
    """Convert an observable description into a PauliSum acting within the circuit's qubits.

    Args:
        observable: A PauliSum, PauliTerm, SparsePauliOp or Pauli label string.
        num_qubits: Number of qubits of the circuit the observable is measured on. If None, the width is
            not checked.

    Returns:
        PauliSum: The observable.

    Raises:
        NormalizationError: If the observable cannot be converted or acts outside the circuit.
    """
    if isinstance(observable, PauliSum):
        pauli_sum = observable
    elif isinstance(observable, PauliTerm):
        pauli_sum = PauliSum((observable,))
    elif isinstance(observable, SparsePauliOp):
        pauli_sum = PauliSum.from_sparse_pauli_op(observable)
    elif isinstance(observable, str):
        pauli_sum = PauliSum.from_terms([(1.0, observable)])
    else:
        msg = f"Unsupported observable type {type(observable).__name__}."
        raise NormalizationError(msg)

    if num_qubits is not None and pauli_sum.max_qubit() >= num_qubits:
        msg = f"Observable acts on qubit {pauli_sum.max_qubit()} but the circuit has only {num_qubits} qubits."
        raise NormalizationError(msg)
    return pauli_sum


def check_qubits_in_1d(circuits: Sequence[CircuitInstance]) -> None:
    """Check that every circuit fits the nearest-neighbour chain.

    Every gate may act on at most two qubits, and two-qubit gates must act on neighbouring qubit indices.

    Args:
        circuits: The normalized circuits.

    Raises:
        TopologyError: If a gate violates the chain locality.
    """
    for index, circuit in enumerate(circuits):
        for gate in circuit.gates:
            if len(gate.qubits) > 2:
                msg = (
                    f"Circuit {index}: gate '{gate.name}' acts on {len(gate.qubits)} qubits; "
                    "only one- and two-qubit gates are supported."
                )
                raise TopologyError(msg)
            if len(gate.qubits) == 2 and abs(gate.qubits[0] - gate.qubits[1]) != 1:
                msg = (
                    f"Circuit {index}: gate '{gate.name}' acts on qubits {list(gate.qubits)} "
                    "which are not neighbours on the qubit chain."
                )
                raise TopologyError(msg)
