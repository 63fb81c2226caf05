# Copyright (c) 2023 - 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Errors raised by the batch expectation simulator.

All failures are synchronous and fail the whole batch call. Each error also derives from the builtin
exception type that is conventionally raised for the same concern, so callers catching ``ValueError``
or ``RuntimeError`` keep working.
"""

from __future__ import annotations


class SimulationError(Exception):
    """Base class of all errors raised by a batch simulation call."""


class InputShapeError(SimulationError, ValueError):
    """Mismatched batch sizes or malformed input shapes, detected before any simulation starts."""


class NormalizationError(SimulationError, ValueError):
    """A circuit or observable could not be parsed or bound to its parameter values."""


class TopologyError(SimulationError, ValueError):
    """The qubits of a circuit do not satisfy the nearest-neighbour chain precondition."""


class EngineError(SimulationError, RuntimeError):
    """Malformed gate data or another contract violation inside the state engine."""
