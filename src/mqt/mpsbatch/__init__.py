# Copyright (c) 2023 - 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""MPS batch expectation init file.

A part of the Munich Quantum Toolkit (MQT) that evaluates expectation values of Pauli-sum observables
for batches of parameterized quantum circuits using an approximate Matrix Product State (MPS) representation
with a fixed bond dimension.
"""

from __future__ import annotations

from ._version import version as __version__
from ._version import version_tuple as version_info

__all__ = ["__version__", "version_info"]
