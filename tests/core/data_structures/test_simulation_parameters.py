# Copyright (c) 2023 - 2025 Chair for Design Automation, TUM
# All rights reserved.
#
# SPDX-License-Identifier: MIT
#
# Licensed under the MIT License

"""Tests for simulation parameters classes.

This module contains unit tests for the BatchSimParams class. It verifies that:
  - BatchSimParams instances are created with the correct default and explicit attributes.
  - Strategies can be given as enum members or by name.
  - Out-of-range parameters raise a ValueError.
"""

from __future__ import annotations

import pytest

from mqt.mpsbatch.core.data_structures.simulation_parameters import BatchSimParams, ExecutionStrategy


def test_batch_sim_params_defaults() -> None:
    """Test the default parameters.

    By default the bond dimension is 2, the strategy is AUTO without a small-batch cutoff, the number of
    workers is resolved at run time and no progress bars are shown.
    """
    sim_params = BatchSimParams()
    assert sim_params.bond_dim == 2
    assert sim_params.threshold == 1e-12
    assert sim_params.strategy is ExecutionStrategy.AUTO
    assert sim_params.small_batch_max_qubits is None
    assert sim_params.small_batch_min_circuits == 2
    assert sim_params.max_workers is None
    assert sim_params.show_progress is False


def test_batch_sim_params_custom() -> None:
    """Test explicit parameters, including a strategy given by name."""
    sim_params = BatchSimParams(
        bond_dim=16,
        threshold=1e-9,
        strategy="parallel",
        small_batch_max_qubits=10,
        small_batch_min_circuits=4,
        max_workers=3,
        show_progress=True,
    )
    assert sim_params.bond_dim == 16
    assert sim_params.threshold == 1e-9
    assert sim_params.strategy is ExecutionStrategy.PARALLEL
    assert sim_params.small_batch_max_qubits == 10
    assert sim_params.small_batch_min_circuits == 4
    assert sim_params.max_workers == 3
    assert sim_params.show_progress is True


@pytest.mark.parametrize(
    ("kwargs", "match"),
    [
        ({"bond_dim": 1}, "Bond dimension"),
        ({"bond_dim": 2.5}, "Bond dimension"),
        ({"threshold": -1.0}, "threshold"),
        ({"small_batch_max_qubits": 0}, "small_batch_max_qubits"),
        ({"small_batch_min_circuits": 0}, "small_batch_min_circuits"),
        ({"max_workers": 0}, "max_workers"),
    ],
)
def test_batch_sim_params_invalid(kwargs: dict[str, object], match: str) -> None:
    """Test that out-of-range parameters are rejected."""
    with pytest.raises(ValueError, match=match):
        BatchSimParams(**kwargs)  # type: ignore[arg-type]


def test_unknown_strategy() -> None:
    """Test that an unknown strategy name raises a ValueError."""
    with pytest.raises(ValueError, match="fastest"):
        BatchSimParams(strategy="fastest")
