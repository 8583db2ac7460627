"""Unit tests for target cluster-count estimation."""

from __future__ import annotations

import math

import pytest

from wardset.core.errors import InfeasibleConstraintsError, InvalidClusterInputError
from wardset.engine.estimator import (
    candidate_counts,
    cluster_count_bounds,
    estimate_cluster_count,
)


@pytest.mark.parametrize(
    ("n", "min_size", "max_size", "expected"),
    [
        (10, 3, 6, 2),     # k in [2, 3] -> midpoint 2
        (6, 6, 6, 1),
        (20, 2, 5, 7),     # k in [4, 10]
        (9, 2, 4, 3),      # k in [3, 4]
        (1, 1, 1, 1),
        (12, 1, 12, 6),    # k in [1, 12]
    ],
)
def test_estimate_examples(n: int, min_size: int, max_size: int, expected: int) -> None:
    assert estimate_cluster_count(n, min_size, max_size) == expected


def test_estimate_within_bounds_for_all_feasible_inputs() -> None:
    for n in range(1, 40):
        for min_size in range(1, 8):
            for max_size in range(min_size, 12):
                k_min = math.ceil(n / max_size)
                k_max = math.floor(n / min_size)
                if n < min_size or k_min > k_max:
                    with pytest.raises(InfeasibleConstraintsError):
                        estimate_cluster_count(n, min_size, max_size)
                    continue
                k = estimate_cluster_count(n, min_size, max_size)
                assert k_min <= k <= k_max


def test_five_items_min_three_max_three_is_infeasible() -> None:
    with pytest.raises(InfeasibleConstraintsError, match="both bounds") as exc_info:
        estimate_cluster_count(5, 3, 3)
    assert exc_info.value.code == "infeasible_constraints"
    assert exc_info.value.detail["n_items"] == 5


def test_seven_items_min_three_max_three_is_infeasible() -> None:
    with pytest.raises(InfeasibleConstraintsError):
        estimate_cluster_count(7, 3, 3)


def test_too_few_items() -> None:
    with pytest.raises(InfeasibleConstraintsError, match="too few items"):
        estimate_cluster_count(2, 3, 6)


def test_max_below_min_is_infeasible() -> None:
    with pytest.raises(InfeasibleConstraintsError):
        estimate_cluster_count(10, 5, 3)


@pytest.mark.parametrize(("min_size", "max_size"), [(0, 3), (1, 0), (-2, 4)])
def test_non_positive_bounds_rejected(min_size: int, max_size: int) -> None:
    with pytest.raises(InvalidClusterInputError):
        estimate_cluster_count(10, min_size, max_size)


def test_bounds() -> None:
    assert cluster_count_bounds(10, 3, 6) == (2, 3)
    assert cluster_count_bounds(6, 6, 6) == (1, 1)


def test_candidate_counts_start_at_midpoint() -> None:
    candidates = candidate_counts(20, 2, 5)    # k in [4, 10], midpoint 7

    assert candidates[0] == estimate_cluster_count(20, 2, 5)
    assert candidates == [7, 6, 8, 5, 9, 4, 10]


def test_candidate_counts_single_value() -> None:
    assert candidate_counts(6, 6, 6) == [1]
