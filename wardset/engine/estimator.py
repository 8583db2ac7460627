"""
Target cluster-count estimation from the item count and the size bounds.

    k_min = ceil(n / max_size)    fewest clusters so none must exceed max_size
    k_max = floor(n / min_size)   most clusters so none must fall below min_size

The estimate is the midpoint of [k_min, k_max], rounded down, which biases
toward fewer, larger clusters. It is a heuristic: agglomeration to that
count does not guarantee a size distribution inside the bounds, which is
why splitting and final validation exist downstream.
"""

from __future__ import annotations

from wardset.core.errors import InfeasibleConstraintsError, InvalidClusterInputError


def _check_bounds(min_size: int, max_size: int) -> None:
    if min_size < 1:
        raise InvalidClusterInputError(
            f"min_cluster_size must be >= 1; got {min_size}."
        )
    if max_size < 1:
        raise InvalidClusterInputError(
            f"max_cluster_size must be >= 1; got {max_size}."
        )


def cluster_count_bounds(n: int, min_size: int, max_size: int) -> tuple[int, int]:
    """Return the feasible range (k_min, k_max) of cluster counts."""
    _check_bounds(min_size, max_size)
    if n < min_size:
        raise InfeasibleConstraintsError(n, min_size, max_size, "too few items")

    k_min = -(-n // max_size)
    k_max = n // min_size
    if k_min > k_max:
        raise InfeasibleConstraintsError(
            n, min_size, max_size, "no cluster count satisfies both bounds"
        )
    return k_min, k_max


def estimate_cluster_count(n: int, min_size: int, max_size: int) -> int:
    k_min, k_max = cluster_count_bounds(n, min_size, max_size)
    if k_min == k_max:
        return k_min
    return (k_min + k_max) // 2


def candidate_counts(n: int, min_size: int, max_size: int) -> list[int]:
    """Every feasible count, closest to the midpoint estimate first.

    Equidistant counts are ordered smaller-first, so the list always starts
    with `estimate_cluster_count(n, min_size, max_size)`.
    """
    k_min, k_max = cluster_count_bounds(n, min_size, max_size)
    midpoint = k_min if k_min == k_max else (k_min + k_max) // 2
    return sorted(range(k_min, k_max + 1), key=lambda k: (abs(k - midpoint), k))
