"""
Constrained Ward clustering: the single entry point of the engine.

    cluster_items(vectors, item_ids, min_size, max_size)
        -> estimate K -> agglomerate (capped) -> split oversized -> assemble

Everything here is a pure function of its arguments: each run builds its
own clusters and distance matrix, so independent runs may execute in
parallel threads without coordination. The caller must not mutate
`vectors` while a run is in progress.
"""

from __future__ import annotations

import enum
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

import numpy as np

from wardset.core.errors import InvalidClusterInputError
from wardset.engine.agglomerator import AgglomerationState, agglomerate
from wardset.engine.assembler import (
    UndersizedPolicy,
    assemble_partition,
    size_violations,
)
from wardset.engine.estimator import candidate_counts, estimate_cluster_count
from wardset.engine.splitter import split_oversized
from wardset.engine.vector_math import DTYPE, Cluster

logger = logging.getLogger(__name__)


class CountStrategy(str, enum.Enum):
    midpoint = "midpoint"   # midpoint of [k_min, k_max]
    search = "search"       # try every feasible count, keep the best partition


@dataclass(frozen=True)
class Partition:
    clusters: list[Cluster]
    target_count: int
    state: AgglomerationState
    split_count: int


@dataclass(frozen=True)
class ClusteringOutcome:
    clusters: dict[int, list[str]]
    target_count: int
    state: AgglomerationState
    split_count: int
    dropped_item_ids: list[str] = field(default_factory=list)

    @property
    def stalled(self) -> bool:
        return self.state is AgglomerationState.stalled


# --------------------------------------------------------------------------- #
# Input validation
# --------------------------------------------------------------------------- #

def as_vector_array(vectors: Sequence[Sequence[float]] | np.ndarray) -> np.ndarray:
    """Validate and convert the input batch to a finite (n, d) float32 array."""
    try:
        array = np.asarray(vectors, dtype=DTYPE)
    except ValueError as exc:
        raise InvalidClusterInputError(
            f"Embeddings must all have the same dimensionality: {exc}"
        ) from exc

    if array.size == 0 and array.ndim == 1:
        array = array.reshape(0, 0)
    if array.ndim != 2:
        raise InvalidClusterInputError(
            f"Embeddings must form a 2-D array; got shape {array.shape}."
        )
    if array.shape[0] > 0 and array.shape[1] == 0:
        raise InvalidClusterInputError("Embeddings must have at least one dimension.")
    if not np.all(np.isfinite(array)):
        raise InvalidClusterInputError("Embeddings contain NaN or infinite values.")
    return array


def _check_item_ids(item_ids: Sequence[str], n_vectors: int) -> None:
    if len(item_ids) != n_vectors:
        raise InvalidClusterInputError(
            f"Got {n_vectors} embeddings but {len(item_ids)} item ids."
        )
    duplicates = sorted(i for i, count in Counter(item_ids).items() if count > 1)
    if duplicates:
        raise InvalidClusterInputError(f"Duplicate item ids: {duplicates}.")


# --------------------------------------------------------------------------- #
# Partitioning
# --------------------------------------------------------------------------- #

def partition(
    vectors: np.ndarray,
    min_size: int,
    max_size: int,
    *,
    item_indices: Sequence[int] | None = None,
    target_count: int | None = None,
) -> Partition:
    """
    Agglomerate `vectors` to the target count, then split oversized clusters.

    `target_count` defaults to the midpoint estimate for (n, min_size,
    max_size). Member indices come from `item_indices` when given, so the
    same function serves the whole batch and any subset of it.
    """
    n = len(vectors)
    if target_count is None:
        target_count = estimate_cluster_count(n, min_size, max_size)

    result = agglomerate(vectors, target_count, max_size, item_indices=item_indices)

    row_of = None
    if item_indices is not None:
        row_of = {index: row for row, index in enumerate(item_indices)}
    split = split_oversized(result.clusters, vectors, max_size, row_of)

    return Partition(
        clusters=split.clusters,
        target_count=target_count,
        state=result.state,
        split_count=split.split_count,
    )


def _search_partition(vectors: np.ndarray, min_size: int, max_size: int) -> Partition:
    """Try each feasible count, midpoint first; keep the fewest violations."""
    scored: list[tuple[int, Partition]] = []
    for k in candidate_counts(len(vectors), min_size, max_size):
        candidate = partition(vectors, min_size, max_size, target_count=k)
        violations = len(size_violations(candidate.clusters, min_size, max_size))
        logger.debug("Cluster count %d -> %d size violation(s)", k, violations)
        if violations == 0:
            return candidate
        scored.append((violations, candidate))
    # min() keeps the earliest candidate among equal scores.
    return min(scored, key=lambda pair: pair[0])[1]


# --------------------------------------------------------------------------- #
# Entry point
# --------------------------------------------------------------------------- #

def cluster_items(
    vectors: Sequence[Sequence[float]] | np.ndarray,
    item_ids: Sequence[str],
    min_size: int,
    max_size: int,
    *,
    on_undersized: UndersizedPolicy = UndersizedPolicy.fail,
    strategy: CountStrategy = CountStrategy.midpoint,
) -> ClusteringOutcome:
    """
    Partition the items into clusters of `min_size`..`max_size` members.

    Raises:
        InvalidClusterInputError:   malformed vectors, ids or bounds.
        InfeasibleConstraintsError: no cluster count fits `len(item_ids)`.
        ConstraintViolationError:   the final partition breaks the bounds
                                    (and the undersized policy is `fail`).
        SplitFailureError:          an oversized cluster could not be split.
    """
    array = as_vector_array(vectors)
    _check_item_ids(item_ids, len(array))

    n = len(array)
    logger.info(
        "Clustering %d items (min_size=%d, max_size=%d, strategy=%s)",
        n, min_size, max_size, strategy.value,
    )

    if strategy is CountStrategy.search:
        parts = _search_partition(array, min_size, max_size)
    else:
        parts = partition(array, min_size, max_size)
    logger.info(
        "Target cluster count %d; agglomeration %s with %d clusters",
        parts.target_count, parts.state.value, len(parts.clusters),
    )

    assembled = assemble_partition(
        parts.clusters, item_ids, min_size, max_size, on_undersized
    )
    logger.info("Clustering successful: formed %d clusters", len(assembled.clusters))

    return ClusteringOutcome(
        clusters=assembled.clusters,
        target_count=parts.target_count,
        state=parts.state,
        split_count=parts.split_count,
        dropped_item_ids=assembled.dropped_item_ids,
    )
