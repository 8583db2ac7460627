"""
Decompose clusters that are still above the size ceiling.

Each oversized cluster is re-clustered on its own member vectors: the
count is re-estimated with the minimum relaxed to 1 (the outer minimum
cannot be enforced on a forced split) and the same capped agglomeration
runs on the subset. Sub-clusters replace the parent in place.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Mapping

import numpy as np

from wardset.core.errors import InfeasibleConstraintsError, SplitFailureError
from wardset.engine.agglomerator import agglomerate
from wardset.engine.estimator import estimate_cluster_count
from wardset.engine.vector_math import Cluster

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SplitResult:
    clusters: list[Cluster]
    split_count: int


def split_cluster(
    cluster: Cluster,
    vectors: np.ndarray,
    max_size: int,
    row_of: Mapping[int, int] | None = None,
) -> list[Cluster]:
    """Split one cluster into sub-clusters of at most `max_size` members.

    Member indices select rows of `vectors` directly, or through `row_of`
    when `vectors` holds only a subset of the batch.
    """
    try:
        target = estimate_cluster_count(cluster.size, 1, max_size)
    except InfeasibleConstraintsError as exc:
        raise SplitFailureError(
            f"Cannot split cluster of size {cluster.size}: {exc.reason}."
        ) from exc

    members = list(cluster.members)
    rows = [row_of[m] for m in members] if row_of is not None else members
    result = agglomerate(
        vectors[rows],
        target_count=target,
        max_size=max_size,
        item_indices=members,
    )

    oversized = [c.size for c in result.clusters if c.size > max_size]
    if oversized:
        raise SplitFailureError(
            f"Split of cluster of size {cluster.size} left sub-clusters of "
            f"size {oversized} above max_cluster_size={max_size}."
        )

    logger.info(
        "Split cluster of size %d into %d sub-clusters (sizes %s)",
        cluster.size,
        len(result.clusters),
        [c.size for c in result.clusters],
    )
    return result.clusters


def split_oversized(
    clusters: list[Cluster],
    vectors: np.ndarray,
    max_size: int,
    row_of: Mapping[int, int] | None = None,
) -> SplitResult:
    spliced: list[Cluster] = []
    split_count = 0
    for cluster in clusters:
        if cluster.size <= max_size:
            spliced.append(cluster)
            continue
        spliced.extend(split_cluster(cluster, vectors, max_size, row_of))
        split_count += 1
    return SplitResult(clusters=spliced, split_count=split_count)
