"""
Size-capped Ward agglomeration.

Starting from one cluster per vector, repeatedly merge the closest pair
until `target_count` clusters remain:

    RUNNING ──(live == target)──────────────▶ CONVERGED ─┐
       │                                                  ├─▶ DONE
       └──(no finite distance left)─────────▶ STALLED ───┘

A pair whose combined size would exceed `max_size` is excluded for the
rest of the run and the scan is repeated; each cluster of that pair may
still merge with a third one. A stalled run returns its clusters as they
are and leaves it to final validation to decide whether they are usable.
Returning the result is the DONE transition.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from wardset.engine.distance_matrix import DistanceMatrix
from wardset.engine.vector_math import Cluster, merge_clusters

logger = logging.getLogger(__name__)


class AgglomerationState(str, enum.Enum):
    running = "running"
    converged = "converged"
    stalled = "stalled"


@dataclass(frozen=True)
class AgglomerationResult:
    clusters: list[Cluster]
    state: AgglomerationState       # converged or stalled
    target_count: int
    merges: int
    exclusions: int

    @property
    def stalled(self) -> bool:
        return self.state is AgglomerationState.stalled


def agglomerate(
    vectors: np.ndarray,
    target_count: int,
    max_size: int,
    item_indices: Sequence[int] | None = None,
) -> AgglomerationResult:
    """
    Merge the rows of `vectors` bottom-up into `target_count` clusters.

    `item_indices[row]` is the original item index recorded for that row;
    the splitter uses it to run on a subset without renumbering.
    """
    if target_count < 1:
        raise ValueError(f"target_count must be >= 1; got {target_count}.")
    if item_indices is not None and len(item_indices) != len(vectors):
        raise ValueError(
            f"item_indices has {len(item_indices)} entries for "
            f"{len(vectors)} vectors."
        )

    matrix = DistanceMatrix.from_vectors(
        vectors, list(item_indices) if item_indices is not None else None
    )
    state = AgglomerationState.running
    merges = 0
    exclusions = 0

    while state is AgglomerationState.running:
        if len(matrix) <= target_count:
            state = AgglomerationState.converged
            break

        pair = matrix.closest_pair()
        if pair is None:
            state = AgglomerationState.stalled
            logger.warning(
                "Agglomeration stalled at %d clusters (target %d): "
                "every remaining pair exceeds max_size=%d",
                len(matrix), target_count, max_size,
            )
            break

        i, j = pair
        a, b = matrix.cluster_at(i), matrix.cluster_at(j)
        if a.size + b.size > max_size:
            matrix.exclude(i, j)
            exclusions += 1
            logger.debug(
                "Excluded pair (%d, %d): combined size %d > %d",
                i, j, a.size + b.size, max_size,
            )
            continue

        merged = merge_clusters(a, b)
        matrix.replace_pair(i, j, merged)
        merges += 1
        logger.debug(
            "Merged clusters at positions %d and %d into size %d (%d live)",
            i, j, merged.size, len(matrix),
        )

    return AgglomerationResult(
        clusters=matrix.clusters,
        state=state,
        target_count=target_count,
        merges=merges,
        exclusions=exclusions,
    )
