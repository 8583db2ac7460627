"""
Pairwise Ward distances between the live clusters of one agglomeration run.

Rows and columns are indexed by *position* in the live-cluster list, not by
item index. Alongside the matrix we keep the clusters themselves and a
position → cluster-id list, so a merge is an explicit remap:

    1. delete both positions (array copy via numpy.delete, larger first),
    2. append the merged cluster at the end with a fresh id,
    3. fill its row/column with Ward distances to every survivor.

Pairs known to break the size ceiling hold the EXCLUDED sentinel (+inf)
in both orientations until one of the two clusters is merged away.
"""

from __future__ import annotations

import logging

import numpy as np
from sklearn.metrics.pairwise import euclidean_distances  # type: ignore

from wardset.engine.vector_math import DTYPE, Cluster, ward_distances_to

logger = logging.getLogger(__name__)

EXCLUDED = np.inf


class DistanceMatrix:
    def __init__(self, clusters: list[Cluster]) -> None:
        self._clusters: list[Cluster] = list(clusters)
        self._ids: list[int] = list(range(len(self._clusters)))
        self._next_id = len(self._clusters)
        self._matrix = self._initial_matrix(self._clusters)

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def from_vectors(
        cls,
        vectors: np.ndarray,
        item_indices: list[int] | None = None,
    ) -> "DistanceMatrix":
        """One singleton cluster per row of `vectors`.

        `item_indices[row]` is recorded as the member index of that row's
        cluster; it defaults to the row number.
        """
        if item_indices is None:
            item_indices = list(range(len(vectors)))
        clusters = [
            Cluster.singleton(index, vector)
            for index, vector in zip(item_indices, vectors)
        ]
        return cls(clusters)

    @staticmethod
    def _initial_matrix(clusters: list[Cluster]) -> np.ndarray:
        n = len(clusters)
        if n == 0:
            return np.zeros((0, 0), dtype=DTYPE)

        centroids = np.vstack([c.centroid for c in clusters]).astype(DTYPE, copy=False)
        sizes = np.array([c.size for c in clusters], dtype=DTYPE)

        squared = euclidean_distances(centroids, squared=True).astype(DTYPE)
        weights = np.outer(sizes, sizes) / (sizes[:, None] + sizes[None, :])
        matrix = (weights * squared).astype(DTYPE, copy=False)

        # Force exact symmetry and a zero diagonal.
        matrix = np.triu(matrix, k=1)
        matrix = matrix + matrix.T
        return matrix.astype(DTYPE, copy=False)

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #

    def __len__(self) -> int:
        return len(self._clusters)

    @property
    def clusters(self) -> list[Cluster]:
        return list(self._clusters)

    @property
    def cluster_ids(self) -> list[int]:
        return list(self._ids)

    def cluster_at(self, position: int) -> Cluster:
        return self._clusters[position]

    def distance(self, i: int, j: int) -> float:
        return float(self._matrix[i, j])

    def as_array(self) -> np.ndarray:
        return self._matrix.copy()

    def pending_pairs(self) -> int:
        """Number of unordered pairs that may still be merged."""
        upper = np.triu(np.isfinite(self._matrix), k=1)
        return int(upper.sum())

    # ------------------------------------------------------------------ #
    # Operations
    # ------------------------------------------------------------------ #

    def closest_pair(self) -> tuple[int, int] | None:
        """Positions (i, j), i < j, of the minimum finite distance.

        The upper triangle is scanned in row-major order and the first
        minimum wins, so equidistant pairs always resolve the same way.
        Returns None when every pair is excluded.
        """
        n = len(self._clusters)
        if n < 2:
            return None
        upper = np.where(
            np.triu(np.ones((n, n), dtype=bool), k=1),
            self._matrix,
            EXCLUDED,
        )
        flat = int(np.argmin(upper))
        i, j = divmod(flat, n)
        if not np.isfinite(upper[i, j]):
            return None
        return i, j

    def exclude(self, i: int, j: int) -> None:
        self._matrix[i, j] = EXCLUDED
        self._matrix[j, i] = EXCLUDED

    def replace_pair(self, i: int, j: int, merged: Cluster) -> int:
        """Drop positions i and j, append `merged`. Returns its new position."""
        if i == j:
            raise ValueError("Cannot merge a cluster with itself.")
        first, second = sorted((i, j))

        # Remove the larger position first so the smaller one stays valid.
        for position in (second, first):
            del self._clusters[position]
            del self._ids[position]
        self._matrix = np.delete(self._matrix, [first, second], axis=0)
        self._matrix = np.delete(self._matrix, [first, second], axis=1)

        survivors = len(self._clusters)
        if survivors:
            centroids = np.vstack([c.centroid for c in self._clusters])
            sizes = np.array([c.size for c in self._clusters], dtype=DTYPE)
            row = ward_distances_to(merged, centroids, sizes)
        else:
            row = np.empty(0, dtype=DTYPE)

        grown = np.zeros((survivors + 1, survivors + 1), dtype=DTYPE)
        grown[:survivors, :survivors] = self._matrix
        grown[survivors, :survivors] = row
        grown[:survivors, survivors] = row
        self._matrix = grown

        self._clusters.append(merged)
        self._ids.append(self._next_id)
        self._next_id += 1
        return survivors
