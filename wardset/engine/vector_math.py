"""
Cluster entity and Ward-linkage vector math.

Ward distance between clusters A and B:

    d(A, B) = |A|·|B| / (|A| + |B|) · ‖centroid(A) − centroid(B)‖²

which is the increase in within-cluster sum of squares caused by merging
A and B. All vectors are float32; upstream embeddings carry no more
precision than that.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

DTYPE = np.float32


@dataclass(frozen=True, eq=False)
class Cluster:
    """An aggregate over one or more items of the input batch.

    `members` holds original item indices in merge order. `size` is carried
    alongside instead of being derived from `members` so that a merge is
    O(d) and the count can never drift from what the merges produced.
    """

    members: tuple[int, ...]
    size: int
    centroid: np.ndarray

    @classmethod
    def singleton(cls, index: int, vector: np.ndarray) -> "Cluster":
        centroid = np.array(vector, dtype=DTYPE, copy=True)
        return cls(members=(index,), size=1, centroid=centroid)

    @property
    def dimensions(self) -> int:
        return int(self.centroid.shape[0])


def _check_dimensions(a: np.ndarray, b: np.ndarray) -> None:
    if a.shape != b.shape:
        raise ValueError(
            f"Vector dimensionality mismatch: {a.shape} vs {b.shape}."
        )


def squared_euclidean(a: np.ndarray, b: np.ndarray) -> float:
    _check_dimensions(a, b)
    diff = np.asarray(a, dtype=DTYPE) - np.asarray(b, dtype=DTYPE)
    return float(np.dot(diff, diff))


def ward_distance(a: Cluster, b: Cluster) -> float:
    weight = (a.size * b.size) / (a.size + b.size)
    return float(DTYPE(weight) * DTYPE(squared_euclidean(a.centroid, b.centroid)))


def ward_distances_to(
    cluster: Cluster,
    centroids: np.ndarray,
    sizes: np.ndarray,
) -> np.ndarray:
    """Ward distance from `cluster` to every row of `centroids` at once.

    `centroids` is (m, d), `sizes` is (m,). Returns a float32 array of
    length m. Matches `ward_distance` element-wise.
    """
    if centroids.shape[0] == 0:
        return np.empty(0, dtype=DTYPE)
    if centroids.shape[1] != cluster.dimensions:
        raise ValueError(
            f"Vector dimensionality mismatch: {centroids.shape[1]} vs "
            f"{cluster.dimensions}."
        )
    diff = centroids.astype(DTYPE, copy=False) - cluster.centroid
    sq = np.einsum("ij,ij->i", diff, diff)
    sizes = sizes.astype(DTYPE, copy=False)
    weights = (sizes * DTYPE(cluster.size)) / (sizes + DTYPE(cluster.size))
    return (weights * sq).astype(DTYPE, copy=False)


def merge_clusters(a: Cluster, b: Cluster) -> Cluster:
    """Combine two clusters; the centroid is the size-weighted mean."""
    _check_dimensions(a.centroid, b.centroid)
    size = a.size + b.size
    centroid = (
        DTYPE(a.size) * a.centroid + DTYPE(b.size) * b.centroid
    ) / DTYPE(size)
    return Cluster(
        members=a.members + b.members,
        size=size,
        centroid=centroid.astype(DTYPE, copy=False),
    )
