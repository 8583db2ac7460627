"""Unit tests for the live-cluster distance matrix."""

from __future__ import annotations

import numpy as np
import pytest

from wardset.engine.distance_matrix import DistanceMatrix
from wardset.engine.vector_math import Cluster, merge_clusters, ward_distance


def _points(*rows: list[float]) -> np.ndarray:
    return np.array(rows, dtype=np.float32)


def test_initial_matrix_is_symmetric_with_zero_diagonal() -> None:
    rng = np.random.default_rng(11)
    matrix = DistanceMatrix.from_vectors(rng.standard_normal((7, 4)).astype(np.float32))
    array = matrix.as_array()

    assert array.shape == (7, 7)
    assert array.dtype == np.float32
    np.testing.assert_array_equal(array, array.T)
    np.testing.assert_array_equal(np.diag(array), np.zeros(7))


def test_singleton_distance_is_half_squared_euclidean() -> None:
    matrix = DistanceMatrix.from_vectors(_points([0.0, 0.0], [3.0, 4.0]))
    assert matrix.distance(0, 1) == pytest.approx(12.5)


def test_initial_distances_match_ward_distance() -> None:
    rng = np.random.default_rng(5)
    vectors = rng.standard_normal((5, 3)).astype(np.float32)
    matrix = DistanceMatrix.from_vectors(vectors)
    clusters = matrix.clusters

    for i in range(5):
        for j in range(i + 1, 5):
            assert matrix.distance(i, j) == pytest.approx(
                ward_distance(clusters[i], clusters[j]), rel=1e-4, abs=1e-6
            )


def test_item_indices_become_members() -> None:
    matrix = DistanceMatrix.from_vectors(_points([0.0], [1.0], [2.0]), [7, 3, 9])
    assert [c.members for c in matrix.clusters] == [(7,), (3,), (9,)]


def test_empty_matrix() -> None:
    matrix = DistanceMatrix([])
    assert len(matrix) == 0
    assert matrix.closest_pair() is None


def test_closest_pair_first_minimum_wins() -> None:
    # Pairs (0, 1) and (2, 3) are equally close; row-major order picks (0, 1).
    matrix = DistanceMatrix.from_vectors(
        _points([0.0], [1.0], [10.0], [11.0])
    )
    assert matrix.closest_pair() == (0, 1)


def test_closest_pair_returns_upper_triangle() -> None:
    matrix = DistanceMatrix.from_vectors(_points([10.0], [0.0], [10.5]))
    assert matrix.closest_pair() == (0, 2)


def test_excluded_pair_is_skipped() -> None:
    matrix = DistanceMatrix.from_vectors(_points([0.0], [1.0], [5.0]))
    matrix.exclude(0, 1)

    assert matrix.distance(0, 1) == np.inf
    assert matrix.distance(1, 0) == np.inf
    assert matrix.closest_pair() == (1, 2)
    assert matrix.pending_pairs() == 2


def test_all_excluded_returns_none() -> None:
    matrix = DistanceMatrix.from_vectors(_points([0.0], [1.0], [5.0]))
    for i, j in [(0, 1), (0, 2), (1, 2)]:
        matrix.exclude(i, j)
    assert matrix.closest_pair() is None
    assert matrix.pending_pairs() == 0


def test_replace_pair_remaps_positions() -> None:
    vectors = _points([0.0, 0.0], [0.1, 0.0], [5.0, 5.0], [9.0, 9.0])
    matrix = DistanceMatrix.from_vectors(vectors)
    merged = merge_clusters(matrix.cluster_at(0), matrix.cluster_at(1))

    position = matrix.replace_pair(0, 1, merged)

    assert position == 2
    assert len(matrix) == 3
    assert [c.members for c in matrix.clusters] == [(2,), (3,), (0, 1)]
    assert matrix.cluster_ids == [2, 3, 4]

    array = matrix.as_array()
    np.testing.assert_array_equal(array, array.T)
    assert matrix.distance(0, 2) == pytest.approx(
        ward_distance(matrix.cluster_at(0), merged), rel=1e-5
    )
    assert matrix.distance(1, 2) == pytest.approx(
        ward_distance(matrix.cluster_at(1), merged), rel=1e-5
    )


def test_replace_pair_clears_exclusions_of_merged_clusters() -> None:
    matrix = DistanceMatrix.from_vectors(_points([0.0], [1.0], [2.0], [3.0]))
    matrix.exclude(0, 2)
    matrix.exclude(1, 3)
    merged = merge_clusters(matrix.cluster_at(0), matrix.cluster_at(1))

    matrix.replace_pair(0, 1, merged)

    assert np.all(np.isfinite(matrix.as_array()))


def test_replace_pair_keeps_unrelated_exclusions() -> None:
    matrix = DistanceMatrix.from_vectors(_points([0.0], [1.0], [5.0], [6.0]))
    matrix.exclude(2, 3)
    merged = merge_clusters(matrix.cluster_at(0), matrix.cluster_at(1))

    matrix.replace_pair(1, 0, merged)

    # Former positions 2 and 3 are now 0 and 1.
    assert matrix.distance(0, 1) == np.inf


def test_replace_pair_rejects_same_position() -> None:
    matrix = DistanceMatrix.from_vectors(_points([0.0], [1.0]))
    with pytest.raises(ValueError):
        matrix.replace_pair(1, 1, matrix.cluster_at(1))


def test_replace_last_pair() -> None:
    matrix = DistanceMatrix.from_vectors(_points([0.0], [1.0]))
    merged = merge_clusters(matrix.cluster_at(0), matrix.cluster_at(1))

    assert matrix.replace_pair(0, 1, merged) == 0
    assert len(matrix) == 1
    assert matrix.as_array().shape == (1, 1)
    assert matrix.closest_pair() is None


def test_clusters_property_is_a_copy() -> None:
    matrix = DistanceMatrix.from_vectors(_points([0.0], [1.0]))
    clusters = matrix.clusters
    clusters.append(Cluster.singleton(9, np.array([2.0], dtype=np.float32)))
    assert len(matrix) == 2
