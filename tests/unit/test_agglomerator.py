"""Unit tests for size-capped Ward agglomeration."""

from __future__ import annotations

import logging

import numpy as np
import pytest

from tests.helpers import make_blobs
from wardset.engine.agglomerator import AgglomerationState, agglomerate


def _sizes(result) -> list[int]:
    return sorted(c.size for c in result.clusters)


def _all_members(result) -> list[int]:
    return sorted(m for c in result.clusters for m in c.members)


def test_converges_to_target_count() -> None:
    vectors = make_blobs([3, 3, 3])
    result = agglomerate(vectors, target_count=3, max_size=6)

    assert result.state is AgglomerationState.converged
    assert not result.stalled
    assert len(result.clusters) == 3
    assert result.merges == 6


def test_recovers_separated_blobs() -> None:
    vectors = make_blobs([4, 4, 4])
    result = agglomerate(vectors, target_count=3, max_size=6)

    groups = sorted(sorted(c.members) for c in result.clusters)
    assert groups == [[0, 1, 2, 3], [4, 5, 6, 7], [8, 9, 10, 11]]


def test_never_exceeds_max_size() -> None:
    rng = np.random.default_rng(21)
    for seed in range(5):
        vectors = rng.standard_normal((25, 4)).astype(np.float32)
        result = agglomerate(vectors, target_count=5, max_size=6)
        assert max(_sizes(result)) <= 6
        assert _all_members(result) == list(range(25))


def test_cap_forces_split_of_natural_group() -> None:
    # One tight blob of 8 with a cap of 4 cannot stay together.
    vectors = make_blobs([8])
    result = agglomerate(vectors, target_count=2, max_size=4)

    assert len(result.clusters) >= 2
    assert max(_sizes(result)) <= 4
    assert _all_members(result) == list(range(8))


def test_stalls_when_every_merge_exceeds_cap() -> None:
    vectors = make_blobs([1, 1, 1])
    result = agglomerate(vectors, target_count=1, max_size=1)

    assert result.state is AgglomerationState.stalled
    assert result.stalled
    assert len(result.clusters) == 3
    assert result.merges == 0
    assert result.exclusions == 3


def test_stall_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    vectors = make_blobs([1, 1])
    with caplog.at_level(logging.WARNING, logger="wardset.engine.agglomerator"):
        agglomerate(vectors, target_count=1, max_size=1)
    assert "stalled" in caplog.text


def test_target_at_or_above_item_count_returns_singletons() -> None:
    vectors = make_blobs([2, 2])
    result = agglomerate(vectors, target_count=4, max_size=3)

    assert result.state is AgglomerationState.converged
    assert result.merges == 0
    assert [c.members for c in result.clusters] == [(0,), (1,), (2,), (3,)]


def test_identical_vectors_resolve_deterministically() -> None:
    vectors = np.tile(np.array([1.0, 2.0, 3.0], dtype=np.float32), (9, 1))
    result = agglomerate(vectors, target_count=3, max_size=4)

    assert [c.members for c in result.clusters] == [
        (6, 7),
        (8, 0, 1),
        (2, 3, 4, 5),
    ]


def test_repeated_runs_are_identical() -> None:
    rng = np.random.default_rng(8)
    vectors = rng.standard_normal((18, 6)).astype(np.float32)

    first = agglomerate(vectors, target_count=4, max_size=6)
    second = agglomerate(vectors, target_count=4, max_size=6)

    assert [c.members for c in first.clusters] == [c.members for c in second.clusters]


def test_item_indices_are_recorded() -> None:
    vectors = make_blobs([2, 2])
    result = agglomerate(vectors, target_count=2, max_size=2, item_indices=[10, 11, 20, 21])

    groups = sorted(sorted(c.members) for c in result.clusters)
    assert groups == [[10, 11], [20, 21]]


def test_merged_centroid_is_member_mean() -> None:
    vectors = make_blobs([3, 3], dim=4)
    result = agglomerate(vectors, target_count=2, max_size=3)

    for cluster in result.clusters:
        expected = vectors[list(cluster.members)].mean(axis=0)
        np.testing.assert_allclose(cluster.centroid, expected, rtol=1e-5, atol=1e-5)


def test_rejects_bad_target() -> None:
    with pytest.raises(ValueError):
        agglomerate(make_blobs([2]), target_count=0, max_size=2)


def test_rejects_mismatched_item_indices() -> None:
    with pytest.raises(ValueError):
        agglomerate(make_blobs([3]), target_count=1, max_size=3, item_indices=[0, 1])
