"""
Size-constrained Ward clustering on caller-supplied embeddings.

The service accepts pre-computed embeddings from the caller; it has no
database and never fetches images itself.

Pipeline for one request:
  1. Resolve size bounds and policies (request value, else settings default).
  2. Optionally append one-hot label features to each embedding.
  3. Run the clustering engine (estimate → agglomerate → split → assemble).
  4. Build per-item assignments and per-cluster summaries with their labels.

Engine errors (infeasible bounds, constraint violations) propagate as
`ClusteringError` subclasses and are rendered by the global handlers.
"""

from __future__ import annotations

import logging
import time

from wardset.core.config import Settings, get_settings
from wardset.engine.assembler import UndersizedPolicy
from wardset.engine.pipeline import CountStrategy, as_vector_array, cluster_items
from wardset.schemas.cluster import (
    ClusterAssignment,
    ClusterRequest,
    ClusterResponse,
    ClusterSummary,
)
from wardset.services.label_encoding import aggregate_labels, combine_embeddings

logger = logging.getLogger(__name__)


def run_clustering(
    request: ClusterRequest,
    settings: Settings | None = None,
) -> ClusterResponse:
    t0 = time.perf_counter()
    settings = settings or get_settings()

    min_size = request.min_cluster_size or settings.default_min_cluster_size
    max_size = request.max_cluster_size or settings.default_max_cluster_size
    policy = UndersizedPolicy(request.on_undersized or settings.default_undersized_policy)
    strategy = CountStrategy(request.count_strategy)

    vectors = as_vector_array(request.embeddings)
    if request.labels is not None:
        vectors = combine_embeddings(vectors, request.labels)
        logger.debug("Appended label features; vectors now %d-dimensional", vectors.shape[1])

    outcome = cluster_items(
        vectors,
        request.item_ids,
        min_size,
        max_size,
        on_undersized=policy,
        strategy=strategy,
    )

    labels_by_id: dict[str, list[str]] = {}
    if request.labels is not None:
        labels_by_id = dict(zip(request.item_ids, request.labels))

    summaries: list[ClusterSummary] = []
    cluster_of: dict[str, int] = {}
    for cluster_id, ids in outcome.clusters.items():
        for item_id in ids:
            cluster_of[item_id] = cluster_id
        summaries.append(
            ClusterSummary(
                cluster_id=cluster_id,
                size=len(ids),
                item_ids=ids,
                labels=aggregate_labels([labels_by_id.get(i, []) for i in ids]),
            )
        )

    assignments = [
        ClusterAssignment(item_id=item_id, cluster_id=cluster_of.get(item_id))
        for item_id in request.item_ids
    ]

    elapsed_ms = (time.perf_counter() - t0) * 1000
    logger.info(
        "Clustered %d items into %d clusters in %.1f ms",
        len(request.item_ids), len(summaries), elapsed_ms,
        extra={
            "n_items": len(request.item_ids),
            "num_clusters": len(summaries),
            "target_cluster_count": outcome.target_count,
            "split_count": outcome.split_count,
            "dropped": len(outcome.dropped_item_ids),
            "elapsed_ms": round(elapsed_ms, 2),
        },
    )

    return ClusterResponse(
        min_cluster_size_used=min_size,
        max_cluster_size_used=max_size,
        undersized_policy=policy.value,
        count_strategy=strategy.value,
        total_items=len(request.item_ids),
        target_cluster_count=outcome.target_count,
        num_clusters=len(summaries),
        stalled=outcome.stalled,
        split_count=outcome.split_count,
        assignments=assignments,
        clusters=summaries,
        dropped_item_ids=outcome.dropped_item_ids,
        processing_time_ms=round(elapsed_ms, 2),
    )
