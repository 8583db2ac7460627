"""
Clustering endpoint.

POST /v1/cluster: partition caller-supplied embeddings into clusters of
bounded size using Ward agglomeration.

The caller is responsible for supplying embeddings. The service performs
pure computation and returns the partition immediately, with no persistence.
"""

from __future__ import annotations

import asyncio

from fastapi import APIRouter

from wardset.core.config import get_settings
from wardset.core.errors import BatchTooLargeError
from wardset.core.security import AuthDep
from wardset.schemas.cluster import ClusterRequest, ClusterResponse
from wardset.services.cluster_service import run_clustering

router = APIRouter(prefix="/cluster", tags=["Clustering"])


@router.post(
    "",
    response_model=ClusterResponse,
    summary="Cluster items into groups of bounded size",
    description=(
        "Submit one embedding per item (optionally with categorical labels) "
        "and receive a partition in which every cluster holds between "
        "`min_cluster_size` and `max_cluster_size` items. "
        "Infeasible bounds or a partition that cannot satisfy them are "
        "reported as errors; a partial result is never returned as success."
    ),
    responses={
        401: {"description": "Missing or invalid X-Api-Key header."},
        422: {"description": "Validation error, infeasible bounds, or constraint violation."},
        500: {"description": "An oversized cluster could not be split."},
    },
)
async def cluster_embeddings(
    body: ClusterRequest,
    _auth: AuthDep,
) -> ClusterResponse:
    settings = get_settings()
    if len(body.item_ids) > settings.max_items:
        raise BatchTooLargeError(len(body.item_ids), settings.max_items)

    # Agglomeration is CPU-bound (O(n^3) worst case); offload to thread pool.
    return await asyncio.to_thread(run_clustering, body, settings)
