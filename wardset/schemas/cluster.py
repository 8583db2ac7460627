"""
Request / response schemas for the clustering endpoint.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator


class ClusterRequest(BaseModel):
    """
    Request body for POST /v1/cluster

    Submit one pre-computed embedding per item plus the item identifiers and
    get back a partition of the items into clusters whose sizes lie within
    [min_cluster_size, max_cluster_size].

    The service has no database, so embeddings must be supplied by the caller.
    """

    embeddings: Annotated[
        list[list[float]],
        Field(
            min_length=1,
            description="One feature vector per item, all of the same length. "
                        "Must match the order of `item_ids`.",
        ),
    ]
    item_ids: Annotated[
        list[str],
        Field(
            min_length=1,
            description="Caller-supplied unique IDs matching the `embeddings` list. "
                        "Echoed back in the cluster assignments.",
        ),
    ]
    labels: list[list[str]] | None = Field(
        default=None,
        description="Optional categorical labels per item (same order as `item_ids`). "
                    "When given, a one-hot label vector is appended to each embedding "
                    "and each cluster summary lists the union of its labels.",
    )
    min_cluster_size: int | None = Field(
        default=None,
        ge=1,
        description="Minimum items per cluster. Defaults to DEFAULT_MIN_CLUSTER_SIZE (3).",
    )
    max_cluster_size: int | None = Field(
        default=None,
        ge=1,
        description="Maximum items per cluster. Defaults to DEFAULT_MAX_CLUSTER_SIZE (6).",
    )
    on_undersized: Literal["fail", "drop"] | None = Field(
        default=None,
        description="What to do with a cluster smaller than `min_cluster_size` after "
                    "clustering: `fail` rejects the whole request, `drop` leaves the "
                    "cluster out and lists its items in `dropped_item_ids`. "
                    "Defaults to DEFAULT_UNDERSIZED_POLICY (fail).",
    )
    count_strategy: Literal["midpoint", "search"] = Field(
        default="midpoint",
        description="How the target cluster count is chosen: `midpoint` of the feasible "
                    "range, or `search` every feasible count for one that satisfies "
                    "the size bounds (slower).",
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "embeddings": [
                        [0.021, -0.014, "... more floats ..."],
                        [0.019, -0.012, "... more floats ..."],
                        [0.95, 0.31, "... more floats ..."],
                    ],
                    "item_ids": ["img_0", "img_1", "img_2"],
                    "labels": [["Shoe", "Footwear"], ["Shoe"], ["Handbag"]],
                    "min_cluster_size": 1,
                    "max_cluster_size": 2,
                }
            ]
        }
    }

    @model_validator(mode="after")
    def check_lengths(self) -> "ClusterRequest":
        if len(self.embeddings) != len(self.item_ids):
            raise ValueError(
                f"`embeddings` length ({len(self.embeddings)}) must equal "
                f"`item_ids` length ({len(self.item_ids)})."
            )
        if self.labels is not None and len(self.labels) != len(self.item_ids):
            raise ValueError(
                f"`labels` length ({len(self.labels)}) must equal "
                f"`item_ids` length ({len(self.item_ids)})."
            )
        return self


class ClusterAssignment(BaseModel):
    item_id: str
    cluster_id: int | None = Field(
        description="Cluster the item belongs to. Null only when the item's "
                    "cluster was dropped under the `drop` policy.",
    )


class ClusterSummary(BaseModel):
    cluster_id: int
    size: int = Field(description="Number of items in this cluster.")
    item_ids: list[str] = Field(description="IDs of items in this cluster.")
    labels: list[str] = Field(
        default_factory=list,
        description="Union of the labels of the cluster's items, first-seen order.",
    )


class ClusterResponse(BaseModel):
    """Response body for POST /v1/cluster"""

    api_version: str = Field(default="1.0")
    algorithm: str = Field(default="ward-constrained")
    min_cluster_size_used: int
    max_cluster_size_used: int
    undersized_policy: Literal["fail", "drop"]
    count_strategy: Literal["midpoint", "search"]
    total_items: int
    target_cluster_count: int = Field(
        description="Cluster count the agglomeration aimed for."
    )
    num_clusters: int = Field(description="Number of clusters returned.")
    stalled: bool = Field(
        description="True when agglomeration stopped above the target count because "
                    "every remaining merge would exceed `max_cluster_size`."
    )
    split_count: int = Field(
        description="Number of oversized clusters that had to be split."
    )
    assignments: list[ClusterAssignment] = Field(
        description="Per-item cluster assignment in the same order as the input."
    )
    clusters: list[ClusterSummary]
    dropped_item_ids: list[str] = Field(
        default_factory=list,
        description="Items left out under the `drop` policy.",
    )
    processing_time_ms: float
