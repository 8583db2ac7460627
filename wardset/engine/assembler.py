"""
Turn the final cluster list into the caller-facing mapping.

    {0: ["item_a", "item_c"], 1: ["item_b", ...], ...}

Cluster ids are assigned sequentially in internal list order; the order
carries no meaning. Every cluster must hold between `min_size` and
`max_size` items. Oversized clusters always fail the run. Undersized ones
are governed by `UndersizedPolicy`:

    fail  the whole run fails with ConstraintViolationError (default)
    drop  the cluster is left out and its items are reported as dropped
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Sequence

from wardset.core.errors import ConstraintViolationError
from wardset.engine.vector_math import Cluster

logger = logging.getLogger(__name__)


class UndersizedPolicy(str, enum.Enum):
    fail = "fail"
    drop = "drop"


@dataclass(frozen=True)
class AssembledPartition:
    clusters: dict[int, list[str]]
    dropped_item_ids: list[str] = field(default_factory=list)


def size_violations(
    clusters: Sequence[Cluster],
    min_size: int,
    max_size: int,
) -> list[dict[str, int]]:
    """Position and size of every cluster outside [min_size, max_size]."""
    return [
        {"position": position, "size": cluster.size}
        for position, cluster in enumerate(clusters)
        if not min_size <= cluster.size <= max_size
    ]


def assemble_partition(
    clusters: Sequence[Cluster],
    item_ids: Sequence[str],
    min_size: int,
    max_size: int,
    on_undersized: UndersizedPolicy = UndersizedPolicy.fail,
) -> AssembledPartition:
    violations = size_violations(clusters, min_size, max_size)
    oversized = [v for v in violations if v["size"] > max_size]

    if oversized or (violations and on_undersized is UndersizedPolicy.fail):
        for v in violations:
            logger.warning(
                "Cluster at position %d has size %d outside [%d, %d]",
                v["position"], v["size"], min_size, max_size,
            )
        raise ConstraintViolationError(violations, min_size, max_size)

    mapping: dict[int, list[str]] = {}
    dropped: list[str] = []
    for cluster in clusters:
        ids = [item_ids[index] for index in cluster.members]
        if cluster.size < min_size:
            logger.warning(
                "Dropping undersized cluster of size %d (min %d): %s",
                cluster.size, min_size, ids,
            )
            dropped.extend(ids)
            continue
        mapping[len(mapping)] = ids

    return AssembledPartition(clusters=mapping, dropped_item_ids=dropped)
