"""
Categorical label features for clustering.

Callers may send per-item labels (e.g. from an image tagging service)
alongside the embeddings. Labels are one-hot encoded against the set of
labels seen in the batch and appended to each embedding, so items that
share labels end up closer in Ward distance:

    combined[i] = embedding[i] ++ one_hot(labels[i])

The label index follows first-seen order over the batch, which keeps the
encoding, and therefore the clustering, reproducible for a given request.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np

from wardset.engine.vector_math import DTYPE


def build_label_index(labels_per_item: Sequence[Sequence[str]]) -> dict[str, int]:
    index: dict[str, int] = {}
    for labels in labels_per_item:
        for label in labels:
            if label not in index:
                index[label] = len(index)
    return index


def label_vector(labels: Sequence[str], index: dict[str, int]) -> np.ndarray:
    """One-hot vector over `index`; labels missing from it are ignored."""
    vec = np.zeros(len(index), dtype=DTYPE)
    for label in labels:
        position = index.get(label)
        if position is not None:
            vec[position] = 1.0
    return vec


def combine_embeddings(
    vectors: np.ndarray,
    labels_per_item: Sequence[Sequence[str]],
) -> np.ndarray:
    if len(vectors) != len(labels_per_item):
        raise ValueError(
            f"Got {len(vectors)} embeddings but labels for {len(labels_per_item)} items."
        )
    index = build_label_index(labels_per_item)
    if not index:
        return vectors
    one_hot = np.vstack([label_vector(labels, index) for labels in labels_per_item])
    return np.hstack([vectors.astype(DTYPE, copy=False), one_hot])


def aggregate_labels(labels_per_item: Sequence[Sequence[str]]) -> list[str]:
    """Union of labels, de-duplicated, in first-seen order."""
    return list(build_label_index(labels_per_item))
