"""Vector builders shared by the unit and integration tests."""

from __future__ import annotations

import numpy as np


def make_blobs(
    sizes: list[int],
    dim: int = 8,
    spread: float = 0.05,
    separation: float = 10.0,
    seed: int = 0,
    centres: list[float] | None = None,
) -> np.ndarray:
    """
    Well-separated Gaussian blobs, one per entry of `sizes`, stacked in order.
    Blob k is centred at `centres[k]` (default `separation * k`) along every axis.
    """
    if centres is None:
        centres = [separation * k for k in range(len(sizes))]
    rng = np.random.default_rng(seed)
    blobs = [
        centre + spread * rng.standard_normal((size, dim))
        for centre, size in zip(centres, sizes)
    ]
    return np.vstack(blobs).astype(np.float32)


def item_ids(n: int) -> list[str]:
    return [f"img_{i}" for i in range(n)]
