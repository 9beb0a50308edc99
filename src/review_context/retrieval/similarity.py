"""Vector similarity helpers."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


class DimensionMismatchError(ValueError):
    """Raised when two vectors of different lengths are compared."""


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine of the angle between *a* and *b*, in ``[-1, 1]``.

    Returns ``0.0`` when either vector has zero norm, so a degenerate
    embedding never outranks a genuine zero-similarity match.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape:
        raise DimensionMismatchError(f"Cannot compare vectors of length {va.size} and {vb.size}")

    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0

    score = float(np.dot(va, vb) / (norm_a * norm_b))
    return max(-1.0, min(1.0, score))
