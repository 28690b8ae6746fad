"""
Similarity engine for semantic anomaly scoring.

A log is novel when it is far from everything the user has logged
before. Closeness is the cosine similarity between embeddings; only the
nearest baseline entry is scored.
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from loglens.core.exceptions import DimensionMismatchError


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity of two embeddings.

    Returns 0.0 when either vector has zero norm.

    Raises:
        DimensionMismatchError: If the embeddings differ in length
    """
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"Vectors must have the same dimension ({len(a)} != {len(b)})"
        )

    va = np.asarray(a, dtype=float)
    vb = np.asarray(b, dtype=float)

    norm_a = float(np.linalg.norm(va))
    norm_b = float(np.linalg.norm(vb))
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    value = float(np.dot(va, vb)) / (norm_a * norm_b)
    # Rounding can push the ratio just outside [-1, 1]
    return min(max(value, -1.0), 1.0)


def score_against_baseline(
    embedding: Sequence[float],
    baseline_top_k: Sequence[Sequence[float]],
) -> Optional[float]:
    """
    Similarity against the nearest baseline embedding.

    baseline_top_k is ordered nearest-first; only its first entry is used.
    Returns None when there is no baseline.
    """
    if not baseline_top_k:
        return None
    return cosine_similarity(embedding, baseline_top_k[0])


def is_anomaly(similarity: Optional[float], threshold: float) -> bool:
    """
    Low similarity to the baseline signals an anomaly.

    No baseline (None) is never anomalous, so a user's first uploads are
    always accepted as normal.
    """
    if similarity is None:
        return False
    return similarity < threshold
