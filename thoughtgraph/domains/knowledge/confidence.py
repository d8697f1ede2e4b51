"""
Confidence Model - Pure arithmetic over confidence scores and vectors.

Every value leaving this module lies in ``[0, 1]``; NaN is projected to the
lower bound.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

__all__ = [
    "DIMENSIONS",
    "clamp",
    "clamp_vector",
    "cosine_similarity",
    "mean",
    "weighted_average",
]

DIMENSIONS: tuple[str, ...] = (
    "empirical_support",
    "theoretical_basis",
    "methodological_rigor",
    "consensus_alignment",
)


def clamp(value: float | None, lower: float = 0.0, upper: float = 1.0) -> float:
    """Project a scalar into ``[lower, upper]``."""
    if value is None or math.isnan(value):
        return lower
    return min(upper, max(lower, float(value)))


def clamp_vector(values: Sequence[float | None]) -> list[float]:
    """Project each component into ``[0, 1]``."""
    return [clamp(v) for v in values]


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean, 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def weighted_average(
    scores: Sequence[float],
    weights: Sequence[float] | None = None,
) -> float:
    """
    Weighted average of scores.

    Without explicit weights, later-indexed scores weigh more
    (weight = position + 1). Used to fold per-stage confidence into an
    overall session confidence.

    Args:
        scores: Scores to aggregate
        weights: Optional weights, same length as scores

    Returns:
        Weighted average, 0.0 when nothing can be weighed
    """
    if not scores:
        return 0.0

    if weights is None:
        weights = [float(i + 1) for i in range(len(scores))]
    elif len(weights) != len(scores):
        raise ValueError("scores and weights must have the same length")

    total_weight = sum(weights)
    if total_weight <= 0:
        return 0.0

    return sum(s * w for s, w in zip(scores, weights)) / total_weight


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors, 0.0 if either is zero."""
    if len(a) != len(b):
        raise ValueError("vectors must have the same length")

    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return clamp(dot / (norm_a * norm_b))
