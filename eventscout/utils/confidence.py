"""Scores in eventScout live in [0.0, 1.0].

``clamp_score`` sanitises relevance scores coming back from a ranking
provider, ``populated_confidence`` rates an extracted event by which of its
fields are filled in, and ``confidence_to_level`` buckets a score for the
CLI's text output.
"""

from __future__ import annotations

import bisect
import math
from enum import Enum
from typing import Any


class ConfidenceLevel(Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    VERY_HIGH = "very_high"


# Lower bounds of LOW, MEDIUM, HIGH and VERY_HIGH.
_LEVEL_BOUNDS = (0.2, 0.4, 0.6, 0.8)
_LEVELS = tuple(ConfidenceLevel)


def clamp_score(value: Any) -> float | None:
    """Coerce *value* into [0.0, 1.0], or ``None`` if it is not a finite number.

    Booleans are rejected even though ``float(True)`` works; a ranker that
    answers ``true`` has not produced a score.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(score):
        return None
    return min(1.0, max(0.0, score))


def calculate_confidence(scores: list[float], weights: list[float] | None = None) -> float:
    """Weighted mean of *scores*, clamped to the unit interval.

    Raises ValueError for an empty list or mismatched *weights*.  All-zero
    weights give 0.0.
    """
    if not scores:
        raise ValueError("scores must not be empty")
    weights = weights if weights is not None else [1.0] * len(scores)
    if len(weights) != len(scores):
        raise ValueError("scores and weights must have the same length")

    total = sum(weights)
    if not total:
        return 0.0
    mean = math.fsum(score * weight for score, weight in zip(scores, weights, strict=True)) / total
    return min(1.0, max(0.0, mean))


def populated_confidence(populated: dict[str, bool], weights: dict[str, float]) -> float:
    """Weighted share of fields in *populated* that carry a value.

    Fields absent from *weights* weigh 1.0.  No fields at all gives 0.0.
    """
    if not populated:
        return 0.0
    return calculate_confidence(
        [float(filled) for filled in populated.values()],
        [weights.get(name, 1.0) for name in populated],
    )


def confidence_to_level(score: float) -> ConfidenceLevel:
    return _LEVELS[bisect.bisect_right(_LEVEL_BOUNDS, score)]
