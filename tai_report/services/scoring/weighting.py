"""
Overall score computation.

Weights come from one of three sources, checked in order:

1. Project priorities carrying at least one explicit weight: those weights as stored.
2. Project priorities without weights: ``1 / n`` for each of the ``n`` configured indicators.
3. No project priorities: weight 1 for every indicator, i.e. a plain mean.

Only indicators with a valid score (not -1, not NaN) and a positive weight
contribute. The weight snapshot is kept for auditability and is normalized to
sum to 1 unless the weights sum to zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Mapping, Optional, Sequence, Tuple

from tai_report.services.scoring.indicators import indicator_key
from tai_report.services.types import NOT_APPLICABLE, IndicatorWeight


class WeightSource(str, Enum):
    USER_WEIGHTS = "user_weights"
    EQUAL_WEIGHTS = "equal_weights"
    UNWEIGHTED = "unweighted"


@dataclass(frozen=True, slots=True)
class WeightingResult:
    overall_score: float
    source: WeightSource
    weight_snapshot: Optional[Dict[str, float]]
    contributing: Tuple[str, ...] = ()


def is_valid_score(score: Optional[float]) -> bool:
    if score is None:
        return False
    value = float(score)
    return not math.isnan(value) and value != NOT_APPLICABLE


def resolve_weights(
    priorities: Optional[Sequence[IndicatorWeight]],
) -> Tuple[WeightSource, Optional[Dict[str, float]]]:
    """Pick the weight source. Returns None as the map for the unweighted mean."""
    if not priorities:
        return WeightSource.UNWEIGHTED, None

    if any(entry.weight is not None for entry in priorities):
        weights: Dict[str, float] = {}
        for entry in priorities:
            weights[indicator_key(entry.indicator)] = _coerce_weight(entry.weight)
        return WeightSource.USER_WEIGHTS, weights

    configured = list(dict.fromkeys(indicator_key(entry.indicator) for entry in priorities))
    equal = 1.0 / len(configured)
    return WeightSource.EQUAL_WEIGHTS, {key: equal for key in configured}


def normalize_weight_snapshot(weights: Mapping[str, float]) -> Dict[str, float]:
    """Divide every weight by the total; a zero total leaves the map as it is."""
    total = sum(weights.values())
    if total == 0:
        return dict(weights)
    return {key: value / total for key, value in weights.items()}


def compute_overall_score(
    scores: Mapping[str, float],
    priorities: Optional[Sequence[IndicatorWeight]] = None,
) -> WeightingResult:
    """
    Weighted mean of the valid indicator scores.

    Args:
        scores: Aggregated indicator scores, -1 for not applicable
        priorities: The project's indicator priorities, empty or None when unconfigured

    Returns:
        WeightingResult with the overall score in [0, 1] (0 when nothing contributes)
    """
    source, weights = resolve_weights(priorities)

    numerator = 0.0
    denominator = 0.0
    contributing = []
    for indicator, score in scores.items():
        if not is_valid_score(score):
            continue
        weight = 1.0 if weights is None else weights.get(indicator_key(indicator), 0.0)
        if weight <= 0:
            continue
        numerator += float(score) * weight
        denominator += weight
        contributing.append(indicator_key(indicator))

    overall = numerator / denominator if denominator > 0 else 0.0
    snapshot = normalize_weight_snapshot(weights) if weights is not None else None
    return WeightingResult(
        overall_score=overall,
        source=source,
        weight_snapshot=snapshot,
        contributing=tuple(contributing),
    )


def _coerce_weight(raw: Optional[float]) -> float:
    if raw is None:
        return 0.0
    value = float(raw)
    return 0.0 if math.isnan(value) else value


__all__ = [
    "WeightSource",
    "WeightingResult",
    "compute_overall_score",
    "is_valid_score",
    "normalize_weight_snapshot",
    "resolve_weights",
]
