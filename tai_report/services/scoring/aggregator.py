"""Per-indicator aggregation of normalized question scores."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from tai_report.services.scoring.indicators import canonical_order, indicator_key
from tai_report.services.scoring.normalizer import MAX_SCORE, NormalizedQuestion
from tai_report.services.types import NOT_APPLICABLE

SCORE_PRECISION = 4


def aggregate_scores(entries: Iterable[Tuple[str, Optional[float]]]) -> Dict[str, float]:
    """
    Aggregate ``(indicator, score)`` pairs into one score per indicator.

    Each indicator starts with a divisor equal to its question count. A question
    scored -1 lowers the divisor by one and adds nothing; any other question adds
    ``score / 100``. An indicator whose divisor reaches zero is -1, otherwise it
    is ``sum / divisor`` rounded to four decimals. Entries with a None score
    (TEXT questions) take no part at all.

    Returns:
        Mapping indicator -> score in [0, 1] or -1, in canonical indicator order
    """
    totals: Dict[str, float] = {}
    divisors: Dict[str, int] = {}

    for indicator, score in entries:
        if score is None:
            continue
        key = indicator_key(indicator)
        totals.setdefault(key, 0.0)
        divisors[key] = divisors.get(key, 0) + 1
        if score == NOT_APPLICABLE:
            divisors[key] -= 1
            continue
        totals[key] += score / MAX_SCORE

    aggregated: Dict[str, float] = {}
    for key in canonical_order(totals.keys()):
        divisor = divisors[key]
        if divisor == 0:
            aggregated[key] = NOT_APPLICABLE
        else:
            aggregated[key] = round(totals[key] / divisor, SCORE_PRECISION)
    return aggregated


def aggregate_indicator_scores(questions: Iterable[NormalizedQuestion]) -> Dict[str, float]:
    """Aggregate the normalizer's per-question output."""
    return aggregate_scores((q.indicator, q.score) for q in questions)


def build_radar_data(scores: Mapping[str, float]) -> List[Dict[str, object]]:
    """Radar chart series: one ``{axis, value}`` point per indicator."""
    return [
        {"axis": axis, "value": round(float(value), SCORE_PRECISION)}
        for axis, value in scores.items()
    ]


__all__ = [
    "SCORE_PRECISION",
    "aggregate_indicator_scores",
    "aggregate_scores",
    "build_radar_data",
]
