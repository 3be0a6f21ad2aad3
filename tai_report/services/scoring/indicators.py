"""Indicator display names and canonical ordering."""

from __future__ import annotations

from typing import Dict, Iterable, List

from tai_report.models.questionnaire import Indicator

INDICATOR_DISPLAY_NAMES: Dict[str, str] = {
    Indicator.ACCURACY.value: "Accuracy",
    Indicator.RELIABILITY.value: "Reliability",
    Indicator.SAFETY.value: "Safety",
    Indicator.RESILIENCE.value: "Resilience",
    Indicator.EXPLAINABILITY.value: "Explainability",
    Indicator.AUTONOMY.value: "Autonomy",
    Indicator.PRIVACY.value: "Privacy",
    Indicator.SECURITY.value: "Security",
    Indicator.TRANSPARENCY.value: "Transparency",
    Indicator.ACCOUNTABILITY.value: "Accountability",
    Indicator.FAIRNESS.value: "Fairness",
}

_CANONICAL_ORDER: Dict[str, int] = {
    indicator.value: index for index, indicator in enumerate(Indicator)
}


def indicator_key(indicator: object) -> str:
    """Plain string key for an indicator given as enum member or string."""
    if isinstance(indicator, Indicator):
        return indicator.value
    return str(indicator)


def display_name(indicator: object) -> str:
    key = indicator_key(indicator)
    return INDICATOR_DISPLAY_NAMES.get(key, key)


def canonical_order(indicators: Iterable[str]) -> List[str]:
    """Sort indicators in enum order; unknown keys keep their relative order at the end."""
    known_count = len(_CANONICAL_ORDER)
    items = list(indicators)
    return sorted(
        items,
        key=lambda key: _CANONICAL_ORDER.get(key, known_count + items.index(key)),
    )


__all__ = [
    "INDICATOR_DISPLAY_NAMES",
    "canonical_order",
    "display_name",
    "indicator_key",
]
