"""
Qualitative tiers and the per-indicator question statistics text.

The stats text is what the report shows next to each indicator: how many of
its questions were counted and which questions fall in which tier.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List

from tai_report.models.questionnaire import QuestionType
from tai_report.services.scoring.indicators import canonical_order, display_name
from tai_report.services.scoring.normalizer import (
    MAX_SCORE,
    NormalizedQuestion,
    normalize_answers,
)
from tai_report.services.types import NOT_APPLICABLE, ResponseSnapshot


class Tier(str, Enum):
    FULLY_MET = "fully met"
    MOSTLY_MET = "mostly met"
    PARTIALLY_MET = "partially met"
    NOT_MET = "not met"
    NOT_APPLICABLE = "not applicable"

    @property
    def heading(self) -> str:
        return self.value.capitalize()


TIER_ORDER = (
    Tier.FULLY_MET,
    Tier.MOSTLY_MET,
    Tier.PARTIALLY_MET,
    Tier.NOT_MET,
    Tier.NOT_APPLICABLE,
)

# Lower bounds on the 0-100 scale, inclusive.
TIER_THRESHOLDS = (
    (80.0, Tier.FULLY_MET),
    (60.0, Tier.MOSTLY_MET),
    (40.0, Tier.PARTIALLY_MET),
)


def classify_score(score: float, scale: float = MAX_SCORE) -> Tier:
    """
    Map a score to its tier.

    ``scale`` is the score's full range: 100 for question scores, 1 for
    aggregated indicator scores. -1 is "not applicable" on either scale.
    """
    if score == NOT_APPLICABLE:
        return Tier.NOT_APPLICABLE
    for bound, tier in TIER_THRESHOLDS:
        if score >= bound * scale / MAX_SCORE:
            return tier
    return Tier.NOT_MET


@dataclass(frozen=True, slots=True)
class QuestionStat:
    order: int
    text: str
    score: float
    tier: Tier

    def render(self) -> str:
        return f"- Q{self.order}. {self.text}"


@dataclass(slots=True)
class IndicatorStats:
    indicator: str
    questions: List[QuestionStat] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def counted(self) -> int:
        return sum(1 for q in self.questions if q.tier is not Tier.NOT_APPLICABLE)

    def by_tier(self) -> Dict[Tier, List[QuestionStat]]:
        """Non-empty tiers in display order, questions sorted by their order number."""
        grouped: Dict[Tier, List[QuestionStat]] = {}
        for tier in TIER_ORDER:
            members = sorted(
                (q for q in self.questions if q.tier is tier), key=lambda q: q.order
            )
            if members:
                grouped[tier] = members
        return grouped

    def render(self) -> str:
        lines = [
            f"**{display_name(self.indicator)}** - counted questions: "
            f"{self.counted}/{self.total}"
        ]
        for tier, members in self.by_tier().items():
            lines.append("")
            lines.append(f"{tier.heading} ({len(members)}):")
            lines.extend(member.render() for member in members)
        return "\n".join(lines)


def build_question_stats(questions: Iterable[NormalizedQuestion]) -> Dict[str, IndicatorStats]:
    """Group scored questions per indicator; TEXT questions are left out."""
    stats: Dict[str, IndicatorStats] = {}
    for normalized in questions:
        if normalized.score is None:
            continue
        text = normalized.question.text
        if normalized.selected_options and normalized.question_type is QuestionType.MULTIPLE_CHOICE:
            tags = " ".join(f"[{label}]" for label in normalized.selected_options)
            text = f"{text} {tags}"
        indicator_stats = stats.setdefault(
            normalized.indicator, IndicatorStats(indicator=normalized.indicator)
        )
        indicator_stats.questions.append(
            QuestionStat(
                order=normalized.question.order,
                text=text,
                score=normalized.score,
                tier=classify_score(normalized.score),
            )
        )
    return {key: stats[key] for key in canonical_order(stats.keys())}


def build_question_stats_from_response(response: ResponseSnapshot) -> Dict[str, str]:
    """Formatted stats block per indicator for an already-loaded response. No I/O."""
    normalized = normalize_answers(response.answers)
    return {
        indicator: block.render()
        for indicator, block in build_question_stats(normalized.questions).items()
    }


__all__ = [
    "IndicatorStats",
    "QuestionStat",
    "TIER_ORDER",
    "Tier",
    "build_question_stats",
    "build_question_stats_from_response",
    "classify_score",
]
