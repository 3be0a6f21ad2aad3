"""Typed snapshots passed between the storage layer and the scoring pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

NOT_APPLICABLE = -1.0


@dataclass(frozen=True, slots=True)
class OptionSnapshot:
    id: int
    text: str
    value: Optional[float]


@dataclass(frozen=True, slots=True)
class QuestionSnapshot:
    id: int
    indicator: str
    type: str
    order: int
    text: str
    required: bool = True
    version_id: Optional[int] = None
    option_ids: Tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class AnswerSnapshot:
    """One stored answer row; multi-select questions produce one row per option."""

    question: QuestionSnapshot
    value: Optional[float] = None
    option: Optional[OptionSnapshot] = None
    text: Optional[str] = None


@dataclass(frozen=True, slots=True)
class ResponseSnapshot:
    id: int
    user_id: int
    project_id: Optional[int]
    version_id: Optional[int]
    answers: Tuple[AnswerSnapshot, ...] = ()


@dataclass(frozen=True, slots=True)
class IndicatorWeight:
    """Project-level indicator priority entry."""

    indicator: str
    rank: int
    weight: Optional[float] = None


@dataclass(frozen=True, slots=True)
class ImageInput:
    url: str
    caption: Optional[str] = None


@dataclass(slots=True)
class ReportImageRecord:
    id: int
    report_id: int
    url: str
    caption: Optional[str]


@dataclass(slots=True)
class ReportPayload:
    """Everything the store needs to create or update a report row."""

    overall_score: float
    scores: Dict[str, float]
    analysis_text: str
    weight_snapshot: Optional[Dict[str, float]]
    llm_meta: Dict[str, Any]
    images: List[ImageInput] = field(default_factory=list)


@dataclass(slots=True)
class ReportRecord:
    """Serializable view of a persisted report."""

    id: int
    response_id: int
    overall_score: float
    scores: Dict[str, float]
    analysis_text: str
    weight_snapshot: Optional[Dict[str, float]]
    llm_meta: Dict[str, Any]
    images: List[ReportImageRecord] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


__all__ = [
    "NOT_APPLICABLE",
    "AnswerSnapshot",
    "ImageInput",
    "IndicatorWeight",
    "OptionSnapshot",
    "QuestionSnapshot",
    "ReportImageRecord",
    "ReportPayload",
    "ReportRecord",
    "ResponseSnapshot",
]
