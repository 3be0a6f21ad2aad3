"""Answer normalization: raw answer rows to one 0-100 score per question."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from tai_report.models.questionnaire import QuestionType
from tai_report.services.exceptions import UnsupportedQuestionTypeError, ValidationIssue
from tai_report.services.scoring.indicators import indicator_key
from tai_report.services.types import NOT_APPLICABLE, AnswerSnapshot, QuestionSnapshot
from tai_report.utils.logger import get_logger

logger = get_logger(__name__)

MAX_SCORE = 100.0


@dataclass(frozen=True, slots=True)
class NormalizedQuestion:
    """Per-question result. ``score`` is None for questions that are never scored."""

    question: QuestionSnapshot
    question_type: QuestionType
    score: Optional[float]
    selected_options: Tuple[str, ...] = ()

    @property
    def indicator(self) -> str:
        return indicator_key(self.question.indicator)


@dataclass(slots=True)
class NormalizationResult:
    questions: List[NormalizedQuestion] = field(default_factory=list)
    issues: List[ValidationIssue] = field(default_factory=list)

    def scored(self) -> List[NormalizedQuestion]:
        return [q for q in self.questions if q.score is not None]


def parse_question_type(raw: object) -> QuestionType:
    """Resolve a stored question type; raises UnsupportedQuestionTypeError for unknown kinds."""
    if isinstance(raw, QuestionType):
        return raw
    try:
        return QuestionType(str(raw).strip().upper())
    except ValueError as exc:
        raise UnsupportedQuestionTypeError(raw) from exc


def score_multiple_choice(values: Sequence[Optional[float]]) -> float:
    """Any selected option worth 100 wins outright, otherwise the best selection counts."""
    applicable = [v for v in values if v is not None and v != NOT_APPLICABLE]
    if not applicable:
        return NOT_APPLICABLE
    if any(v == MAX_SCORE for v in applicable):
        return MAX_SCORE
    return max(applicable)


def normalize_score(
    question_type: QuestionType | str, values: Sequence[Optional[float]]
) -> Optional[float]:
    """
    Reduce the numeric values collected for one question to a single score.

    Args:
        question_type: The question's type
        values: Stored value(s); multi-select questions pass one value per selection

    Returns:
        A score in [0, 100], -1 for "not applicable", or None for TEXT questions

    Raises:
        UnsupportedQuestionTypeError: If the type is not one of the recognized kinds
    """
    qtype = parse_question_type(question_type)
    if qtype is QuestionType.TEXT:
        return None
    if qtype is QuestionType.MULTIPLE_CHOICE:
        return score_multiple_choice(values)
    first = values[0] if values else None
    return NOT_APPLICABLE if first is None else float(first)


def normalize_answers(answers: Iterable[AnswerSnapshot]) -> NormalizationResult:
    """
    Normalize every answered question of a response.

    Rows that carry fields their question type does not allow are ignored and
    reported; questions of an unknown type are skipped and reported.
    """
    grouped: Dict[int, List[AnswerSnapshot]] = {}
    for answer in answers:
        grouped.setdefault(answer.question.id, []).append(answer)

    result = NormalizationResult()
    for rows in grouped.values():
        question = rows[0].question
        try:
            qtype = parse_question_type(question.type)
        except UnsupportedQuestionTypeError as exc:
            logger.error(
                "Question skipped", question_id=question.id, question_type=str(question.type)
            )
            result.issues.append(_issue(question, "unsupported_question_type", exc.message))
            continue

        normalized = _normalize_rows(question, qtype, rows, result.issues)
        result.questions.append(normalized)

    if result.issues:
        logger.info(
            "Answers skipped during normalization",
            issue_count=len(result.issues),
            codes=sorted({issue.code for issue in result.issues}),
        )
    return result


def _normalize_rows(
    question: QuestionSnapshot,
    qtype: QuestionType,
    rows: List[AnswerSnapshot],
    issues: List[ValidationIssue],
) -> NormalizedQuestion:
    if qtype is QuestionType.TEXT:
        for row in rows:
            if row.value is not None or row.option is not None:
                issues.append(
                    _issue(question, "unexpected_field", "TEXT answers cannot carry a value or option")
                )
        return NormalizedQuestion(question=question, question_type=qtype, score=None)

    if qtype is QuestionType.MULTIPLE_CHOICE:
        values: List[Optional[float]] = []
        labels: List[str] = []
        for row in rows:
            if row.option is None:
                issues.append(
                    _issue(question, "missing_option", "Multiple-choice answer without a selected option")
                )
                continue
            labels.append(row.option.text)
            values.append(_checked_value(question, row.option.value, issues))
        return NormalizedQuestion(
            question=question,
            question_type=qtype,
            score=normalize_score(qtype, values),
            selected_options=tuple(labels),
        )

    valid_rows: List[AnswerSnapshot] = []
    for row in rows:
        if qtype is QuestionType.SCALE and row.option is not None:
            issues.append(
                _issue(question, "unexpected_option", "SCALE answers cannot reference an option")
            )
            continue
        valid_rows.append(row)
    if len(valid_rows) > 1:
        issues.append(
            _issue(question, "duplicate_answer", "Only the first answer row was scored")
        )

    value: Optional[float] = None
    labels = []
    if valid_rows:
        row = valid_rows[0]
        raw = row.value
        if row.option is not None:
            labels.append(row.option.text)
            if row.value is None:
                raw = row.option.value
            else:
                # Stored value takes precedence over the option's value
                issues.append(
                    _issue(
                        question,
                        "unexpected_value",
                        "Choice answer carries both an option and a value",
                    )
                )
        value = _checked_value(question, raw, issues)

    return NormalizedQuestion(
        question=question,
        question_type=qtype,
        score=normalize_score(qtype, [value]),
        selected_options=tuple(labels),
    )


def _checked_value(
    question: QuestionSnapshot, raw: Optional[float], issues: List[ValidationIssue]
) -> Optional[float]:
    if raw is None:
        return None
    value = float(raw)
    if math.isnan(value):
        issues.append(_issue(question, "invalid_value", "Answer value is not a number"))
        return None
    if value == NOT_APPLICABLE or 0.0 <= value <= MAX_SCORE:
        return value
    issues.append(
        _issue(question, "value_out_of_range", f"Value {value:g} is outside 0-100")
    )
    return None


def _issue(question: QuestionSnapshot, code: str, message: str) -> ValidationIssue:
    return ValidationIssue(question_id=question.id, code=code, message=message)


__all__ = [
    "MAX_SCORE",
    "NormalizationResult",
    "NormalizedQuestion",
    "normalize_answers",
    "normalize_score",
    "parse_question_type",
    "score_multiple_choice",
]
