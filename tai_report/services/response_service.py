"""Questionnaire response submission, answer replacement and deletion."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from tai_report.models.project import Project
from tai_report.models.questionnaire import Question, QuestionnaireVersion, QuestionType
from tai_report.models.response import Answer, Response
from tai_report.services.exceptions import (
    AnswerValidationError,
    NotFoundError,
    StorageError,
    ValidationIssue,
)
from tai_report.services.scoring.indicators import indicator_key
from tai_report.services.types import NOT_APPLICABLE, QuestionSnapshot
from tai_report.utils.logger import get_logger

logger = get_logger(__name__)

CHOICE_TYPES = (QuestionType.SINGLE_CHOICE.value, QuestionType.MULTIPLE_CHOICE.value)
SUPPORTED_TYPES = {question_type.value for question_type in QuestionType}


@dataclass(frozen=True, slots=True)
class AnswerInput:
    """One submitted answer; multi-select questions send one entry per option."""

    question_id: int
    value: Optional[float] = None
    option_id: Optional[int] = None
    text: Optional[str] = None


@dataclass(slots=True)
class ResponseRecord:
    id: int
    user_id: int
    project_id: Optional[int]
    version_id: Optional[int]
    answer_count: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


def validate_answers(
    questions: Iterable[QuestionSnapshot],
    payload: Sequence[AnswerInput],
    *,
    version_id: Optional[int] = None,
    require_all: bool = False,
) -> List[ValidationIssue]:
    """
    Check a payload against the known questions and collect every problem.

    Args:
        questions: Questions the payload may reference, with their option ids
        payload: Submitted answers
        version_id: Questionnaire version the response belongs to, if known
        require_all: Also report required questions of the version left unanswered

    Returns:
        All issues found, empty when the payload is valid
    """
    by_id: Dict[int, QuestionSnapshot] = {question.id: question for question in questions}
    issues: List[ValidationIssue] = []
    counts = Counter(answer.question_id for answer in payload)
    duplicate_reported = set()

    for answer in payload:
        question = by_id.get(answer.question_id)
        if question is None:
            issues.append(
                ValidationIssue(answer.question_id, "unknown_question", "Question does not exist")
            )
            continue
        if version_id is not None and question.version_id != version_id:
            issues.append(
                ValidationIssue(
                    question.id,
                    "wrong_version",
                    f"Question belongs to questionnaire version {question.version_id}",
                )
            )
            continue

        qtype = str(question.type).upper()
        if qtype not in SUPPORTED_TYPES:
            issues.append(
                ValidationIssue(
                    question.id,
                    "unsupported_question_type",
                    f"Question type '{question.type}' is not supported",
                )
            )
            continue

        if (
            qtype != QuestionType.MULTIPLE_CHOICE.value
            and counts[question.id] > 1
            and question.id not in duplicate_reported
        ):
            duplicate_reported.add(question.id)
            issues.append(
                ValidationIssue(
                    question.id, "duplicate_answer", "Question accepts a single answer"
                )
            )

        issues.extend(_check_fields(question, qtype, answer))

    if require_all and version_id is not None:
        answered = set(counts)
        for question in sorted(by_id.values(), key=lambda q: q.order):
            if question.version_id == version_id and question.required and question.id not in answered:
                issues.append(
                    ValidationIssue(question.id, "missing_answer", "Required question not answered")
                )
    return issues


def _check_fields(
    question: QuestionSnapshot, qtype: str, answer: AnswerInput
) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if qtype == QuestionType.SCALE.value:
        if answer.option_id is not None:
            issues.append(
                ValidationIssue(question.id, "unexpected_option", "SCALE answers take a value, not an option")
            )
        if answer.value is not None and not (
            answer.value == NOT_APPLICABLE or 0 <= answer.value <= 100
        ):
            issues.append(
                ValidationIssue(question.id, "value_out_of_range", "Value must be within 0-100 or -1")
            )
        if answer.text is not None:
            issues.append(
                ValidationIssue(question.id, "unexpected_text", "SCALE answers cannot carry text")
            )
    elif qtype in CHOICE_TYPES:
        if answer.option_id is None:
            issues.append(
                ValidationIssue(question.id, "missing_option", "Choice questions need a selected option")
            )
        elif answer.option_id not in question.option_ids:
            issues.append(
                ValidationIssue(
                    question.id,
                    "foreign_option",
                    f"Option {answer.option_id} does not belong to this question",
                )
            )
        if answer.value is not None:
            issues.append(
                ValidationIssue(question.id, "unexpected_value", "Choice answers take their value from the option")
            )
        if answer.text is not None:
            issues.append(
                ValidationIssue(question.id, "unexpected_text", "Choice answers cannot carry text")
            )
    elif qtype == QuestionType.TEXT.value:
        if answer.option_id is not None:
            issues.append(
                ValidationIssue(question.id, "unexpected_option", "TEXT answers cannot reference an option")
            )
        if answer.value is not None:
            issues.append(
                ValidationIssue(question.id, "unexpected_value", "TEXT answers cannot carry a value")
            )
        if not (answer.text and answer.text.strip()):
            issues.append(ValidationIssue(question.id, "missing_text", "TEXT answers need text"))
    return issues


class ResponseService:
    """Database-backed operations on questionnaire responses."""

    def __init__(self, db_session: Session) -> None:
        self._db = db_session

    def submit(
        self,
        *,
        user_id: int,
        answers: Sequence[AnswerInput],
        project_id: Optional[int] = None,
        version_id: Optional[int] = None,
    ) -> ResponseRecord:
        """Create a response with its answers after validating the full submission."""
        if project_id is not None and self._db.get(Project, project_id) is None:
            raise NotFoundError("Project", project_id)
        if version_id is not None and self._db.get(QuestionnaireVersion, version_id) is None:
            raise NotFoundError("QuestionnaireVersion", version_id)

        self._validate(answers, version_id=version_id, require_all=True)

        response = Response(user_id=user_id, project_id=project_id, version_id=version_id)
        response.answers = [self._to_model(answer) for answer in answers]
        self._commit(response, operation="submit")
        logger.info(
            "Response submitted",
            response_id=response.id,
            user_id=user_id,
            answer_count=len(answers),
        )
        return self._from_model(response)

    def replace_answers(
        self, response_id: int, answers: Sequence[AnswerInput]
    ) -> ResponseRecord:
        """Replace every answer of a response with a new set."""
        response = self._db.get(Response, response_id)
        if response is None:
            raise NotFoundError("Response", response_id)

        self._validate(answers, version_id=response.version_id, require_all=False)

        try:
            self._db.execute(delete(Answer).where(Answer.response_id == response_id))
            self._db.expire(response, ["answers"])
            response.updated_at = datetime.now(timezone.utc)
            self._db.add_all(
                self._to_model(answer, response_id=response_id) for answer in answers
            )
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise self._storage_error("replace_answers", exc) from exc
        self._commit(response, operation="replace_answers")
        logger.info(
            "Response answers replaced", response_id=response_id, answer_count=len(answers)
        )
        return self._from_model(response)

    def delete(self, response_id: int) -> None:
        """Delete a response; answers, report and images go with it."""
        response = self._db.get(Response, response_id)
        if response is None:
            raise NotFoundError("Response", response_id)
        try:
            self._db.delete(response)
            self._db.commit()
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise self._storage_error("delete", exc) from exc
        logger.info("Response deleted", response_id=response_id)

    def _validate(
        self,
        answers: Sequence[AnswerInput],
        *,
        version_id: Optional[int],
        require_all: bool,
    ) -> None:
        questions = self._load_questions(
            [answer.question_id for answer in answers], version_id
        )
        issues = validate_answers(
            questions, answers, version_id=version_id, require_all=require_all
        )
        if issues:
            logger.info(
                "Answer validation failed",
                issue_count=len(issues),
                codes=sorted({issue.code for issue in issues}),
            )
            raise AnswerValidationError(issues)

    def _load_questions(
        self, question_ids: Sequence[int], version_id: Optional[int]
    ) -> List[QuestionSnapshot]:
        criteria = [Question.id.in_(list(set(question_ids)))]
        if version_id is not None:
            criteria.append(Question.version_id == version_id)
        rows = self._db.execute(
            select(Question).where(or_(*criteria)).options(selectinload(Question.options))
        ).scalars()
        return [
            QuestionSnapshot(
                id=row.id,
                indicator=indicator_key(row.indicator),
                type=row.type,
                order=row.order,
                text=row.text,
                required=row.required,
                version_id=row.version_id,
                option_ids=tuple(option.id for option in row.options),
            )
            for row in rows
        ]

    def _commit(self, response: Response, *, operation: str) -> None:
        try:
            self._db.add(response)
            self._db.commit()
            self._db.refresh(response)
        except SQLAlchemyError as exc:
            self._db.rollback()
            raise self._storage_error(operation, exc) from exc

    @staticmethod
    def _storage_error(operation: str, exc: SQLAlchemyError) -> StorageError:
        logger.error(
            "Storage operation failed",
            operation=operation,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return StorageError(
            f"Storage operation '{operation}' failed",
            technical_details={"operation": operation, "error_type": type(exc).__name__},
        )

    @staticmethod
    def _to_model(answer: AnswerInput, *, response_id: Optional[int] = None) -> Answer:
        return Answer(
            response_id=response_id,
            question_id=answer.question_id,
            option_id=answer.option_id,
            value=answer.value,
            text=answer.text,
        )

    @staticmethod
    def _from_model(model: Response) -> ResponseRecord:
        return ResponseRecord(
            id=model.id,
            user_id=model.user_id,
            project_id=model.project_id,
            version_id=model.version_id,
            answer_count=len(model.answers),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


__all__ = [
    "AnswerInput",
    "ResponseRecord",
    "ResponseService",
    "validate_answers",
]
