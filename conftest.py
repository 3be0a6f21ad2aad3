"""
Shared pytest fixtures: an in-memory SQLite database and small builders for
questionnaires, projects and responses.
"""

import os
from typing import Any, Dict, Generator, Iterable, List, Optional, Sequence, Tuple

# Test defaults must be in place before tai_report.core.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DB_AUTO_CREATE", "false")
os.environ.setdefault("LLM_RETRY_DELAY_SECONDS", "0")
os.environ.setdefault("LLM_API_KEY", "test-key")

import pytest  # noqa: E402
from dotenv import load_dotenv  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

# Load environment variables from .env file
load_dotenv()

from tai_report.db.base import Base  # noqa: E402
from tai_report.db.session import build_engine  # noqa: E402
from tai_report.models import (  # noqa: E402
    Answer,
    Indicator,
    Option,
    Project,
    ProjectIndicatorPriority,
    Question,
    QuestionnaireVersion,
    QuestionType,
    Response,
)


class SurveyBuilder:
    """Creates persisted questionnaire data with as little ceremony as possible."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._order = 0

    def _save(self, model: Any) -> Any:
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return model

    def version(self, title: str = "Pre-modelling assessment") -> QuestionnaireVersion:
        return self._save(
            QuestionnaireVersion(group_name="pre", version_number=1, title=title)
        )

    def question(
        self,
        version: QuestionnaireVersion,
        indicator: Indicator,
        question_type: QuestionType | str = QuestionType.SCALE,
        *,
        text: Optional[str] = None,
        order: Optional[int] = None,
        required: bool = True,
        options: Sequence[Tuple[str, Optional[float]]] = (),
    ) -> Question:
        if order is None:
            self._order += 1
            order = self._order
        question = Question(
            version_id=version.id,
            indicator=indicator,
            type=question_type.value if isinstance(question_type, QuestionType) else question_type,
            text=text or f"Question {order}",
            order=order,
            required=required,
        )
        question.options = [
            Option(text=label, value=value, order=index)
            for index, (label, value) in enumerate(options)
        ]
        return self._save(question)

    def project(
        self,
        priorities: Iterable[Tuple[Indicator, int, Optional[float]]] = (),
        *,
        user_id: int = 1,
    ) -> Project:
        project = Project(user_id=user_id, name="Credit scoring model")
        project.priorities = [
            ProjectIndicatorPriority(indicator=indicator, rank=rank, weight=weight)
            for indicator, rank, weight in priorities
        ]
        return self._save(project)

    def response(
        self,
        version: Optional[QuestionnaireVersion],
        answers: Iterable[Tuple[Question, Dict[str, Any]]] = (),
        *,
        project: Optional[Project] = None,
        user_id: int = 1,
    ) -> Response:
        response = Response(
            user_id=user_id,
            project_id=project.id if project else None,
            version_id=version.id if version else None,
        )
        response.answers = [
            Answer(question_id=question.id, **fields) for question, fields in answers
        ]
        return self._save(response)

    @staticmethod
    def option(question: Question, text: str) -> Option:
        for option in question.options:
            if option.text == text:
                return option
        raise KeyError(text)


@pytest.fixture
def db_engine() -> Generator:
    """Yield a SQLAlchemy engine for an in-memory SQLite database."""
    engine = build_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> sessionmaker:
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db_session(session_factory) -> Generator[Session, None, None]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def survey(db_session) -> SurveyBuilder:
    return SurveyBuilder(db_session)


@pytest.fixture
def scenario_response(survey) -> Dict[str, Any]:
    """Two SAFETY scale answers (90, 70) and one not-applicable PRIVACY choice."""
    version = survey.version()
    q1 = survey.question(version, Indicator.SAFETY, text="Hazards are documented", order=1)
    q2 = survey.question(version, Indicator.SAFETY, text="Fail-safe mode exists", order=2)
    q3 = survey.question(
        version,
        Indicator.PRIVACY,
        QuestionType.SINGLE_CHOICE,
        text="Personal data is minimised",
        order=3,
        options=[("Yes", 100.0), ("No", 0.0), ("Not applicable", -1.0)],
    )
    response = survey.response(
        version,
        [
            (q1, {"value": 90.0}),
            (q2, {"value": 70.0}),
            (q3, {"option_id": survey.option(q3, "Not applicable").id}),
        ],
    )
    return {"version": version, "questions": [q1, q2, q3], "response": response}


def completion_results(*texts: Optional[str]) -> List[Any]:
    """CompletionResult list for scripting a mocked client; None means a failure."""
    from tai_report.services.exceptions import CompletionHTTPError
    from tai_report.services.narrative.client import CompletionResult

    results = []
    for text in texts:
        if text is None:
            results.append(
                CompletionResult(
                    model="test-model",
                    error=CompletionHTTPError("test-model", "HTTP 503", status_code=503),
                )
            )
        else:
            results.append(CompletionResult(model="test-model", text=text))
    return results


@pytest.fixture
def scripted_results():
    return completion_results
