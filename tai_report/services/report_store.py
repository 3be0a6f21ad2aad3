"""
Storage collaborator for the report pipeline.

The pipeline only sees immutable snapshots and records; ORM objects never
leave a session. :class:`SqlAlchemyReportStore` runs its blocking session work
in the Starlette thread pool so request handlers stay asynchronous.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, TypeVar

from sqlalchemy import delete, func, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker
from starlette.concurrency import run_in_threadpool

from tai_report.models.project import ProjectIndicatorPriority
from tai_report.models.report import Report, ReportImage
from tai_report.models.response import Answer, Response
from tai_report.services.exceptions import NotFoundError, StorageError
from tai_report.services.scoring.indicators import indicator_key
from tai_report.services.types import (
    AnswerSnapshot,
    ImageInput,
    IndicatorWeight,
    OptionSnapshot,
    QuestionSnapshot,
    ReportImageRecord,
    ReportPayload,
    ReportRecord,
    ResponseSnapshot,
)
from tai_report.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class ReportStore(ABC):
    """Async storage operations consumed by the report pipeline."""

    @abstractmethod
    async def get_response_with_answers(self, response_id: int) -> Optional[ResponseSnapshot]:
        """Response with every answer, its question and selected option, or None."""

    @abstractmethod
    async def get_project_weights(self, project_id: Optional[int]) -> List[IndicatorWeight]:
        """Indicator priorities ordered by rank; empty when unconfigured."""

    @abstractmethod
    async def upsert_report(self, response_id: int, payload: ReportPayload) -> ReportRecord:
        """Atomically create or update the report of a response and replace its images."""

    @abstractmethod
    async def get_report(self, response_id: int) -> Optional[ReportRecord]:
        """Persisted report for a response, or None."""

    @abstractmethod
    async def add_report_image(self, report_id: int, image: ImageInput) -> ReportImageRecord:
        """Attach one image to an existing report."""


class SqlAlchemyReportStore(ReportStore):
    """ReportStore backed by a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def get_response_with_answers(self, response_id: int) -> Optional[ResponseSnapshot]:
        return await self._run("get_response_with_answers", self._load_response, response_id)

    async def get_project_weights(self, project_id: Optional[int]) -> List[IndicatorWeight]:
        if project_id is None:
            return []
        return await self._run("get_project_weights", self._load_weights, project_id)

    async def upsert_report(self, response_id: int, payload: ReportPayload) -> ReportRecord:
        return await self._run("upsert_report", self._upsert, response_id, payload)

    async def get_report(self, response_id: int) -> Optional[ReportRecord]:
        return await self._run("get_report", self._load_report, response_id)

    async def add_report_image(self, report_id: int, image: ImageInput) -> ReportImageRecord:
        return await self._run("add_report_image", self._insert_image, report_id, image)

    async def _run(self, operation: str, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await run_in_threadpool(fn, *args)
        except SQLAlchemyError as exc:
            logger.error(
                "Storage operation failed",
                operation=operation,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise StorageError(
                f"Storage operation '{operation}' failed",
                technical_details={"operation": operation, "error_type": type(exc).__name__},
            ) from exc

    # --- blocking session work ---

    def _load_response(self, response_id: int) -> Optional[ResponseSnapshot]:
        with self._session_factory() as session:
            stmt = (
                select(Response)
                .where(Response.id == response_id)
                .options(
                    selectinload(Response.answers).selectinload(Answer.question),
                    selectinload(Response.answers).selectinload(Answer.option),
                )
            )
            response = session.execute(stmt).scalar_one_or_none()
            if response is None:
                return None
            return ResponseSnapshot(
                id=response.id,
                user_id=response.user_id,
                project_id=response.project_id,
                version_id=response.version_id,
                answers=tuple(self._answer_snapshot(answer) for answer in response.answers),
            )

    def _load_weights(self, project_id: int) -> List[IndicatorWeight]:
        with self._session_factory() as session:
            rows = session.execute(
                select(ProjectIndicatorPriority)
                .where(ProjectIndicatorPriority.project_id == project_id)
                .order_by(ProjectIndicatorPriority.rank, ProjectIndicatorPriority.id)
            ).scalars()
            return [
                IndicatorWeight(
                    indicator=indicator_key(row.indicator),
                    rank=row.rank,
                    weight=row.weight,
                )
                for row in rows
            ]

    def _upsert(self, response_id: int, payload: ReportPayload) -> ReportRecord:
        with self._session_factory() as session, session.begin():
            insert = _UPSERT_DIALECTS.get(session.get_bind().dialect.name)
            if insert is None:
                raise StorageError(
                    "Report upsert is not supported on this database",
                    technical_details={"dialect": session.get_bind().dialect.name},
                )

            stmt = insert(Report).values(
                response_id=response_id,
                overall_score=payload.overall_score,
                scores=payload.scores,
                analysis_text=payload.analysis_text,
                weight_snapshot=payload.weight_snapshot,
                llm_meta=payload.llm_meta,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["response_id"],
                set_={
                    "overall_score": stmt.excluded.overall_score,
                    "scores": stmt.excluded.scores,
                    "analysis_text": stmt.excluded.analysis_text,
                    "weight_snapshot": stmt.excluded.weight_snapshot,
                    "llm_meta": stmt.excluded.llm_meta,
                    "updated_at": func.now(),
                },
            )
            session.execute(stmt)

            report_id = session.execute(
                select(Report.id).where(Report.response_id == response_id)
            ).scalar_one()
            session.execute(delete(ReportImage).where(ReportImage.report_id == report_id))
            session.add_all(
                ReportImage(report_id=report_id, url=image.url, caption=image.caption)
                for image in payload.images
            )
            session.flush()

            report = self._select_report(session, Report.id == report_id)
            return self._report_record(report)

    def _load_report(self, response_id: int) -> Optional[ReportRecord]:
        with self._session_factory() as session:
            report = self._select_report(session, Report.response_id == response_id)
            return self._report_record(report) if report is not None else None

    def _insert_image(self, report_id: int, image: ImageInput) -> ReportImageRecord:
        with self._session_factory() as session, session.begin():
            if session.get(Report, report_id) is None:
                raise NotFoundError("Report", report_id)
            model = ReportImage(report_id=report_id, url=image.url, caption=image.caption)
            session.add(model)
            session.flush()
            return self._image_record(model)

    # --- mapping ---

    @staticmethod
    def _select_report(session: Session, criterion: Any) -> Optional[Report]:
        stmt = (
            select(Report)
            .where(criterion)
            .options(selectinload(Report.images))
            .execution_options(populate_existing=True)
        )
        return session.execute(stmt).scalar_one_or_none()

    @staticmethod
    def _answer_snapshot(answer: Answer) -> AnswerSnapshot:
        question = answer.question
        option = answer.option
        return AnswerSnapshot(
            question=QuestionSnapshot(
                id=question.id,
                indicator=indicator_key(question.indicator),
                type=question.type,
                order=question.order,
                text=question.text,
                required=question.required,
                version_id=question.version_id,
            ),
            value=answer.value,
            option=(
                OptionSnapshot(id=option.id, text=option.text, value=option.value)
                if option is not None
                else None
            ),
            text=answer.text,
        )

    @staticmethod
    def _image_record(model: ReportImage) -> ReportImageRecord:
        return ReportImageRecord(
            id=model.id, report_id=model.report_id, url=model.url, caption=model.caption
        )

    @classmethod
    def _report_record(cls, model: Report) -> ReportRecord:
        return ReportRecord(
            id=model.id,
            response_id=model.response_id,
            overall_score=model.overall_score,
            scores=dict(model.scores or {}),
            analysis_text=model.analysis_text,
            weight_snapshot=model.weight_snapshot,
            llm_meta=dict(model.llm_meta or {}),
            images=[cls._image_record(image) for image in model.images],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


__all__ = ["ReportStore", "SqlAlchemyReportStore"]
