"""
Report orchestration.

``generate_report`` runs the whole pipeline for one response: load, normalize,
aggregate, classify, weight, narrate and persist. Only the final persistence
step writes anything, as a single upsert keyed by the response id.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from tai_report.services.exceptions import NotFoundError
from tai_report.services.metrics import REPORT_GENERATION_SECONDS, REPORTS_GENERATED_TOTAL
from tai_report.services.narrative.generator import NarrativeGenerator
from tai_report.services.report_store import ReportStore
from tai_report.services.scoring.aggregator import (
    aggregate_indicator_scores,
    build_radar_data,
)
from tai_report.services.scoring.classifier import (
    build_question_stats,
    build_question_stats_from_response,
)
from tai_report.services.scoring.normalizer import normalize_answers
from tai_report.services.scoring.weighting import compute_overall_score
from tai_report.services.types import (
    ImageInput,
    ReportImageRecord,
    ReportPayload,
    ReportRecord,
)
from tai_report.utils.logger import add_report_context, get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class ReportResult:
    """Everything a caller needs to render a report."""

    report: ReportRecord
    scores: Dict[str, float]
    radar_data: List[Dict[str, Any]]
    overall_score: float
    analysis_text: str
    question_stats_text: Dict[str, str]
    weight_snapshot: Optional[Dict[str, float]] = None
    llm_meta: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_record(
        cls, record: ReportRecord, question_stats_text: Dict[str, str]
    ) -> "ReportResult":
        return cls(
            report=record,
            scores=dict(record.scores),
            radar_data=build_radar_data(record.scores),
            overall_score=record.overall_score,
            analysis_text=record.analysis_text,
            question_stats_text=question_stats_text,
            weight_snapshot=record.weight_snapshot,
            llm_meta=dict(record.llm_meta),
        )


class ReportService:
    """Generates, reads and decorates reports for questionnaire responses."""

    def __init__(self, store: ReportStore, narrative_generator: NarrativeGenerator) -> None:
        self._store = store
        self._narrative = narrative_generator

    async def generate_report(
        self,
        response_id: int,
        images: Optional[Sequence[ImageInput]] = None,
    ) -> ReportResult:
        """
        Generate (or regenerate) the report of a response.

        Args:
            response_id: Response to score
            images: Image set to attach; previous images are replaced, or cleared when None

        Returns:
            ReportResult with the persisted report and the computed pieces

        Raises:
            NotFoundError: If the response does not exist
            StorageError: If loading or persisting fails
        """
        start_time = time.monotonic()
        response = await self._store.get_response_with_answers(response_id)
        if response is None:
            logger.info("Report requested for unknown response", response_id=response_id)
            raise NotFoundError("Response", response_id)

        context = add_report_context(response.id, response.project_id)
        logger.info("Report generation started", answer_count=len(response.answers), **context)

        normalized = normalize_answers(response.answers)
        scores = aggregate_indicator_scores(normalized.questions)
        stats = build_question_stats(normalized.questions)
        question_stats_text = {key: block.render() for key, block in stats.items()}

        priorities = await self._store.get_project_weights(response.project_id)
        weighting = compute_overall_score(scores, priorities)

        narrative = await self._narrative.generate(
            scores, weighting.overall_score, response_id=response.id
        )

        llm_meta = narrative.to_meta()
        llm_meta["weight_source"] = weighting.source.value
        if normalized.issues:
            llm_meta["skipped_answers"] = [issue.to_dict() for issue in normalized.issues]

        record = await self._store.upsert_report(
            response.id,
            ReportPayload(
                overall_score=weighting.overall_score,
                scores=scores,
                analysis_text=narrative.text,
                weight_snapshot=weighting.weight_snapshot,
                llm_meta=llm_meta,
                images=list(images or []),
            ),
        )

        duration = time.monotonic() - start_time
        REPORT_GENERATION_SECONDS.observe(duration)
        REPORTS_GENERATED_TOTAL.labels(
            narrative_source="fallback" if narrative.degraded else "llm"
        ).inc()
        logger.info(
            "Report generation finished",
            report_id=record.id,
            overall_score=round(weighting.overall_score, 4),
            weight_source=weighting.source.value,
            degraded=narrative.degraded,
            duration=round(duration, 3),
            **context,
        )
        return ReportResult.from_record(record, question_stats_text)

    async def get_report_bundle(self, response_id: int) -> ReportResult:
        """Persisted report of a response with freshly built stats text."""
        record = await self._store.get_report(response_id)
        if record is None:
            raise NotFoundError("Report", response_id)
        response = await self._store.get_response_with_answers(response_id)
        stats_text = build_question_stats_from_response(response) if response else {}
        return ReportResult.from_record(record, stats_text)

    async def add_image(self, report_id: int, image: ImageInput) -> ReportImageRecord:
        record = await self._store.add_report_image(report_id, image)
        logger.info("Report image added", report_id=report_id, image_id=record.id)
        return record


__all__ = ["ReportResult", "ReportService"]
