"""Pydantic request and response schemas for the v1 API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from tai_report.services.report_service import ReportResult
from tai_report.services.response_service import AnswerInput, ResponseRecord
from tai_report.services.types import ImageInput, ReportImageRecord


class BaseApiModel(BaseModel):
    """Base class enabling alias-friendly export."""

    model_config = ConfigDict(populate_by_name=True)


# --- Reports ---


class ImageIn(BaseApiModel):
    url: str = Field(min_length=1)
    caption: Optional[str] = None

    def to_input(self) -> ImageInput:
        return ImageInput(url=self.url, caption=self.caption)


class GenerateReportRequest(BaseApiModel):
    images: List[ImageIn] = []


class ReportImageView(BaseApiModel):
    id: int
    url: str
    caption: Optional[str] = None

    @classmethod
    def from_record(cls, record: ReportImageRecord) -> "ReportImageView":
        return cls(id=record.id, url=record.url, caption=record.caption)


class RadarPointView(BaseApiModel):
    axis: str
    value: float


class ReportView(BaseApiModel):
    id: int
    response_id: int = Field(alias="responseId")
    overall_score: float = Field(alias="overallScore")
    scores: Dict[str, float]
    radar_data: List[RadarPointView] = Field(alias="radarData")
    analysis_text: str = Field(alias="analysisText")
    question_stats_text: Dict[str, str] = Field(alias="questionStatsText")
    weight_snapshot: Optional[Dict[str, float]] = Field(default=None, alias="weightSnapshot")
    llm_meta: Dict[str, Any] = Field(default_factory=dict, alias="llmMeta")
    images: List[ReportImageView] = []
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @classmethod
    def from_result(cls, result: ReportResult) -> "ReportView":
        report = result.report
        return cls(
            id=report.id,
            response_id=report.response_id,
            overall_score=result.overall_score,
            scores=result.scores,
            radar_data=[RadarPointView(**point) for point in result.radar_data],
            analysis_text=result.analysis_text,
            question_stats_text=result.question_stats_text,
            weight_snapshot=result.weight_snapshot,
            llm_meta=result.llm_meta,
            images=[ReportImageView.from_record(image) for image in report.images],
            created_at=report.created_at,
            updated_at=report.updated_at,
        )


# --- Responses ---


class AnswerIn(BaseApiModel):
    question_id: int = Field(alias="questionId")
    value: Optional[float] = None
    option_id: Optional[int] = Field(default=None, alias="optionId")
    text: Optional[str] = None

    def to_input(self) -> AnswerInput:
        return AnswerInput(
            question_id=self.question_id,
            value=self.value,
            option_id=self.option_id,
            text=self.text,
        )


class SubmitResponseRequest(BaseApiModel):
    user_id: int = Field(alias="userId")
    project_id: Optional[int] = Field(default=None, alias="projectId")
    version_id: Optional[int] = Field(default=None, alias="versionId")
    answers: List[AnswerIn]


class ReplaceAnswersRequest(BaseApiModel):
    answers: List[AnswerIn]


class ResponseView(BaseApiModel):
    id: int
    user_id: int = Field(alias="userId")
    project_id: Optional[int] = Field(default=None, alias="projectId")
    version_id: Optional[int] = Field(default=None, alias="versionId")
    answer_count: int = Field(alias="answerCount")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    @classmethod
    def from_record(cls, record: ResponseRecord) -> "ResponseView":
        return cls(
            id=record.id,
            user_id=record.user_id,
            project_id=record.project_id,
            version_id=record.version_id,
            answer_count=record.answer_count,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )


__all__ = [
    "AnswerIn",
    "GenerateReportRequest",
    "ImageIn",
    "RadarPointView",
    "ReplaceAnswersRequest",
    "ReportImageView",
    "ReportView",
    "ResponseView",
    "SubmitResponseRequest",
]
