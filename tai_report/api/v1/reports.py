"""Report generation and retrieval endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, status

from tai_report.api.deps import get_report_service
from tai_report.api.v1.schemas import (
    GenerateReportRequest,
    ImageIn,
    ReportImageView,
    ReportView,
)
from tai_report.services.report_service import ReportService
from tai_report.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post(
    "/generate/{response_id}",
    response_model=ReportView,
    status_code=status.HTTP_201_CREATED,
)
async def generate_report(
    response_id: int,
    body: Optional[GenerateReportRequest] = None,
    service: ReportService = Depends(get_report_service),
) -> ReportView:
    """Score a response, write the narrative and store the report."""
    images = [image.to_input() for image in body.images] if body else None
    result = await service.generate_report(response_id, images=images)
    return ReportView.from_result(result)


@router.get("/response/{response_id}", response_model=ReportView)
async def get_report_by_response(
    response_id: int,
    service: ReportService = Depends(get_report_service),
) -> ReportView:
    result = await service.get_report_bundle(response_id)
    return ReportView.from_result(result)


@router.post(
    "/{report_id}/images",
    response_model=ReportImageView,
    status_code=status.HTTP_201_CREATED,
)
async def add_report_image(
    report_id: int,
    image: ImageIn,
    service: ReportService = Depends(get_report_service),
) -> ReportImageView:
    record = await service.add_image(report_id, image.to_input())
    return ReportImageView.from_record(record)
