"""Questionnaire response endpoints. The caller's user id is trusted input."""

from fastapi import APIRouter, Depends, Response, status

from tai_report.api.deps import get_response_service
from tai_report.api.v1.schemas import (
    ReplaceAnswersRequest,
    ResponseView,
    SubmitResponseRequest,
)
from tai_report.services.response_service import ResponseService

router = APIRouter(prefix="/responses", tags=["responses"])


@router.post("", response_model=ResponseView, status_code=status.HTTP_201_CREATED)
def submit_response(
    body: SubmitResponseRequest,
    service: ResponseService = Depends(get_response_service),
) -> ResponseView:
    record = service.submit(
        user_id=body.user_id,
        project_id=body.project_id,
        version_id=body.version_id,
        answers=[answer.to_input() for answer in body.answers],
    )
    return ResponseView.from_record(record)


@router.patch("/{response_id}", response_model=ResponseView)
def replace_answers(
    response_id: int,
    body: ReplaceAnswersRequest,
    service: ResponseService = Depends(get_response_service),
) -> ResponseView:
    """Replace the whole answer set of a response."""
    record = service.replace_answers(
        response_id, [answer.to_input() for answer in body.answers]
    )
    return ResponseView.from_record(record)


@router.delete("/{response_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_response(
    response_id: int,
    service: ResponseService = Depends(get_response_service),
) -> Response:
    service.delete(response_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
