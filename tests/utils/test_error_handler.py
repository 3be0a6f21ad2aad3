"""
Tests for the error envelope and the HTTP status mapping.
"""

from datetime import datetime
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fastapi.testclient import TestClient

from tai_report.api.deps import get_report_service
from tai_report.main import app
from tai_report.services.exceptions import (
    AnswerValidationError,
    CompletionTimeoutError,
    ErrorCategory,
    ErrorSeverity,
    NotFoundError,
    ReportServiceError,
    StorageError,
    UnsupportedQuestionTypeError,
    ValidationIssue,
)
from tai_report.services.report_service import ReportService
from tai_report.utils.error_handler import ErrorContext, create_error_response, log_error


class TestErrorContext:
    """Test cases for ErrorContext class"""

    def test_error_context_creation(self):
        error = ValueError("Test error")
        context = ErrorContext(error=error)

        assert context.error == error
        assert context.severity == ErrorSeverity.HIGH
        assert context.category == ErrorCategory.SYSTEM
        assert "unexpected error" in context.message.lower()
        assert context.error_id.startswith("err_")
        assert isinstance(context.timestamp, datetime)

    @pytest.mark.parametrize(
        "error, status_code",
        [
            (AnswerValidationError([ValidationIssue(1, "missing_text", "TEXT answers need text")]), 400),
            (NotFoundError("Response", 3), 404),
            (CompletionTimeoutError("model", 5), 502),
            (StorageError(), 500),
            (UnsupportedQuestionTypeError("RANKING"), 500),
            (ValueError("boom"), 500),
            (ReportServiceError("down", severity=ErrorSeverity.CRITICAL), 503),
        ],
    )
    def test_status_codes(self, error, status_code):
        assert ErrorContext.from_exception(error).status_code == status_code

    def test_internal_details_are_hidden(self):
        error = StorageError(technical_details={"operation": "upsert_report"})

        assert ErrorContext.from_exception(error).to_dict()["details"] == {}

    def test_serialization(self):
        context = ErrorContext.from_exception(NotFoundError("Report", 9))

        payload = context.to_dict()

        assert payload["id"] == context.error_id
        assert payload["message"] == "Report 9 not found"
        assert payload["category"] == "not_found"
        assert payload["severity"] == "low"
        assert payload["details"] == {"entity": "Report", "id": 9}
        assert "timestamp" in payload


class TestLogging:
    @pytest.mark.parametrize(
        "severity, level",
        [
            (ErrorSeverity.CRITICAL, "critical"),
            (ErrorSeverity.HIGH, "error"),
            (ErrorSeverity.MEDIUM, "warning"),
            (ErrorSeverity.LOW, "info"),
        ],
    )
    def test_log_level_follows_severity(self, severity, level):
        context = ErrorContext(ValueError("x"), severity=severity)

        with patch("tai_report.utils.error_handler.logger") as mock_logger:
            log_error(context, path="/api")

        method = getattr(mock_logger, level)
        method.assert_called_once()
        assert method.call_args.kwargs["error_id"] == context.error_id
        assert method.call_args.kwargs["path"] == "/api"

    def test_create_error_response(self):
        response = create_error_response(NotFoundError("Response", 1))

        assert response.status_code == 404
        assert b'"category":"not_found"' in response.body


class TestHandlers:
    @pytest.fixture
    def failing_service(self):
        service = Mock(spec=ReportService)
        service.generate_report = AsyncMock()
        app.dependency_overrides[get_report_service] = lambda: service
        yield service
        app.dependency_overrides.clear()

    def test_storage_error_envelope(self, failing_service):
        failing_service.generate_report.side_effect = StorageError(
            technical_details={"operation": "upsert_report"}
        )

        res = TestClient(app).post("/api/v1/reports/generate/1")

        assert res.status_code == 500
        error = res.json()["error"]
        assert error["category"] == "database"
        assert error["severity"] == "high"
        assert error["details"] == {}

    def test_unexpected_exception_envelope(self, failing_service):
        failing_service.generate_report.side_effect = RuntimeError("secret internals")

        res = TestClient(app, raise_server_exceptions=False).post("/api/v1/reports/generate/1")

        assert res.status_code == 500
        error = res.json()["error"]
        assert error["category"] == "system"
        assert "secret internals" not in error["message"]
