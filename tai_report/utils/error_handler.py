"""
Translation of service errors into HTTP responses.

Every handled error is logged once, at a level derived from its severity, and
returned to the client in the same envelope::

    {"error": {"id", "message", "category", "severity", "details", "timestamp"}}
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from tai_report.services.exceptions import (
    ErrorCategory,
    ErrorSeverity,
    ReportServiceError,
)
from tai_report.utils.logger import add_request_context, get_logger

logger = get_logger(__name__)

# Categories whose technical details are safe to show to clients
PUBLIC_DETAIL_CATEGORIES = {ErrorCategory.VALIDATION, ErrorCategory.NOT_FOUND}

STATUS_CODES = {
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.UPSTREAM: 502,
    ErrorCategory.DATABASE: 500,
    ErrorCategory.CONFIGURATION: 500,
    ErrorCategory.SYSTEM: 500,
}


class ErrorContext:
    """Container for error context information"""

    def __init__(
        self,
        error: Exception,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error = error
        self.severity = severity
        self.category = category
        self.message = message or "An unexpected error occurred. Please try again or contact support."
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc)
        self.error_id = f"err_{uuid.uuid4().hex[:12]}"

    @classmethod
    def from_exception(cls, error: Exception) -> "ErrorContext":
        if isinstance(error, ReportServiceError):
            details = (
                error.technical_details
                if error.category in PUBLIC_DETAIL_CATEGORIES
                else {}
            )
            return cls(
                error,
                severity=error.severity,
                category=error.category,
                message=error.message,
                details=details,
            )
        return cls(error)

    @property
    def status_code(self) -> int:
        if self.severity is ErrorSeverity.CRITICAL:
            return 503
        return STATUS_CODES.get(self.category, 500)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.error_id,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


def log_error(error_context: ErrorContext, **context: Any) -> None:
    """Log error with appropriate level and context"""
    log_data = {
        "error_id": error_context.error_id,
        "error_type": type(error_context.error).__name__,
        "category": error_context.category.value,
        "severity": error_context.severity.value,
        **context,
    }
    if error_context.severity == ErrorSeverity.CRITICAL:
        logger.critical(error_context.message, **log_data, exc_info=error_context.error)
    elif error_context.severity == ErrorSeverity.HIGH:
        logger.error(error_context.message, **log_data, exc_info=error_context.error)
    elif error_context.severity == ErrorSeverity.MEDIUM:
        logger.warning(error_context.message, **log_data)
    else:  # LOW
        logger.info(error_context.message, **log_data)


def create_error_response(
    error: Exception, context: Optional[Dict[str, Any]] = None
) -> JSONResponse:
    """Create standardized error response for APIs"""
    error_context = ErrorContext.from_exception(error)
    log_error(error_context, **(context or {}))
    return JSONResponse(
        status_code=error_context.status_code,
        content={"error": error_context.to_dict()},
    )


async def service_error_handler(request: Request, exc: Exception) -> JSONResponse:
    return create_error_response(exc, add_request_context(request))


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers on an application."""
    app.add_exception_handler(ReportServiceError, service_error_handler)
    app.add_exception_handler(Exception, service_error_handler)


__all__ = [
    "ErrorContext",
    "create_error_response",
    "log_error",
    "register_exception_handlers",
]
