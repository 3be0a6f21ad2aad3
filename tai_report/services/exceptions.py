"""
Exception hierarchy for the report service.

Each error carries a severity and a category so the HTTP layer and the logs
can treat whole families of failures uniformly.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence


class ErrorSeverity(str, Enum):
    """Error severity levels for categorization and alerting"""

    LOW = "low"  # Expected client mistakes, logging only
    MEDIUM = "medium"  # Degraded behaviour worth monitoring
    HIGH = "high"  # Request failed, needs attention
    CRITICAL = "critical"  # Service cannot operate


class ErrorCategory(str, Enum):
    """Error categories for systematic handling"""

    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UPSTREAM = "upstream"
    DATABASE = "database"
    CONFIGURATION = "configuration"
    SYSTEM = "system"


class ReportServiceError(Exception):
    """Base exception for report service errors"""

    def __init__(
        self,
        message: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        technical_details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.severity = severity
        self.category = category
        self.technical_details = technical_details or {}


class NotFoundError(ReportServiceError):
    """Raised when a referenced response or report does not exist"""

    def __init__(self, entity: str, identifier: Any):
        super().__init__(
            f"{entity} {identifier} not found",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.NOT_FOUND,
            technical_details={"entity": entity, "id": identifier},
        )
        self.entity = entity
        self.identifier = identifier


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single problem found in one question's answer."""

    question_id: Optional[int]
    code: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class AnswerValidationError(ReportServiceError):
    """Raised with every validation issue found in an answer payload"""

    def __init__(self, issues: Sequence[ValidationIssue]):
        self.issues: List[ValidationIssue] = list(issues)
        super().__init__(
            f"{len(self.issues)} answer(s) failed validation",
            severity=ErrorSeverity.LOW,
            category=ErrorCategory.VALIDATION,
            technical_details={"issues": [issue.to_dict() for issue in self.issues]},
        )


class StorageError(ReportServiceError):
    """Raised when the persistence layer fails"""

    def __init__(self, message: str = "Storage operation failed", **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.DATABASE,
            **kwargs,
        )


class ConfigurationError(ReportServiceError):
    """Raised when stored questionnaire data cannot be interpreted"""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.CONFIGURATION,
            **kwargs,
        )


class UnsupportedQuestionTypeError(ConfigurationError, ValueError):
    """A question carries a type outside the four recognized kinds"""

    def __init__(self, question_type: Any):
        super().__init__(
            f"Question type '{question_type}' is not supported",
            technical_details={"question_type": str(question_type)},
        )
        self.question_type = question_type


class UpstreamUnavailableError(ReportServiceError):
    """Base class for LLM completion failures. Never leaves the narrative generator."""

    def __init__(self, message: str, *, model: Optional[str] = None, **kwargs):
        super().__init__(
            message,
            severity=ErrorSeverity.MEDIUM,
            category=ErrorCategory.UPSTREAM,
            **kwargs,
        )
        self.model = model


class CompletionTimeoutError(UpstreamUnavailableError):
    """The completion request exceeded its timeout"""

    def __init__(self, model: str, timeout_seconds: float):
        super().__init__(
            f"Completion request for {model} timed out after {timeout_seconds}s",
            model=model,
            technical_details={"timeout_seconds": timeout_seconds},
        )


class CompletionHTTPError(UpstreamUnavailableError):
    """The completion endpoint answered with a non-2xx status or was unreachable"""

    def __init__(self, model: str, message: str, status_code: Optional[int] = None):
        super().__init__(
            message,
            model=model,
            technical_details={"status_code": status_code},
        )
        self.status_code = status_code


class MalformedCompletionError(UpstreamUnavailableError):
    """The completion endpoint answered without usable text"""


__all__ = [
    "AnswerValidationError",
    "CompletionHTTPError",
    "CompletionTimeoutError",
    "ConfigurationError",
    "ErrorCategory",
    "ErrorSeverity",
    "MalformedCompletionError",
    "NotFoundError",
    "ReportServiceError",
    "StorageError",
    "UnsupportedQuestionTypeError",
    "UpstreamUnavailableError",
    "ValidationIssue",
]
