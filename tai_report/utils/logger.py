"""
Structured logging configuration using structlog.

Development environments get human-readable colored output, everything else
emits JSON lines for log shipping.
"""

import logging
import sys
from typing import Any, Dict, Optional

import structlog
from structlog.types import Processor

from tai_report.core.config import settings


def configure_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configure structured logging for the entire application.

    Args:
        level: Root log level name, defaults to ``settings.LOG_LEVEL``
        json_logs: Force the JSON renderer on or off, defaults to non-development envs

    Raises:
        ValueError: If the level name is not a standard logging level
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level_name}")
    if json_logs is None:
        json_logs = not settings.is_development

    # Standard library handlers receive the already rendered event
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
        force=True,
    )

    processors: list[Processor] = [
        structlog.processors.TimeStamper(fmt="ISO"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        # Call site of the log statement, not of the processor chain
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ]
        ),
    ]

    if json_logs:
        # One JSON object per line for log shipping
        processors.extend(
            [
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ]
        )
    else:
        # Local runs: colored console output with pretty tracebacks
        processors.extend(
            [
                structlog.dev.set_exc_info,
                structlog.dev.ConsoleRenderer(colors=True),
            ]
        )

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Context helpers for common log scenarios
def add_request_context(request: Any) -> Dict[str, Any]:
    """Add HTTP request context to logs."""
    try:
        return {
            "method": request.method,
            "url": str(request.url),
            "user_agent": request.headers.get("user-agent"),
        }
    except AttributeError:
        return {}


def add_report_context(response_id: int, project_id: Optional[int] = None) -> Dict[str, Any]:
    """Add report-generation context to logs."""
    context: Dict[str, Any] = {"response_id": response_id}
    if project_id is not None:
        context["project_id"] = project_id
    return context
