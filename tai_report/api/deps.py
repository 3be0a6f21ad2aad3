"""FastAPI dependencies wiring services to process-wide resources."""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from tai_report.core.config import settings
from tai_report.core.prompt_config import PromptConfigProvider
from tai_report.db.session import SessionLocal, get_db
from tai_report.services.narrative.client import CompletionClient
from tai_report.services.narrative.generator import NarrativeGenerator
from tai_report.services.report_service import ReportService
from tai_report.services.report_store import ReportStore, SqlAlchemyReportStore
from tai_report.services.response_service import ResponseService


def get_prompt_provider(request: Request) -> PromptConfigProvider:
    """The provider created once by the application at startup."""
    provider = getattr(request.app.state, "prompt_provider", None)
    if provider is None:
        provider = PromptConfigProvider(settings.PROMPT_CONFIG_PATH)
        request.app.state.prompt_provider = provider
    return provider


def get_report_store() -> ReportStore:
    return SqlAlchemyReportStore(SessionLocal)


def get_completion_client() -> CompletionClient:
    return CompletionClient.from_settings(settings)


def get_narrative_generator(
    client: CompletionClient = Depends(get_completion_client),
    prompt_provider: PromptConfigProvider = Depends(get_prompt_provider),
) -> NarrativeGenerator:
    return NarrativeGenerator.from_settings(client, prompt_provider, settings)


def get_report_service(
    store: ReportStore = Depends(get_report_store),
    narrative_generator: NarrativeGenerator = Depends(get_narrative_generator),
) -> ReportService:
    return ReportService(store, narrative_generator)


def get_response_service(db: Session = Depends(get_db)) -> ResponseService:
    return ResponseService(db)
