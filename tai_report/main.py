import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator
from sentry_sdk.integrations.asgi import SentryAsgiMiddleware

from tai_report.api.v1 import reports as report_routes
from tai_report.api.v1 import responses as response_routes
from tai_report.core.config import settings
from tai_report.core.prompt_config import PromptConfigProvider
from tai_report.db.base import Base
from tai_report.db.session import engine
from tai_report.utils.error_handler import register_exception_handlers
from tai_report.utils.logger import configure_logging, get_logger

# Configure logging before anything else
configure_logging()
logger = get_logger(__name__)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        description=(
            "Scores trustworthy-AI questionnaire responses per indicator and "
            "writes an LLM-assisted assessment report"
        ),
        version="1.0.0",
    )

    # Initialize Sentry if DSN is provided
    if settings.SENTRY_DSN:
        sentry_sdk.init(
            dsn=settings.SENTRY_DSN,
            environment=settings.APP_ENV,
            traces_sample_rate=0.1,
        )
        app.add_middleware(SentryAsgiMiddleware)
        logger.info(
            "Sentry initialized with SentryAsgiMiddleware", environment=settings.APP_ENV
        )
    else:
        logger.info("Sentry not configured (SENTRY_DSN not set)")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ALLOW_ORIGINS or ["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    app.include_router(report_routes.router, prefix="/api/v1")
    app.include_router(response_routes.router, prefix="/api/v1")

    # One read-only prompt configuration for the whole process
    app.state.prompt_provider = PromptConfigProvider(settings.PROMPT_CONFIG_PATH)

    if settings.METRICS_ENABLED:
        Instrumentator(
            should_group_status_codes=False,
            excluded_handlers=["/metrics"],  # Don't monitor the metrics endpoint itself
        ).instrument(app).expose(app)

    @app.on_event("startup")
    async def startup_event():
        """Application startup event"""
        if settings.DB_AUTO_CREATE:
            Base.metadata.create_all(bind=engine)
        config = app.state.prompt_provider.get()
        logger.info(
            "TAI report service starting up",
            app_name=settings.APP_NAME,
            environment=settings.APP_ENV,
            sentry_enabled=bool(settings.SENTRY_DSN),
            llm_model=settings.LLM_MODEL,
            llm_fallback_model=settings.LLM_FALLBACK_MODEL,
            prompt_background=bool(config.background),
        )

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint"""
        return {"status": "ok"}

    return app


app = create_app()
