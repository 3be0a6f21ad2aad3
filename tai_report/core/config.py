# tai_report/core/config.py
from __future__ import annotations

from pathlib import Path
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

DEFAULT_PROMPT_CONFIG_PATH = Path(__file__).resolve().parent / "prompt.json"


class Settings(BaseSettings):
    """
    Application settings, loaded from environment variables and/or .env file.
    """

    # Environment settings
    APP_NAME: str = "Trustworthy AI Assessment Reports"
    APP_ENV: str = "development"

    CORS_ALLOW_ORIGINS: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Comma-delimited list of allowed origins",
    )

    # Database settings
    DATABASE_URL: Optional[str] = None
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "password"
    POSTGRES_DB: str = "tai_report"
    POSTGRES_SERVER: Optional[str] = None
    POSTGRES_PORT: int = 5432
    DB_AUTO_CREATE: bool = True

    # LLM completion endpoint (OpenRouter-compatible chat completions)
    LLM_API_KEY: str = Field(default="", repr=False)
    LLM_BASE_URL: str = "https://openrouter.ai/api/v1/chat/completions"
    LLM_PROVIDER: str = "openrouter"
    LLM_MODEL: str = "openai/gpt-4.1"
    LLM_FALLBACK_MODEL: str = "google/gemini-2.0-pro"
    LLM_TIMEOUT_SECONDS: float = Field(default=100.0, ge=1.0, le=600.0)
    LLM_PRIMARY_ATTEMPTS: int = Field(default=2, ge=1, le=2)
    LLM_RETRY_DELAY_SECONDS: float = Field(default=1.2, ge=0.0)
    LLM_HTTP_REFERER: Optional[str] = None
    LLM_APP_TITLE: str = "TAI Assessment"

    # Narrative prompt configuration
    PROMPT_CONFIG_PATH: Path = DEFAULT_PROMPT_CONFIG_PATH
    NARRATIVE_LANGUAGE: str = "English"

    # Observability settings
    SENTRY_DSN: Optional[str] = None
    LOG_LEVEL: str = "INFO"
    METRICS_ENABLED: bool = True

    @property
    def database_url(self) -> str:
        """Resolve the database URL from the override or individual components."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if self.POSTGRES_SERVER:
            return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        return "sqlite:///./tai_report.db"

    @property
    def is_development(self) -> bool:
        return self.APP_ENV.lower() in ("development", "dev", "local")

    @field_validator("CORS_ALLOW_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        """Allow comma-separated strings for origins env var."""
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


settings = Settings()
