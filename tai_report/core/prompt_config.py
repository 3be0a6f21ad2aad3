"""Prompt configuration for narrative generation.

The configuration file is read once per process. A :class:`PromptConfigProvider`
is created by the application and handed to the narrative generator, which only
ever reads from it.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from tai_report.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI."


class PromptConfig(BaseModel):
    """Static persona and background text used to build LLM prompts."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    common_system_prompt: str = DEFAULT_SYSTEM_PROMPT
    background: str = ""
    indicator_prompts: Dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("indicator_prompts", "TAI_prompt"),
    )

    @property
    def system_prompt(self) -> str:
        return self.common_system_prompt.strip() or DEFAULT_SYSTEM_PROMPT


def load_prompt_config(path: Path) -> PromptConfig:
    """Parse a prompt configuration file, falling back to defaults on any problem."""
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(
            "Prompt configuration unreadable, using defaults",
            path=str(path),
            error=str(exc),
        )
        return PromptConfig()

    if not isinstance(raw, dict):
        logger.warning(
            "Prompt configuration is not a JSON object, using defaults",
            path=str(path),
        )
        return PromptConfig()

    try:
        return PromptConfig.model_validate(raw)
    except ValidationError as exc:
        logger.warning(
            "Prompt configuration invalid, using defaults",
            path=str(path),
            error_count=exc.error_count(),
        )
        return PromptConfig()


class PromptConfigProvider:
    """Lazily loads a :class:`PromptConfig` once and serves it read-only."""

    def __init__(self, path: Path, *, preloaded: Optional[PromptConfig] = None) -> None:
        self._path = Path(path)
        self._config: Optional[PromptConfig] = preloaded
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: PromptConfig) -> "PromptConfigProvider":
        """Build a provider around an already constructed configuration."""
        return cls(Path("<memory>"), preloaded=config)

    @property
    def loaded(self) -> bool:
        return self._config is not None

    def get(self) -> PromptConfig:
        config = self._config
        if config is not None:
            return config
        with self._lock:
            if self._config is None:
                self._config = load_prompt_config(self._path)
                logger.info("Prompt configuration loaded", path=str(self._path))
            return self._config


__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "PromptConfig",
    "PromptConfigProvider",
    "load_prompt_config",
]
