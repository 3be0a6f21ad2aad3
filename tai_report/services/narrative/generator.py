"""
Narrative generation with bounded retries and a model fallback.

Attempts follow a fixed plan: one or two calls to the primary model, then one
call to the fallback model, with a fixed delay before every attempt after the
first. When the whole plan fails a deterministic narrative is built locally,
so callers always receive text.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from tai_report.core.prompt_config import PromptConfigProvider
from tai_report.services.metrics import (
    LLM_CALLS_TOTAL,
    LLM_FAILURES_TOTAL,
    LLM_FALLBACK_SWITCHES_TOTAL,
)
from tai_report.services.exceptions import UpstreamUnavailableError
from tai_report.services.narrative.client import CompletionClient, CompletionResult
from tai_report.services.narrative.prompts import (
    NarrativePromptBuilder,
    format_percent,
    rank_indicators,
)
from tai_report.services.scoring.indicators import display_name
from tai_report.utils.logger import get_logger

logger = get_logger(__name__)

LOCAL_PROVIDER = "local"


class AttemptStage(str, Enum):
    PRIMARY_1 = "primary_1"
    PRIMARY_2 = "primary_2"
    FALLBACK = "fallback"


PRIMARY_STAGES = (AttemptStage.PRIMARY_1, AttemptStage.PRIMARY_2)


@dataclass(frozen=True, slots=True)
class Attempt:
    stage: AttemptStage
    model: str


def attempt_plan(
    primary_model: str,
    fallback_model: Optional[str],
    primary_attempts: int = 2,
) -> List[Attempt]:
    """
    Ordered attempts for one narrative.

    ``primary_attempts`` is clamped to 1..2. The fallback stage is dropped when
    no fallback model is configured.
    """
    count = max(1, min(primary_attempts, len(PRIMARY_STAGES)))
    plan = [Attempt(stage, primary_model) for stage in PRIMARY_STAGES[:count]]
    if fallback_model:
        plan.append(Attempt(AttemptStage.FALLBACK, fallback_model))
    return plan


@dataclass(frozen=True, slots=True)
class Narrative:
    text: str
    provider: str
    model: Optional[str]
    degraded: bool
    attempts: int
    stage: Optional[AttemptStage] = None
    last_error: Optional[str] = None

    def to_meta(self) -> Dict[str, Any]:
        """Metadata persisted with the report."""
        return {
            "provider": self.provider,
            "model": self.model,
            "degraded": self.degraded,
            "attempts": self.attempts,
            "stage": self.stage.value if self.stage else None,
            "last_error": self.last_error,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        }


def build_fallback_narrative(scores: Mapping[str, float], overall_score: float) -> str:
    """Deterministic narrative used when no model produced one."""
    ranked, not_applicable = rank_indicators(scores)
    lines = [
        "Automated analysis is currently unavailable; this summary was generated from the scores alone.",
        "",
        f"Overall score: {format_percent(overall_score)}.",
    ]
    if ranked:
        best, worst = ranked[0], ranked[-1]
        lines.append(f"Best indicator: {best.name} ({best.percent}, {best.tier.value}).")
        lines.append(f"Worst indicator: {worst.name} ({worst.percent}, {worst.tier.value}).")
    else:
        lines.append("No indicator received an applicable score.")
    if not_applicable:
        names = ", ".join(display_name(key) for key in not_applicable)
        lines.append(f"Not applicable: {names}.")
    lines.append("")
    lines.append("Regenerate the report later to obtain the full analysis and recommendations.")
    return "\n".join(lines)


class NarrativeGenerator:
    """Produces the report's narrative text. Never raises for upstream failures."""

    def __init__(
        self,
        client: CompletionClient,
        prompt_provider: PromptConfigProvider,
        *,
        primary_model: str,
        fallback_model: Optional[str],
        provider_label: str = "openrouter",
        timeout_seconds: float = 100.0,
        primary_attempts: int = 2,
        retry_delay_seconds: float = 1.2,
        language: str = "English",
        prompt_builder: Optional[NarrativePromptBuilder] = None,
    ) -> None:
        self._client = client
        self._prompt_provider = prompt_provider
        self._prompt_builder = prompt_builder or NarrativePromptBuilder()
        self.provider_label = provider_label
        self.timeout_seconds = timeout_seconds
        self.retry_delay_seconds = retry_delay_seconds
        self.language = language
        self.plan = attempt_plan(primary_model, fallback_model, primary_attempts)

    @classmethod
    def from_settings(
        cls,
        client: CompletionClient,
        prompt_provider: PromptConfigProvider,
        settings: Any,
    ) -> "NarrativeGenerator":
        return cls(
            client,
            prompt_provider,
            primary_model=settings.LLM_MODEL,
            fallback_model=settings.LLM_FALLBACK_MODEL,
            provider_label=settings.LLM_PROVIDER,
            timeout_seconds=float(settings.LLM_TIMEOUT_SECONDS),
            primary_attempts=settings.LLM_PRIMARY_ATTEMPTS,
            retry_delay_seconds=settings.LLM_RETRY_DELAY_SECONDS,
            language=settings.NARRATIVE_LANGUAGE,
        )

    async def generate(
        self,
        scores: Mapping[str, float],
        overall_score: float,
        *,
        response_id: Optional[int] = None,
    ) -> Narrative:
        """
        Generate narrative text for aggregated indicator scores.

        Args:
            scores: Indicator scores in [0, 1] or -1
            overall_score: Weighted overall score in [0, 1]
            response_id: Only used as log context

        Returns:
            Narrative from the first successful attempt, or a degraded local one
        """
        config = self._prompt_provider.get()
        system_prompt = self._prompt_builder.build_system_prompt(config)
        user_prompt = self._prompt_builder.build_user_prompt(
            scores, overall_score, config, language=self.language
        )

        last_error: Optional[str] = None
        for index, attempt in enumerate(self.plan):
            if index > 0:
                await asyncio.sleep(self.retry_delay_seconds)
            if attempt.stage is AttemptStage.FALLBACK:
                LLM_FALLBACK_SWITCHES_TOTAL.inc()
                logger.warning(
                    "Switching to fallback model",
                    response_id=response_id,
                    model=attempt.model,
                    previous_error=last_error,
                )

            LLM_CALLS_TOTAL.labels(model=attempt.model).inc()
            try:
                result = await self._client.complete(
                    system_prompt, user_prompt, attempt.model, self.timeout_seconds
                )
            except Exception as exc:
                # Any client failure counts as a failed attempt
                result = CompletionResult(
                    model=attempt.model,
                    error=UpstreamUnavailableError(
                        f"Completion client raised {type(exc).__name__}: {exc}",
                        model=attempt.model,
                        technical_details={"error_type": type(exc).__name__},
                    ),
                )
            if result.ok:
                logger.info(
                    "Narrative generated",
                    response_id=response_id,
                    model=attempt.model,
                    stage=attempt.stage.value,
                    attempt=index + 1,
                    duration=round(result.duration, 3),
                )
                return Narrative(
                    text=result.text or "",
                    provider=self.provider_label,
                    model=attempt.model,
                    degraded=False,
                    attempts=index + 1,
                    stage=attempt.stage,
                    last_error=last_error,
                )

            error_type = type(result.error).__name__ if result.error else "EmptyCompletion"
            last_error = result.error.message if result.error else "empty completion"
            LLM_FAILURES_TOTAL.labels(model=attempt.model, error_type=error_type).inc()
            logger.warning(
                "LLM attempt failed",
                response_id=response_id,
                model=attempt.model,
                stage=attempt.stage.value,
                attempt=index + 1,
                error_type=error_type,
                error=last_error,
            )

        logger.error(
            "LLM unavailable, using fallback narrative",
            response_id=response_id,
            attempts=len(self.plan),
            last_error=last_error,
        )
        return Narrative(
            text=build_fallback_narrative(scores, overall_score),
            provider=LOCAL_PROVIDER,
            model=None,
            degraded=True,
            attempts=len(self.plan),
            last_error=last_error,
        )


__all__ = [
    "Attempt",
    "AttemptStage",
    "Narrative",
    "NarrativeGenerator",
    "attempt_plan",
    "build_fallback_narrative",
]
