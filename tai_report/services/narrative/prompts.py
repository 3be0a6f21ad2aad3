"""Prompt construction for the narrative generator."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Tuple

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from tai_report.core.prompt_config import PromptConfig
from tai_report.services.scoring.classifier import Tier, classify_score
from tai_report.services.scoring.indicators import display_name
from tai_report.services.scoring.weighting import is_valid_score

PROMPT_NAME = "narrative_prompt.j2"
HIGHLIGHT_COUNT = 3


@dataclass(frozen=True, slots=True)
class RankedIndicator:
    key: str
    name: str
    score: float
    tier: Tier

    @property
    def percent(self) -> str:
        return format_percent(self.score)


def format_percent(score: float) -> str:
    return f"{score * 100:.1f}%"


def rank_indicators(scores: Mapping[str, float]) -> Tuple[List[RankedIndicator], List[str]]:
    """
    Split indicator scores into a ranked list and the not-applicable keys.

    The ranked list is sorted by score, highest first; equal scores keep their
    input order.
    """
    ranked: List[RankedIndicator] = []
    not_applicable: List[str] = []
    for key, score in scores.items():
        if not is_valid_score(score):
            not_applicable.append(key)
            continue
        ranked.append(
            RankedIndicator(
                key=key,
                name=display_name(key),
                score=float(score),
                tier=classify_score(float(score), scale=1.0),
            )
        )
    ranked.sort(key=lambda item: item.score, reverse=True)
    return ranked, not_applicable


class NarrativePromptBuilder:
    """Renders the system and user messages sent to the completion endpoint."""

    def __init__(self, template_dir: Optional[Path] = None) -> None:
        prompts_dir = template_dir or Path(__file__).resolve().parent / "templates"
        self._env = Environment(
            loader=FileSystemLoader(str(prompts_dir)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            undefined=StrictUndefined,
        )
        self._template = self._env.get_template(PROMPT_NAME)

    def build_system_prompt(self, config: PromptConfig) -> str:
        return config.system_prompt

    def build_user_prompt(
        self,
        scores: Mapping[str, float],
        overall_score: float,
        config: PromptConfig,
        *,
        language: str = "English",
    ) -> str:
        ranked, not_applicable = rank_indicators(scores)
        guidance = [
            {"name": item.name, "text": str(config.indicator_prompts[item.key])}
            for item in ranked
            if config.indicator_prompts.get(item.key)
        ]
        return self._template.render(
            background=config.background.strip(),
            overall_percent=format_percent(overall_score),
            ranked=[
                {"name": item.name, "percent": item.percent, "tier": item.tier.value}
                for item in ranked
            ],
            not_applicable=[display_name(key) for key in not_applicable],
            strengths=[item.name for item in ranked[:HIGHLIGHT_COUNT]],
            risks=[item.name for item in reversed(ranked[-HIGHLIGHT_COUNT:])],
            guidance=guidance,
            language=language,
        ).strip()


__all__ = [
    "NarrativePromptBuilder",
    "RankedIndicator",
    "format_percent",
    "rank_indicators",
]
