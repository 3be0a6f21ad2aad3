"""
HTTP client for the chat-completion endpoint (OpenRouter compatible).

``complete`` never raises: every failure is returned as an
:class:`UpstreamUnavailableError` inside the result so the caller can decide
whether to retry or switch models.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from tai_report.services.exceptions import (
    CompletionHTTPError,
    CompletionTimeoutError,
    MalformedCompletionError,
    UpstreamUnavailableError,
)
from tai_report.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CompletionResult:
    """Either ``text`` or ``error`` is set."""

    model: str
    text: Optional[str] = None
    error: Optional[UpstreamUnavailableError] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.text)


class CompletionClient:
    """Single-turn text completion over HTTP with bearer authentication."""

    def __init__(
        self,
        api_key: Optional[str],
        *,
        base_url: str,
        http_referer: Optional[str] = None,
        app_title: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Args:
            api_key: Bearer credential for the endpoint
            base_url: Full URL of the chat-completions endpoint
            http_referer: Optional ``HTTP-Referer`` header value
            app_title: Optional ``X-Title`` header value
            transport: Custom httpx transport, used by tests
        """
        self.api_key = api_key
        self.base_url = base_url
        self.http_referer = http_referer
        self.app_title = app_title
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Any) -> "CompletionClient":
        return cls(
            settings.LLM_API_KEY,
            base_url=settings.LLM_BASE_URL,
            http_referer=settings.LLM_HTTP_REFERER,
            app_title=settings.LLM_APP_TITLE,
        )

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        timeout_seconds: float,
    ) -> CompletionResult:
        start_time = time.monotonic()
        try:
            text = await self._post(system_prompt, user_prompt, model, timeout_seconds)
        except UpstreamUnavailableError as exc:
            return CompletionResult(
                model=model, error=exc, duration=time.monotonic() - start_time
            )
        return CompletionResult(
            model=model, text=text, duration=time.monotonic() - start_time
        )

    async def _post(
        self,
        system_prompt: str,
        user_prompt: str,
        model: str,
        timeout_seconds: float,
    ) -> str:
        payload = self._prepare_request_payload(system_prompt, user_prompt, model)
        try:
            async with httpx.AsyncClient(
                timeout=timeout_seconds,
                headers=self._get_default_headers(),
                transport=self._transport,
            ) as client:
                response = await client.post(self.base_url, json=payload)
        except httpx.TimeoutException as exc:
            raise CompletionTimeoutError(model, timeout_seconds) from exc
        except httpx.HTTPError as exc:
            raise CompletionHTTPError(model, f"Request to completion endpoint failed: {exc}") from exc

        if response.status_code < 200 or response.status_code >= 300:
            raise CompletionHTTPError(
                model,
                f"Completion endpoint returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            raw = response.json()
        except (json.JSONDecodeError, ValueError) as exc:
            raise MalformedCompletionError(
                "Completion response is not valid JSON", model=model
            ) from exc
        return self.extract_text_response(raw, model)

    def extract_text_response(self, raw_response: Any, model: str) -> str:
        """
        Pull the assistant message out of a chat-completions response.

        Raises:
            MalformedCompletionError: If the payload has no non-empty message content
        """
        try:
            content = raw_response["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedCompletionError(
                "Completion response has no message content", model=model
            ) from exc
        if not isinstance(content, str) or not content.strip():
            raise MalformedCompletionError("Completion response is empty", model=model)
        return content.strip()

    def _get_default_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        if self.http_referer:
            headers["HTTP-Referer"] = self.http_referer
        if self.app_title:
            headers["X-Title"] = self.app_title
        return headers

    def _prepare_request_payload(
        self, system_prompt: str, user_prompt: str, model: str
    ) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }


__all__ = ["CompletionClient", "CompletionResult"]
