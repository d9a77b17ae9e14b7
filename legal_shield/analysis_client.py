"""Adapter for the external inference service.

Only masked text is ever handed to a client.  Failures of any kind (API
error, timeout, empty or malformed payload) surface as
:class:`ExternalServiceError`; retries are left to the caller.
"""

from __future__ import annotations

import logging
from typing import Protocol

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from legal_shield.config import DEFAULT_MODEL, GEMINI_OPENAI_BASE_URL, Settings
from legal_shield.errors import ExternalServiceError
from legal_shield.models import AnalysisResult
from legal_shield.prompts import render_messages

logger = logging.getLogger(__name__)


class AnalysisClient(Protocol):
    async def analyze(self, masked_text: str) -> AnalysisResult:
        """Turn masked contract text into a (still masked) risk report."""
        ...

    def get_model_info(self) -> dict[str, str | float]:
        """Provider and model details, safe to expose on a health check."""
        ...


def parse_analysis(raw: str | None) -> AnalysisResult:
    """Validate the service's JSON payload against :class:`AnalysisResult`."""
    if not raw or not raw.strip():
        raise ExternalServiceError("Analysis service returned an empty response")
    try:
        return AnalysisResult.model_validate_json(raw)
    except ValidationError as exc:
        raise ExternalServiceError(
            f"Analysis response did not match the expected schema "
            f"({exc.error_count()} error(s))"
        ) from exc


class GeminiAnalysisClient:
    """Gemini via its OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = DEFAULT_MODEL,
        base_url: str = GEMINI_OPENAI_BASE_URL,
        temperature: float = 0.1,
        timeout: float = 120.0,
    ) -> None:
        self.model = model
        self.base_url = base_url
        self.temperature = temperature
        self.timeout = timeout
        self._api_key = api_key.strip() if api_key else None
        self._client: AsyncOpenAI | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> GeminiAnalysisClient:
        return cls(
            api_key=settings.api_key,
            model=settings.model,
            base_url=settings.base_url,
            timeout=settings.timeout,
        )

    def _get_client(self) -> AsyncOpenAI:
        if not self._api_key:
            raise ExternalServiceError("Analysis service API key not configured")
        if self._client is None:
            self._client = AsyncOpenAI(
                base_url=self.base_url,
                api_key=self._api_key,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def analyze(self, masked_text: str) -> AnalysisResult:
        client = self._get_client()
        try:
            completion = await client.chat.completions.create(
                model=self.model,
                messages=render_messages(masked_text),
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
        except OpenAIError as exc:
            logger.error("Analysis service error: %s", type(exc).__name__)
            raise ExternalServiceError(
                "An error occurred during contract analysis. Please try again."
            ) from exc

        if not completion.choices:
            raise ExternalServiceError("Analysis service returned no choices")
        return parse_analysis(completion.choices[0].message.content)

    def get_model_info(self) -> dict[str, str | float]:
        return {
            "provider": "gemini",
            "model": self.model,
            "temperature": self.temperature,
            "base_url": self.base_url,
        }
