"""
LLM Service - Text generation for the reasoning stages.

Routes between:
- Gemini REST API (API key from settings)
- Ollama (local fallback when enabled)

Architecture:
    Gemini key present → Gemini, transient failures retried with backoff
    Gemini fails after retries → Ollama fallback (when enabled)
    No Gemini key → Ollama (when enabled)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from thoughtgraph.config.errors import ProviderError, ProviderTimeout
from thoughtgraph.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

__all__ = ["LLMResponse", "LLMService"]


@dataclass
class LLMResponse:
    """Response from LLM generation."""

    text: str
    model: str
    provider: str  # "gemini" or "ollama"
    tokens_used: int | None = None


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, ProviderError) and error.retryable


class LLMService:
    """
    Gemini text generation with an optional local Ollama fallback.

    Example:
        >>> llm = LLMService()
        >>> response = await llm.generate("List three confounders of smoking studies")
        >>> response.provider
        'gemini'
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        max_attempts: int = 3,
        retry_wait: float = 2.0,
    ) -> None:
        """
        Initialize LLM service.

        Args:
            settings: Provider settings, defaults to environment settings
            client: Shared HTTP client (created per call when omitted)
            max_attempts: Gemini attempts before falling back
            retry_wait: Base of the exponential backoff in seconds
        """
        self.settings = settings or get_settings()
        self.model = self.settings.gemini_model
        self.max_attempts = max_attempts
        self.retry_wait = retry_wait
        self._client = client

    def is_configured(self) -> bool:
        return bool(self.settings.gemini_api_key) or self.settings.ollama_enabled

    async def generate(self, prompt: str, temperature: float | None = None) -> LLMResponse:
        """
        Generate text.

        Args:
            prompt: Prompt text
            temperature: Override default temperature

        Returns:
            LLMResponse with generated text

        Raises:
            ProviderError: No provider configured, or every provider failed
            ProviderTimeout: The last provider tried timed out
        """
        if not self.settings.gemini_api_key:
            if not self.settings.ollama_enabled:
                raise ProviderError("No inference provider configured")
            return await self._generate_ollama(prompt, temperature)

        try:
            return await self._generate_gemini_with_retry(prompt, temperature)
        except ProviderError as e:
            if not self.settings.ollama_enabled:
                raise
            logger.warning("Gemini failed, falling back to Ollama: %s", e)
            return await self._generate_ollama(prompt, temperature)

    async def generate_text(self, prompt: str) -> str:
        response = await self.generate(prompt)
        return response.text

    async def _generate_gemini_with_retry(self, prompt: str, temperature: float | None) -> LLMResponse:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.retry_wait, min=self.retry_wait, max=30),
            reraise=True,
        ):
            with attempt:
                return await self._generate_gemini(prompt, temperature)
        raise ProviderError("Gemini retries exhausted")

    async def _post(self, url: str, body: dict, timeout: float, headers: dict | None = None) -> httpx.Response:
        if self._client is not None:
            return await self._client.post(url, json=body, headers=headers, timeout=timeout)
        async with httpx.AsyncClient() as client:
            return await client.post(url, json=body, headers=headers, timeout=timeout)

    async def _generate_gemini(self, prompt: str, temperature: float | None) -> LLMResponse:
        """Generate using the Gemini REST API."""
        url = f"{self.settings.gemini_url}/models/{self.model}:generateContent"
        body = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": temperature if temperature is not None else self.settings.gemini_temperature,
            },
        }

        try:
            response = await self._post(
                url,
                body,
                timeout=60.0,
                headers={"x-goog-api-key": self.settings.gemini_api_key},
            )
        except httpx.TimeoutException as e:
            raise ProviderTimeout("Gemini request timed out", {"provider": "gemini"}) from e
        except httpx.TransportError as e:
            raise ProviderError(f"Gemini unreachable: {e}", {"provider": "gemini"}) from e

        if response.status_code != 200:
            logger.error("Gemini error: %s %s", response.status_code, response.text[:200])
            raise ProviderError.from_status("gemini", response.status_code, response.text)

        data = response.json()

        text = ""
        candidates = data.get("candidates", [])
        if candidates:
            parts = candidates[0].get("content", {}).get("parts", [])
            text = "".join(part.get("text", "") for part in parts)

        return LLMResponse(
            text=text,
            model=self.model,
            provider="gemini",
            tokens_used=data.get("usageMetadata", {}).get("totalTokenCount"),
        )

    async def _generate_ollama(self, prompt: str, temperature: float | None) -> LLMResponse:
        """Generate using local Ollama."""
        url = f"{self.settings.ollama_url}/api/generate"
        body = {
            "model": self.settings.ollama_model,
            "prompt": prompt,
            "stream": False,
            "options": {
                "temperature": temperature if temperature is not None else self.settings.gemini_temperature,
            },
        }

        try:
            response = await self._post(url, body, timeout=120.0)
        except httpx.TimeoutException as e:
            raise ProviderTimeout("Ollama request timed out", {"provider": "ollama"}) from e
        except httpx.ConnectError as e:
            raise ProviderError(
                "Ollama not running. Start with: ollama serve",
                {"provider": "ollama", "hint": "Run 'ollama serve' in a terminal"},
            ) from e
        except httpx.TransportError as e:
            raise ProviderError(f"Ollama unreachable: {e}", {"provider": "ollama"}) from e

        if response.status_code != 200:
            raise ProviderError.from_status("ollama", response.status_code, response.text)

        data = response.json()
        return LLMResponse(
            text=data.get("response", ""),
            model=self.settings.ollama_model,
            provider="ollama",
            tokens_used=data.get("eval_count"),
        )
