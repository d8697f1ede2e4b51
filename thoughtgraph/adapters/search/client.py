"""
Sonar Search Client - Evidence search through Perplexity's chat-completions API.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from thoughtgraph.config.errors import ProviderError, ProviderTimeout
from thoughtgraph.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

__all__ = ["SonarSearchClient"]

SYSTEM_PROMPT = (
    "You are a research assistant. Return peer-reviewed evidence with study design, "
    "sample size, effect sizes and p-values where available."
)


class SonarSearchClient:
    """
    Evidence search provider.

    Example:
        >>> client = SonarSearchClient()
        >>> text = await client.search('oncology "aneuploidy drives progression"', {"recency": True})
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 60.0,
    ) -> None:
        self.settings = settings or get_settings()
        self.timeout = timeout
        self._client = client

    def is_configured(self) -> bool:
        return bool(self.settings.perplexity_api_key)

    def _payload(self, query: str, options: dict[str, Any]) -> dict[str, Any]:
        system = SYSTEM_PROMPT
        if options.get("focus"):
            system += f" Focus on {options['focus']}."

        payload: dict[str, Any] = {
            "model": self.settings.perplexity_model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": query},
            ],
        }
        if options.get("recency"):
            payload["search_recency_filter"] = options.get("recency_window", "year")
        if options.get("max_tokens"):
            payload["max_tokens"] = options["max_tokens"]
        return payload

    async def search(self, query: str, options: dict[str, Any] | None = None) -> str:
        """
        Search for evidence.

        Args:
            query: Search query
            options: ``recency`` (bool), ``recency_window``, ``focus``, ``max_tokens``

        Returns:
            Answer text followed by a numbered source list when citations are returned

        Raises:
            ProviderError: Missing key, HTTP error or empty answer
            ProviderTimeout: Request timed out
        """
        if not self.is_configured():
            raise ProviderError("Perplexity API key is not configured", {"provider": "perplexity"})

        url = f"{self.settings.perplexity_url}/chat/completions"
        headers = {"Authorization": f"Bearer {self.settings.perplexity_api_key}"}
        payload = self._payload(query, options or {})

        try:
            if self._client is not None:
                response = await self._client.post(url, json=payload, headers=headers, timeout=self.timeout)
            else:
                async with httpx.AsyncClient() as client:
                    response = await client.post(url, json=payload, headers=headers, timeout=self.timeout)
        except httpx.TimeoutException as e:
            raise ProviderTimeout("Perplexity request timed out", {"provider": "perplexity"}) from e
        except httpx.TransportError as e:
            raise ProviderError(f"Perplexity unreachable: {e}", {"provider": "perplexity"}) from e

        if response.status_code != 200:
            logger.error("Perplexity error: %s %s", response.status_code, response.text[:200])
            raise ProviderError.from_status("perplexity", response.status_code, response.text)

        data = response.json()
        choices = data.get("choices") or []
        text = choices[0].get("message", {}).get("content", "") if choices else ""
        if not text.strip():
            raise ProviderError("Perplexity returned an empty answer", {"provider": "perplexity"})

        citations = data.get("citations") or []
        if citations:
            sources = "\n".join(f"{i}. {url}" for i, url in enumerate(citations, 1))
            text = f"{text}\n\nSources:\n{sources}"

        logger.debug("Search returned %d chars and %d citations", len(text), len(citations))
        return text
