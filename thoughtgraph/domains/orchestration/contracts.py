"""
Orchestration Contracts - Interfaces for external providers.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .models import InferencePriority


@runtime_checkable
class InferenceProvider(Protocol):
    """Contract for the text inference provider."""

    def is_configured(self) -> bool:
        """Whether credentials for the provider are present."""
        ...

    def submit(
        self,
        prompt: str,
        priority: InferencePriority = InferencePriority.HIGH,
    ) -> str:
        """
        Queue a prompt.

        Args:
            prompt: Prompt text
            priority: Scheduling priority

        Returns:
            Task ID to await
        """
        ...

    async def await_result(self, task_id: str, timeout_ms: int) -> str:
        """
        Wait for a queued prompt to finish.

        Raises:
            ProviderTimeout: When the call exceeds ``timeout_ms``
            ProviderError: When the provider fails
        """
        ...


@runtime_checkable
class EvidenceSearchProvider(Protocol):
    """Contract for evidence search."""

    async def search(self, query: str, options: dict[str, Any] | None = None) -> str:
        """Search for evidence and return it as text."""
        ...
