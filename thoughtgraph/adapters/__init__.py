"""
Adapters - External service integrations.

All external API calls are wrapped here to isolate domains from third-party changes.
"""

from .llm import InferenceTaskQueue, LLMResponse, LLMService
from .search import SonarSearchClient

__all__ = [
    # Inference (Gemini + Ollama fallback)
    "InferenceTaskQueue",
    "LLMResponse",
    "LLMService",
    # Evidence search
    "SonarSearchClient",
]
