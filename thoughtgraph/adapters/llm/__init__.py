"""
LLM Adapter - Inference provider for the reasoning engine.

Supports:
- Gemini REST API with retry and backoff
- Ollama for local fallback

Usage:
    from thoughtgraph.adapters.llm import InferenceTaskQueue, LLMService

    queue = InferenceTaskQueue(LLMService(), max_concurrent=4)
    engine = ReasoningEngine(inference=queue)
"""

from .service import LLMResponse, LLMService
from .tasks import InferenceTaskQueue, TextGenerator

__all__ = ["InferenceTaskQueue", "LLMResponse", "LLMService", "TextGenerator"]
