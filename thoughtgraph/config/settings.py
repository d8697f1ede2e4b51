"""
Settings - Engine configuration using Pydantic Settings.

Loads from environment variables (prefix ``THOUGHTGRAPH_``) and .env files.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings."""

    # Inference provider (Gemini REST, Ollama fallback)
    gemini_api_key: str = ""
    gemini_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gemini_model: str = "gemini-2.5-pro"
    gemini_temperature: float = 0.7
    ollama_enabled: bool = False
    ollama_url: str = "http://localhost:11434"
    ollama_model: str = "llama3.2"
    inference_max_concurrent: int = 4

    # Evidence search provider (Perplexity Sonar)
    perplexity_api_key: str = ""
    perplexity_url: str = "https://api.perplexity.ai"
    perplexity_model: str = "sonar"

    # Per-call timeouts (milliseconds)
    field_detection_timeout_ms: int = 30_000
    decomposition_timeout_ms: int = 30_000
    hypothesis_timeout_ms: int = 30_000
    evidence_timeout_ms: int = 30_000
    composition_timeout_ms: int = 60_000
    audit_timeout_ms: int = 30_000
    final_report_timeout_ms: int = 120_000

    # Graph thresholds
    prune_confidence_threshold: float = 0.4
    merge_similarity_threshold: float = 0.98
    merge_text_overlap_threshold: float = 0.8
    subgraph_impact_threshold: float = 0.7
    interlayer_similarity_threshold: float = 0.6

    # Stage 4 evidence gathering (1 = strictly sequential)
    evidence_max_in_flight: int = 1

    model_config = SettingsConfigDict(
        env_prefix="THOUGHTGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
