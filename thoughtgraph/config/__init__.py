"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    ErrorCode,
    MalformedResponse,
    ProviderError,
    ProviderTimeout,
    SessionCancelled,
    StageExecutionError,
    ThoughtGraphError,
    ValidationError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "ThoughtGraphError",
    "ValidationError",
    "ProviderError",
    "ProviderTimeout",
    "MalformedResponse",
    "SessionCancelled",
    "StageExecutionError",
]
