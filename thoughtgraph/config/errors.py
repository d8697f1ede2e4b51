"""
Error Taxonomy - Consistent error codes across the engine.

Usage:
    from thoughtgraph.config.errors import ErrorCode, ThoughtGraphError

    raise ThoughtGraphError(ErrorCode.STAGE_FAILED, "Stage 4 failed")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable error responses."""

    # Validation errors (fatal, raised before any work begins)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_STAGE = "INVALID_STAGE"
    EMPTY_INPUT = "EMPTY_INPUT"
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"

    # Provider errors
    PROVIDER_UNAVAILABLE = "PROVIDER_UNAVAILABLE"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    PROVIDER_RATE_LIMITED = "PROVIDER_RATE_LIMITED"
    PROVIDER_AUTH_FAILED = "PROVIDER_AUTH_FAILED"

    # Response errors (recovered locally)
    MALFORMED_RESPONSE = "MALFORMED_RESPONSE"

    # Stage errors
    STAGE_FAILED = "STAGE_FAILED"
    SESSION_CANCELLED = "SESSION_CANCELLED"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"
    NOT_FOUND = "NOT_FOUND"


class ThoughtGraphError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to API-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


class ValidationError(ThoughtGraphError):
    """Bad stage number, empty required input or missing credentials."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.VALIDATION_ERROR,
    ) -> None:
        super().__init__(code, message, details)


class ProviderError(ThoughtGraphError):
    """Inference or evidence provider failed."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ErrorCode = ErrorCode.PROVIDER_UNAVAILABLE,
    ) -> None:
        super().__init__(code, message, details)

    @classmethod
    def from_status(cls, provider: str, status_code: int, body: str = "") -> ProviderError:
        """Map an HTTP error status to a provider error."""
        if status_code in (401, 403):
            code = ErrorCode.PROVIDER_AUTH_FAILED
        elif status_code == 429:
            code = ErrorCode.PROVIDER_RATE_LIMITED
        else:
            code = ErrorCode.PROVIDER_UNAVAILABLE
        return cls(
            f"{provider} returned HTTP {status_code}",
            {"provider": provider, "status_code": status_code, "body": body[:500]},
            code=code,
        )

    @property
    def retryable(self) -> bool:
        """Rate limits and server-side failures are worth retrying."""
        if self.code == ErrorCode.PROVIDER_RATE_LIMITED:
            return True
        return self.code == ErrorCode.PROVIDER_UNAVAILABLE and self.details.get("status_code", 500) >= 500


class ProviderTimeout(ProviderError):
    """Provider call exceeded its timeout."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details, code=ErrorCode.PROVIDER_TIMEOUT)


class MalformedResponse(ThoughtGraphError):
    """Provider response could not be parsed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.MALFORMED_RESPONSE, message, details)


class StageExecutionError(ThoughtGraphError):
    """Unrecovered failure inside a pipeline stage."""

    def __init__(
        self,
        stage_id: int,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.stage_id = stage_id
        super().__init__(
            ErrorCode.STAGE_FAILED,
            f"Stage {stage_id} failed: {message}",
            {"stage_id": stage_id, **(details or {})},
        )


class SessionCancelled(ThoughtGraphError):
    """The session was cancelled; no further stages are issued."""

    def __init__(self, message: str = "Session was cancelled") -> None:
        super().__init__(ErrorCode.SESSION_CANCELLED, message)
