import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class ResilienceError(Exception):
    """Base exception for errors raised by the resilience layer itself."""


class ConfigurationError(ResilienceError, ValueError):
    """Raised when a circuit breaker is constructed with invalid parameters."""


class CircuitOpenError(ResilienceError):
    """Raised when a circuit breaker rejects a call without invoking it."""

    def __init__(
        self,
        breaker_name: str,
        next_attempt: float,
        retry_after: float,
        reason: str = "open",
    ):
        self.breaker_name = breaker_name
        self.next_attempt = next_attempt
        self.retry_after = max(0.0, retry_after)
        self.reason = reason

        if reason == "probe_limit":
            message = (
                f"Circuit breaker '{breaker_name}' is HALF_OPEN and has no free probe slots"
            )
        else:
            next_at = _format_epoch(next_attempt)
            message = f"Circuit breaker '{breaker_name}' is OPEN. Next attempt at {next_at}"
        super().__init__(message)

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds suitable for a Retry-After header."""
        return max(1, math.ceil(self.retry_after))


def _format_epoch(seconds: float) -> str:
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).isoformat()
    except (OverflowError, ValueError, OSError):
        # Outside the range datetime can represent
        return f"{seconds} (epoch seconds)"


class ServiceException(HTTPException):
    """Base exception for HTTP-facing service errors."""

    def __init__(
        self,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail: str = "An error occurred",
        error_code: str = "SERVICE_ERROR",
        metadata: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.metadata = metadata or {}


class ServiceUnavailableError(ServiceException):
    """Raised when a dependency is temporarily unavailable."""

    def __init__(self, detail: str = "Service temporarily unavailable", **kwargs):
        kwargs.setdefault("error_code", "SERVICE_UNAVAILABLE")
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=detail,
            **kwargs,
        )

    @classmethod
    def from_circuit_open(cls, exc: CircuitOpenError) -> "ServiceUnavailableError":
        return cls(
            detail=f"Service '{exc.breaker_name}' is temporarily unavailable",
            error_code="CIRCUIT_OPEN",
            metadata={
                "breaker": exc.breaker_name,
                "reason": exc.reason,
                "retry_after": exc.retry_after_seconds,
            },
            headers={"Retry-After": str(exc.retry_after_seconds)},
        )


class CircuitNotFoundError(ServiceException):
    """Raised when a circuit breaker name is not registered."""

    def __init__(self, name: str, **kwargs):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Circuit breaker '{name}' not found",
            error_code="CIRCUIT_NOT_FOUND",
            **kwargs,
        )
