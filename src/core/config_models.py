"""Immutable configuration models for dependency injection."""

import math
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from src.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Circuit breaker configuration. Durations are in seconds."""
    failure_threshold: int = 5
    reset_timeout: float = 60.0
    monitoring_period: float = 300.0
    success_threshold: int = 3
    half_open_max_calls: Optional[int] = None

    def __post_init__(self):
        _require_int("failure_threshold", self.failure_threshold, minimum=1)
        _require_int("success_threshold", self.success_threshold, minimum=1)
        if self.half_open_max_calls is not None:
            _require_int("half_open_max_calls", self.half_open_max_calls, minimum=1)

        _require_number("reset_timeout", self.reset_timeout)
        if self.reset_timeout < 0:
            raise ConfigurationError("reset_timeout must not be negative")
        _require_number("monitoring_period", self.monitoring_period)
        if self.monitoring_period <= 0:
            raise ConfigurationError("monitoring_period must be positive")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CircuitBreakerConfig":
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigurationError(
                f"Unknown circuit breaker option(s): {', '.join(sorted(unknown))}"
            )
        return cls(**data)

    def merge(self, overrides: Mapping[str, Any]) -> "CircuitBreakerConfig":
        """Return a copy with the given fields replaced."""
        return CircuitBreakerConfig.from_dict({**self.to_dict(), **overrides})

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def _require_int(name: str, value: Any, minimum: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}")


def _require_number(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise ConfigurationError(f"{name} must be finite, got {value!r}")


@dataclass(frozen=True)
class ResilienceConfig:
    """Default and per-dependency circuit breaker configuration."""
    default: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    overrides: Mapping[str, CircuitBreakerConfig] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def for_dependency(self, name: str) -> CircuitBreakerConfig:
        return self.overrides.get(name, self.default)


@dataclass(frozen=True)
class TelemetryConfig:
    """Breaker event sink configuration."""
    sink_type: str = "memory"
    buffer_size: int = 500


@dataclass(frozen=True)
class AppConfig:
    """Complete application configuration."""
    resilience: ResilienceConfig
    telemetry: TelemetryConfig
    environment: str
    debug: bool
    app_name: str = "Resilience Gateway"


def load_config() -> AppConfig:
    """Load configuration from settings."""
    from src.core.config import settings

    default = CircuitBreakerConfig(
        failure_threshold=settings.CIRCUIT_BREAKER_FAILURE_THRESHOLD,
        reset_timeout=settings.CIRCUIT_BREAKER_RESET_TIMEOUT,
        monitoring_period=settings.CIRCUIT_BREAKER_MONITORING_PERIOD,
        success_threshold=settings.CIRCUIT_BREAKER_SUCCESS_THRESHOLD,
        half_open_max_calls=settings.CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS,
    )
    overrides = {
        name: default.merge(values)
        for name, values in settings.CIRCUIT_BREAKER_OVERRIDES.items()
    }

    return AppConfig(
        resilience=ResilienceConfig(
            default=default,
            overrides=MappingProxyType(overrides),
        ),
        telemetry=TelemetryConfig(
            sink_type=settings.EVENT_SINK_TYPE,
            buffer_size=settings.EVENT_BUFFER_SIZE,
        ),
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
        app_name=settings.APP_NAME,
    )


# Default config instance
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get or create the application configuration."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[AppConfig]) -> None:
    """Set configuration (useful for testing)."""
    global _config
    _config = config
