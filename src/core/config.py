from typing import Any, Dict, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable parsing."""

    # API Settings
    APP_NAME: str = "Resilience Gateway"
    API_VERSION: str = "v1"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"

    # Circuit breaker defaults (durations in seconds)
    CIRCUIT_BREAKER_FAILURE_THRESHOLD: int = 5
    CIRCUIT_BREAKER_RESET_TIMEOUT: float = 60.0
    CIRCUIT_BREAKER_MONITORING_PERIOD: float = 300.0
    CIRCUIT_BREAKER_SUCCESS_THRESHOLD: int = 3
    CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS: Optional[int] = None  # None = unrestricted probes

    # Per-dependency overrides, e.g. {"payments": {"failure_threshold": 3}}
    CIRCUIT_BREAKER_OVERRIDES: Dict[str, Dict[str, Any]] = {}

    # Telemetry
    EVENT_SINK_TYPE: str = "memory"  # Options: logging, memory, both
    EVENT_BUFFER_SIZE: int = 500

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("EVENT_SINK_TYPE")
    @classmethod
    def validate_event_sink_type(cls, v):
        v = v.lower()
        if v not in ("logging", "memory", "both"):
            raise ValueError("EVENT_SINK_TYPE must be one of: logging, memory, both")
        return v

    @field_validator("EVENT_BUFFER_SIZE")
    @classmethod
    def validate_event_buffer_size(cls, v):
        if v < 1:
            raise ValueError("EVENT_BUFFER_SIZE must be positive")
        return v


settings = Settings()
