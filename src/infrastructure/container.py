"""Dependency injection container."""

import time
from typing import Callable, Optional

from src.core.config_models import AppConfig, TelemetryConfig, get_config
from src.core.logging import get_logger
from src.domain.interfaces.event_sink import EventSink
from src.infrastructure.resilience import CircuitBreaker, CircuitBreakerRegistry
from src.infrastructure.telemetry import (
    CompositeEventSink,
    InMemoryEventSink,
    LoggingEventSink,
)

logger = get_logger(__name__)


def build_event_sink(telemetry: TelemetryConfig) -> EventSink:
    """Create the event sink described by the telemetry config."""
    if telemetry.sink_type == "logging":
        return LoggingEventSink()
    if telemetry.sink_type == "memory":
        return InMemoryEventSink(max_events=telemetry.buffer_size)
    return CompositeEventSink([
        LoggingEventSink(),
        InMemoryEventSink(max_events=telemetry.buffer_size),
    ])


class Container:
    """Owns the process-wide breaker registry and its collaborators.

    Build one at startup and hand it to whatever needs breakers; tests build
    their own with ``Container(config=..., event_sink=..., clock=...)``.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        event_sink: Optional[EventSink] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self._config = config or get_config()
        self._event_sink = event_sink or build_event_sink(self._config.telemetry)
        self._registry = CircuitBreakerRegistry(
            default_config=self._config.resilience.default,
            event_sink=self._event_sink,
            clock=clock or time.time,
        )
        logger.debug(
            "container_initialized",
            sink=type(self._event_sink).__name__,
            overrides=sorted(self._config.resilience.overrides),
        )

    @property
    def config(self) -> AppConfig:
        return self._config

    @property
    def event_sink(self) -> EventSink:
        return self._event_sink

    @property
    def breaker_registry(self) -> CircuitBreakerRegistry:
        return self._registry

    @property
    def event_buffer(self) -> Optional[InMemoryEventSink]:
        """The in-memory sink, when one is configured."""
        if isinstance(self._event_sink, InMemoryEventSink):
            return self._event_sink
        if isinstance(self._event_sink, CompositeEventSink):
            return self._event_sink.find(InMemoryEventSink)
        return None

    def breaker(self, name: str) -> CircuitBreaker:
        """Get the breaker for a dependency, using its configured settings."""
        return self._registry.get_or_create(
            name, self._config.resilience.for_dependency(name)
        )
