"""Telemetry sinks for circuit breaker lifecycle events."""

from src.infrastructure.telemetry.sinks import (
    CompositeEventSink,
    InMemoryEventSink,
    LoggingEventSink,
)

__all__ = [
    "CompositeEventSink",
    "InMemoryEventSink",
    "LoggingEventSink",
]
