"""Event sink implementations for circuit breaker telemetry."""

import threading
from collections import deque
from typing import Deque, Iterable, List, Optional

from src.core.logging import get_logger
from src.domain.events import BreakerEvent
from src.domain.interfaces.event_sink import EventSink


class LoggingEventSink(EventSink):
    """Writes every event to a structured logger."""

    def __init__(self, logger_name: str = "telemetry.circuit_breaker"):
        self._logger = get_logger(logger_name)

    def emit(self, event: BreakerEvent) -> None:
        self._logger.info(
            event.event_name.value,
            breaker=event.breaker_name,
            event_time=event.timestamp,
            **event.payload,
        )


class InMemoryEventSink(EventSink):
    """Keeps the most recent events in a bounded buffer.

    Backs the monitoring endpoint and doubles as a test double.
    """

    def __init__(self, max_events: int = 500):
        if max_events < 1:
            raise ValueError("max_events must be positive")
        self.max_events = max_events
        self._events: Deque[BreakerEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def emit(self, event: BreakerEvent) -> None:
        with self._lock:
            self._events.append(event)

    def recent(
        self,
        limit: Optional[int] = None,
        breaker_name: Optional[str] = None,
    ) -> List[BreakerEvent]:
        """Return buffered events, oldest first, optionally filtered by breaker."""
        with self._lock:
            events = list(self._events)
        if breaker_name is not None:
            events = [e for e in events if e.breaker_name == breaker_name]
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events

    def clear(self) -> None:
        with self._lock:
            self._events.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


class CompositeEventSink(EventSink):
    """Fans each event out to several sinks.

    A failing sink does not prevent delivery to the others; the first error
    is re-raised once every sink has been tried.
    """

    def __init__(self, sinks: Iterable[EventSink]):
        self.sinks: List[EventSink] = list(sinks)

    def emit(self, event: BreakerEvent) -> None:
        first_error: Optional[Exception] = None
        for sink in self.sinks:
            try:
                sink.emit(event)
            except Exception as e:
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    def find(self, sink_type: type) -> Optional[EventSink]:
        """Return the first child sink of the given type."""
        for sink in self.sinks:
            if isinstance(sink, sink_type):
                return sink
        return None
