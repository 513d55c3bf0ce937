"""Event sink interface for dependency injection."""

from abc import ABC, abstractmethod

from src.domain.events import BreakerEvent


class EventSink(ABC):
    """Abstract interface for breaker telemetry sinks.

    A sink receives lifecycle events from circuit breakers. Batching,
    transport and storage are up to the implementation. ``emit`` is called
    synchronously on the caller's path, so implementations must return
    quickly and must not block on I/O.
    """

    @abstractmethod
    def emit(self, event: BreakerEvent) -> None:
        """Deliver a single event.

        Args:
            event: The breaker event to record
        """
        pass
