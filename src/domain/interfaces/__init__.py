"""Domain interfaces."""

from src.domain.interfaces.event_sink import EventSink

__all__ = [
    "EventSink",
]
