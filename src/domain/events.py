"""Circuit breaker lifecycle events."""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class BreakerEventName(str, Enum):
    OPENED = "circuit_breaker_opened"
    CLOSED = "circuit_breaker_closed"
    FAILURE = "circuit_breaker_failure"
    RESET = "circuit_breaker_reset"


@dataclass(frozen=True)
class BreakerEvent:
    """A single lifecycle event emitted by a circuit breaker."""
    event_name: BreakerEventName
    breaker_name: str
    payload: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_name": self.event_name.value,
            "breaker_name": self.breaker_name,
            "payload": dict(self.payload),
            "timestamp": self.timestamp,
        }
