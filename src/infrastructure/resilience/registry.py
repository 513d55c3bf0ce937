"""Circuit Breaker Registry for managing multiple breakers."""

import threading
import time
from typing import Callable, Dict, List, Optional

from src.core.config_models import CircuitBreakerConfig
from src.core.logging import get_logger
from src.domain.interfaces.event_sink import EventSink
from src.infrastructure.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerStatus,
)

logger = get_logger(__name__)


class CircuitBreakerRegistry:
    """Registry handing out one circuit breaker per dependency name.

    The first registration of a name wins: later ``get_or_create`` calls
    return the existing breaker and ignore any config they pass. Construct one
    registry per process and pass it to whatever needs breakers.
    """

    def __init__(
        self,
        default_config: Optional[CircuitBreakerConfig] = None,
        event_sink: Optional[EventSink] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.default_config = default_config or CircuitBreakerConfig()
        self.event_sink = event_sink
        self._clock = clock
        self._breakers: Dict[str, CircuitBreaker] = {}
        self._lock = threading.Lock()

    def get_or_create(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
    ) -> CircuitBreaker:
        with self._lock:
            breaker = self._breakers.get(name)
            if breaker is not None:
                if config is not None and config != breaker.config:
                    logger.debug(
                        "circuit_breaker_config_ignored",
                        name=name,
                        reason="already_registered",
                    )
                return breaker

            breaker = CircuitBreaker(
                name=name,
                config=config or self.default_config,
                event_sink=self.event_sink,
                clock=self._clock,
            )
            self._breakers[name] = breaker

        logger.info("circuit_breaker_registered", name=name)
        return breaker

    def get(self, name: str) -> Optional[CircuitBreaker]:
        with self._lock:
            return self._breakers.get(name)

    @property
    def names(self) -> List[str]:
        with self._lock:
            return sorted(self._breakers)

    def get_all_statuses(self) -> Dict[str, CircuitBreakerStatus]:
        return {breaker.name: breaker.get_status() for breaker in self._snapshot()}

    def reset(self, name: str) -> bool:
        breaker = self.get(name)
        if breaker is None:
            return False
        breaker.reset()
        return True

    def reset_all(self) -> None:
        breakers = self._snapshot()
        for breaker in breakers:
            breaker.reset()
        logger.info("circuit_breakers_reset_all", count=len(breakers))

    def _snapshot(self) -> List[CircuitBreaker]:
        with self._lock:
            return list(self._breakers.values())

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._breakers

    def __len__(self) -> int:
        with self._lock:
            return len(self._breakers)
