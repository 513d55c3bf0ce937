"""Circuit Breaker implementation for resilience."""

import inspect
import threading
import time
from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

from src.core.config_models import CircuitBreakerConfig
from src.core.exceptions import CircuitOpenError
from src.core.logging import get_logger
from src.domain.events import BreakerEvent, BreakerEventName
from src.domain.interfaces.event_sink import EventSink

logger = get_logger(__name__)

T = TypeVar('T')

Operation = Callable[..., Union[Awaitable[T], T]]


class CircuitState(Enum):
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing if service recovered


@dataclass
class CircuitBreakerState:
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    success_count: int = 0
    last_failure_time: float = 0.0
    next_attempt: float = 0.0


@dataclass(frozen=True)
class CircuitBreakerStatus:
    """Point-in-time view of a breaker."""
    name: str
    state: CircuitState
    failure_count: int
    success_count: int
    next_attempt: Optional[float]
    is_healthy: bool
    last_failure_time: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
            "success_count": self.success_count,
            "is_healthy": self.is_healthy,
            "last_failure_time": self.last_failure_time,
        }
        if self.next_attempt is not None:
            data["next_attempt"] = self.next_attempt
        return data


@dataclass(frozen=True)
class _Admission:
    probe: bool
    generation: int


class CircuitBreaker:
    """Circuit Breaker for protecting against cascading failures.

    State transitions happen under a lock; the protected operation always runs
    outside it. Open -> half-open is checked lazily when a call arrives, the
    breaker owns no timers or background tasks.

    Failures are counted as a streak while closed. A success clears it, and so
    does a gap longer than ``monitoring_period`` since the previous failure.
    This is not a sliding window: failures spaced just under
    ``monitoring_period`` apart keep accumulating however long the streak
    lasts.
    """

    def __init__(
        self,
        name: str,
        config: Optional[CircuitBreakerConfig] = None,
        event_sink: Optional[EventSink] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self.event_sink = event_sink
        self._clock = clock
        self._state = CircuitBreakerState()
        self._lock = threading.Lock()
        self._opened_at = 0.0
        self._probes_in_flight = 0
        self._half_open_generation = 0

        logger.debug(
            "circuit_breaker_initialized",
            name=self.name,
            **self.config.to_dict(),
        )

    @property
    def state(self) -> CircuitState:
        return self._state.state

    @property
    def is_closed(self) -> bool:
        return self._state.state == CircuitState.CLOSED

    @property
    def is_open(self) -> bool:
        return self._state.state == CircuitState.OPEN

    @property
    def is_half_open(self) -> bool:
        return self._state.state == CircuitState.HALF_OPEN

    async def execute(self, operation: Operation, *args, **kwargs) -> T:
        """Run ``operation`` with circuit breaker protection.

        Raises CircuitOpenError without invoking the operation while the
        circuit is open. Errors raised by the operation propagate unchanged.
        """
        admission = self._admit()

        try:
            result = operation(*args, **kwargs)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self._record_failure(e, admission)
            raise
        except BaseException:
            # Cancellation is not a dependency failure
            self._release_probe(admission)
            raise

        self._record_success(admission)
        return result

    def _admit(self) -> _Admission:
        """Decide whether the call may proceed, applying open -> half-open."""
        with self._lock:
            now = self._clock()
            current = self._state

            if current.state == CircuitState.OPEN:
                if now < current.next_attempt:
                    logger.warning(
                        "circuit_breaker_rejected",
                        name=self.name,
                        state=current.state.value,
                        retry_after=round(current.next_attempt - now, 3),
                    )
                    raise CircuitOpenError(
                        self.name,
                        next_attempt=current.next_attempt,
                        retry_after=current.next_attempt - now,
                    )
                self._transition_to_half_open()

            if current.state == CircuitState.HALF_OPEN:
                limit = self.config.half_open_max_calls
                if limit is not None and self._probes_in_flight >= limit:
                    logger.warning(
                        "circuit_breaker_rejected",
                        name=self.name,
                        state=current.state.value,
                        probes_in_flight=self._probes_in_flight,
                    )
                    raise CircuitOpenError(
                        self.name,
                        next_attempt=current.next_attempt,
                        retry_after=0.0,
                        reason="probe_limit",
                    )
                self._probes_in_flight += 1
                return _Admission(probe=True, generation=self._half_open_generation)

            return _Admission(probe=False, generation=self._half_open_generation)

    def _record_success(self, admission: _Admission) -> None:
        events: List[BreakerEvent] = []
        with self._lock:
            self._release_probe_locked(admission)
            current = self._state
            current.failure_count = 0

            if current.state == CircuitState.HALF_OPEN:
                current.success_count += 1
                if current.success_count >= self.config.success_threshold:
                    events.append(self._transition_to_closed())

        self._emit_all(events)

    def _record_failure(self, error: Exception, admission: _Admission) -> None:
        events: List[BreakerEvent] = []
        with self._lock:
            self._release_probe_locked(admission)
            now = self._clock()
            current = self._state

            # A failure after a quiet gap starts a new streak
            if (
                current.state == CircuitState.CLOSED
                and current.failure_count > 0
                and now - current.last_failure_time > self.config.monitoring_period
            ):
                current.failure_count = 0

            current.failure_count += 1
            current.last_failure_time = now

            logger.warning(
                "circuit_breaker_failure",
                name=self.name,
                state=current.state.value,
                error=str(error),
                error_type=type(error).__name__,
                failure_count=current.failure_count,
            )

            if current.state == CircuitState.HALF_OPEN:
                events.append(self._transition_to_open(now))
            elif (
                current.state == CircuitState.CLOSED
                and current.failure_count >= self.config.failure_threshold
            ):
                events.append(self._transition_to_open(now))

            events.append(self._event(
                BreakerEventName.FAILURE,
                state=current.state.value,
                error_type=type(error).__name__,
            ))

        self._emit_all(events)

    def _release_probe(self, admission: _Admission) -> None:
        with self._lock:
            self._release_probe_locked(admission)

    def _release_probe_locked(self, admission: _Admission) -> None:
        # Probes from an earlier half-open episode no longer hold a slot
        if (
            admission.probe
            and admission.generation == self._half_open_generation
            and self._probes_in_flight > 0
        ):
            self._probes_in_flight -= 1

    def _transition_to_half_open(self) -> None:
        """Transition to half-open state."""
        logger.info(
            "circuit_breaker_half_open",
            name=self.name,
            previous_state=self._state.state.value,
        )
        self._state.state = CircuitState.HALF_OPEN
        self._state.success_count = 0
        self._probes_in_flight = 0
        self._half_open_generation += 1

    def _transition_to_open(self, now: float) -> BreakerEvent:
        """Transition to open state."""
        previous = self._state.state
        self._state.state = CircuitState.OPEN
        self._state.success_count = 0
        self._state.next_attempt = now + self.config.reset_timeout
        self._opened_at = now

        logger.error(
            "circuit_breaker_opened",
            name=self.name,
            previous_state=previous.value,
            failures=self._state.failure_count,
            threshold=self.config.failure_threshold,
            next_attempt=self._state.next_attempt,
        )
        return self._event(
            BreakerEventName.OPENED,
            next_attempt=self._state.next_attempt,
            previous_state=previous.value,
        )

    def _transition_to_closed(self) -> BreakerEvent:
        """Transition to closed state."""
        successes = self._state.success_count
        recovery_time = self._clock() - self._opened_at if self._opened_at else 0.0

        self._state.state = CircuitState.CLOSED
        self._state.failure_count = 0
        self._state.success_count = 0
        self._state.next_attempt = 0.0
        self._opened_at = 0.0

        logger.info(
            "circuit_breaker_closed",
            name=self.name,
            successes=successes,
            recovery_time=round(recovery_time, 3),
        )
        return self._event(BreakerEventName.CLOSED, recovery_time=recovery_time)

    def _event(self, event_name: BreakerEventName, **payload) -> BreakerEvent:
        return BreakerEvent(
            event_name=event_name,
            breaker_name=self.name,
            payload={
                "failure_count": self._state.failure_count,
                "success_count": self._state.success_count,
                **payload,
            },
            timestamp=self._clock(),
        )

    def _emit_all(self, events: List[BreakerEvent]) -> None:
        if self.event_sink is None:
            return
        for event in events:
            try:
                self.event_sink.emit(event)
            except Exception as e:
                logger.warning(
                    "circuit_breaker_event_sink_failed",
                    name=self.name,
                    event=event.event_name.value,
                    error=str(e),
                    error_type=type(e).__name__,
                )

    def get_status(self) -> CircuitBreakerStatus:
        """Get circuit breaker status."""
        with self._lock:
            current = self._state
            return CircuitBreakerStatus(
                name=self.name,
                state=current.state,
                failure_count=current.failure_count,
                success_count=current.success_count,
                next_attempt=(
                    current.next_attempt if current.state == CircuitState.OPEN else None
                ),
                is_healthy=current.state == CircuitState.CLOSED,
                last_failure_time=current.last_failure_time or None,
            )

    def reset(self) -> None:
        """Manually reset circuit breaker."""
        with self._lock:
            self._state = CircuitBreakerState()
            self._opened_at = 0.0
            self._probes_in_flight = 0
            self._half_open_generation += 1
            event = self._event(BreakerEventName.RESET, manual=True)

        logger.info("circuit_breaker_manual_reset", name=self.name)
        self._emit_all([event])


def with_circuit_breaker(circuit_breaker: CircuitBreaker):
    """Decorator to wrap async functions with circuit breaker."""
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            return await circuit_breaker.execute(func, *args, **kwargs)
        return wrapper
    return decorator
