from typing import Optional

from fastapi import Depends, Request

from src.infrastructure.container import Container
from src.infrastructure.resilience import CircuitBreaker, CircuitBreakerRegistry
from src.infrastructure.telemetry import InMemoryEventSink
from src.core.exceptions import CircuitNotFoundError


def get_container(request: Request) -> Container:
    """Dependency to get the application container."""
    return request.app.state.container


def get_breaker_registry(
    container: Container = Depends(get_container),
) -> CircuitBreakerRegistry:
    """Dependency to get the circuit breaker registry."""
    return container.breaker_registry


def get_event_buffer(
    container: Container = Depends(get_container),
) -> Optional[InMemoryEventSink]:
    """Dependency to get the in-memory event buffer, if configured."""
    return container.event_buffer


def get_registered_breaker(
    name: str,
    registry: CircuitBreakerRegistry = Depends(get_breaker_registry),
) -> CircuitBreaker:
    """Resolve a breaker by path name without creating it."""
    breaker = registry.get(name)
    if breaker is None:
        raise CircuitNotFoundError(name)
    return breaker
