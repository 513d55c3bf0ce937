from src.infrastructure.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerStatus,
    CircuitState,
    with_circuit_breaker,
)
from src.infrastructure.resilience.registry import CircuitBreakerRegistry

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerRegistry",
    "CircuitBreakerStatus",
    "CircuitState",
    "with_circuit_breaker",
]
