import os
from typing import Generator

# Environment variable overrides for tests - MUST be before any imports from src
os.environ["ENVIRONMENT"] = "testing"
os.environ["DEBUG"] = "True"

import pytest
from fastapi.testclient import TestClient

from src.api.app import create_application
from src.core.config_models import CircuitBreakerConfig
from src.infrastructure.container import Container
from src.infrastructure.resilience import CircuitBreaker, CircuitBreakerRegistry
from src.infrastructure.telemetry import InMemoryEventSink
from tests.utils.config_helpers import create_test_config
from tests.utils.fakes import Boom, FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def event_sink() -> InMemoryEventSink:
    return InMemoryEventSink(max_events=100)


@pytest.fixture
def breaker_config() -> CircuitBreakerConfig:
    """The configuration used by the reference recovery scenario."""
    return CircuitBreakerConfig(
        failure_threshold=5,
        reset_timeout=60.0,
        monitoring_period=300.0,
        success_threshold=3,
    )


@pytest.fixture
def make_breaker(clock, event_sink):
    """Factory for breakers sharing the fake clock and in-memory sink."""

    def _make(name: str = "payments", **config_values) -> CircuitBreaker:
        config = CircuitBreakerConfig(**config_values) if config_values else None
        return CircuitBreaker(name, config=config, event_sink=event_sink, clock=clock)

    return _make


@pytest.fixture
def breaker(make_breaker, breaker_config) -> CircuitBreaker:
    return make_breaker("payments", **breaker_config.to_dict())


@pytest.fixture
def registry(clock, event_sink) -> CircuitBreakerRegistry:
    return CircuitBreakerRegistry(event_sink=event_sink, clock=clock)


@pytest.fixture
def fail():
    """Async operation that always fails with Boom."""

    async def _fail():
        raise Boom("dependency down")

    return _fail


@pytest.fixture
def succeed():
    """Async operation that always succeeds."""

    async def _succeed():
        return "ok"

    return _succeed


@pytest.fixture
def container(clock) -> Container:
    return Container(
        config=create_test_config(breaker_overrides={"payments": {"failure_threshold": 2}}),
        clock=clock,
    )


@pytest.fixture
def test_client(container) -> Generator[TestClient, None, None]:
    app = create_application(container=container)
    with TestClient(app) as client:
        yield client
