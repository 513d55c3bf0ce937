"""Test the circuit breaker registry."""

from concurrent.futures import ThreadPoolExecutor

import pytest

from src.core.config_models import CircuitBreakerConfig
from src.infrastructure.resilience import CircuitBreakerRegistry, CircuitState
from tests.utils.fakes import Boom


class TestGetOrCreate:
    """One breaker per dependency name."""

    def test_returns_same_instance(self, registry):
        first = registry.get_or_create("payments")
        second = registry.get_or_create("payments")

        assert first is second
        assert len(registry) == 1

    def test_first_registration_wins(self, registry):
        original = CircuitBreakerConfig(failure_threshold=2)
        breaker = registry.get_or_create("payments", original)

        again = registry.get_or_create("payments", CircuitBreakerConfig(failure_threshold=9))

        assert again is breaker
        assert again.config.failure_threshold == 2

    def test_uses_registry_default_config(self, clock):
        default = CircuitBreakerConfig(failure_threshold=7, reset_timeout=5.0)
        registry = CircuitBreakerRegistry(default_config=default, clock=clock)

        breaker = registry.get_or_create("database")

        assert breaker.config == default

    def test_breakers_share_sink_and_clock(self, registry, event_sink, clock):
        breaker = registry.get_or_create("video-provider")

        assert breaker.event_sink is event_sink
        assert breaker._clock is clock

    def test_distinct_names_get_distinct_breakers(self, registry):
        payments = registry.get_or_create("payments")
        video = registry.get_or_create("video-provider")

        assert payments is not video
        assert registry.names == ["payments", "video-provider"]
        assert "payments" in registry
        assert "database" not in registry

    def test_registries_are_isolated(self, clock):
        first = CircuitBreakerRegistry(clock=clock)
        second = CircuitBreakerRegistry(clock=clock)

        assert first.get_or_create("payments") is not second.get_or_create("payments")

    def test_concurrent_creation_yields_one_instance(self, registry):
        with ThreadPoolExecutor(max_workers=16) as pool:
            breakers = list(pool.map(lambda _: registry.get_or_create("payments"), range(64)))

        assert all(b is breakers[0] for b in breakers)
        assert len(registry) == 1

    def test_get_does_not_create(self, registry):
        assert registry.get("payments") is None
        assert len(registry) == 0


class TestAggregation:
    """Status and administration across all breakers."""

    @pytest.mark.asyncio
    async def test_get_all_statuses(self, registry, fail):
        registry.get_or_create("database")
        payments = registry.get_or_create(
            "payments", CircuitBreakerConfig(failure_threshold=1)
        )
        with pytest.raises(Boom):
            await payments.execute(fail)

        statuses = registry.get_all_statuses()

        assert set(statuses) == {"database", "payments"}
        assert statuses["database"].is_healthy
        assert statuses["payments"].state == CircuitState.OPEN
        assert statuses["payments"].next_attempt is not None

    def test_get_all_statuses_empty(self, registry):
        assert registry.get_all_statuses() == {}

    @pytest.mark.asyncio
    async def test_reset_all(self, registry, fail):
        config = CircuitBreakerConfig(failure_threshold=1)
        for name in ("payments", "video-provider"):
            with pytest.raises(Boom):
                await registry.get_or_create(name, config).execute(fail)

        registry.reset_all()

        assert all(s.is_healthy for s in registry.get_all_statuses().values())
        assert all(s.failure_count == 0 for s in registry.get_all_statuses().values())

    @pytest.mark.asyncio
    async def test_reset_by_name(self, registry, fail):
        breaker = registry.get_or_create("payments", CircuitBreakerConfig(failure_threshold=1))
        with pytest.raises(Boom):
            await breaker.execute(fail)

        assert registry.reset("payments") is True
        assert breaker.is_closed
        assert registry.reset("unknown") is False
