"""Test configuration models and settings."""

from dataclasses import FrozenInstanceError

import pytest
from pydantic import ValidationError

from src.core.config import Settings, settings
from src.core.config_models import (
    CircuitBreakerConfig,
    ResilienceConfig,
    get_config,
    load_config,
    set_config,
)
from src.core.exceptions import ConfigurationError
from src.infrastructure.resilience import CircuitBreaker
from tests.utils.config_helpers import create_test_config, with_test_config


class TestCircuitBreakerConfig:
    """Validation happens at construction time."""

    def test_defaults(self):
        config = CircuitBreakerConfig()

        assert config.failure_threshold == 5
        assert config.reset_timeout == 60.0
        assert config.monitoring_period == 300.0
        assert config.success_threshold == 3
        assert config.half_open_max_calls is None

    @pytest.mark.parametrize(
        "values",
        [
            {"failure_threshold": 0},
            {"failure_threshold": -1},
            {"failure_threshold": 2.5},
            {"failure_threshold": True},
            {"success_threshold": 0},
            {"reset_timeout": -1.0},
            {"reset_timeout": "60"},
            {"reset_timeout": float("inf")},
            {"reset_timeout": float("nan")},
            {"monitoring_period": 0},
            {"monitoring_period": float("inf")},
            {"monitoring_period": float("nan")},
            {"half_open_max_calls": 0},
        ],
    )
    def test_invalid_values_rejected(self, values):
        with pytest.raises(ConfigurationError):
            CircuitBreakerConfig(**values)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            CircuitBreakerConfig(success_threshold=-3)

    def test_breaker_construction_fails_fast(self):
        with pytest.raises(ConfigurationError):
            CircuitBreaker("payments", CircuitBreakerConfig(failure_threshold=0))

    def test_zero_reset_timeout_allowed(self):
        assert CircuitBreakerConfig(reset_timeout=0).reset_timeout == 0

    def test_large_finite_reset_timeout_allowed(self):
        assert CircuitBreakerConfig(reset_timeout=1e12).reset_timeout == 1e12

    def test_is_immutable(self):
        config = CircuitBreakerConfig()
        with pytest.raises(FrozenInstanceError):
            config.failure_threshold = 10

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ConfigurationError, match="timeout_ms"):
            CircuitBreakerConfig.from_dict({"timeout_ms": 100})

    def test_merge(self):
        merged = CircuitBreakerConfig().merge({"failure_threshold": 2, "reset_timeout": 10})

        assert merged.failure_threshold == 2
        assert merged.reset_timeout == 10
        assert merged.success_threshold == 3


class TestResilienceConfig:
    def test_for_dependency_prefers_override(self):
        override = CircuitBreakerConfig(failure_threshold=2)
        config = ResilienceConfig(overrides={"payments": override})

        assert config.for_dependency("payments") is override
        assert config.for_dependency("database") == CircuitBreakerConfig()


class TestLoadConfig:
    """Settings flow into the immutable config models."""

    def test_reads_breaker_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "CIRCUIT_BREAKER_FAILURE_THRESHOLD", 4)
        monkeypatch.setattr(settings, "CIRCUIT_BREAKER_HALF_OPEN_MAX_CALLS", 1)
        monkeypatch.setattr(
            settings,
            "CIRCUIT_BREAKER_OVERRIDES",
            {"video-provider": {"reset_timeout": 15}},
        )

        config = load_config()

        assert config.environment == "testing"
        assert config.resilience.default.failure_threshold == 4
        assert config.resilience.default.half_open_max_calls == 1
        video = config.resilience.for_dependency("video-provider")
        assert video.reset_timeout == 15
        assert video.failure_threshold == 4

    def test_invalid_override_raises(self, monkeypatch):
        monkeypatch.setattr(
            settings, "CIRCUIT_BREAKER_OVERRIDES", {"payments": {"failure_threshold": 0}}
        )
        with pytest.raises(ConfigurationError):
            load_config()

    def test_with_test_config_restores(self):
        original = get_config()
        custom = create_test_config(environment="staging")

        with with_test_config(custom):
            assert get_config() is custom

        assert get_config() is original
        set_config(None)


class TestSettings:
    def test_defaults(self):
        s = Settings(_env_file=None)

        assert s.CIRCUIT_BREAKER_RESET_TIMEOUT == 60.0
        assert s.EVENT_SINK_TYPE == "memory"

    def test_rejects_unknown_sink_type(self):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, EVENT_SINK_TYPE="kafka")

    def test_sink_type_is_case_insensitive(self):
        assert Settings(_env_file=None, EVENT_SINK_TYPE="BOTH").EVENT_SINK_TYPE == "both"
