"""
genrouter - Configuration Tests

Verifies environment parsing into RouterConfig / BackendConfig.
"""

import pytest

from genrouter.core.config import (
    DEFAULT_MODELS,
    ConfigError,
    load_backend_configs,
    load_router_config,
    parse_strategy,
    use_stub_adapters,
)
from genrouter.core.models import BackendId, RouterConfig, RoutingStrategy


class TestRouterDefaults:
    """Test defaults with an empty environment."""

    def test_empty_environment(self):
        config = load_router_config({})

        assert config.default_strategy == RoutingStrategy.LATENCY_FIRST
        assert config.backends == []
        assert config.enable_fallback is True
        assert config.max_retries == 3
        assert config.retry_base_delay == 1.0
        assert config.retry_max_delay == 10.0
        assert config.track_latency is True
        assert config.window_size == 100
        assert config.default_timeout == 30.0

    def test_matches_dataclass_defaults(self):
        assert load_router_config({}) == RouterConfig()

    def test_from_env_classmethod(self):
        config = RouterConfig.from_env({"GENROUTER_MAX_RETRIES": "5"})
        assert config.max_retries == 5


class TestRouterSettings:
    """Test router-wide variables."""

    def test_all_settings(self):
        config = load_router_config({
            "GENROUTER_STRATEGY": "cost_first",
            "GENROUTER_ENABLE_FALLBACK": "false",
            "GENROUTER_MAX_RETRIES": "5",
            "GENROUTER_RETRY_BASE_DELAY": "0.5",
            "GENROUTER_RETRY_MAX_DELAY": "4",
            "GENROUTER_TRACK_LATENCY": "no",
            "GENROUTER_WINDOW_SIZE": "20",
            "GENROUTER_TIMEOUT": "12.5",
        })

        assert config.default_strategy == RoutingStrategy.COST_FIRST
        assert config.enable_fallback is False
        assert config.max_retries == 5
        assert config.retry_base_delay == 0.5
        assert config.retry_max_delay == 4.0
        assert config.track_latency is False
        assert config.window_size == 20
        assert config.default_timeout == 12.5

    @pytest.mark.parametrize("env", [
        {"GENROUTER_MAX_RETRIES": "three"},
        {"GENROUTER_MAX_RETRIES": "0"},
        {"GENROUTER_WINDOW_SIZE": "0"},
        {"GENROUTER_ENABLE_FALLBACK": "maybe"},
        {"GENROUTER_RETRY_BASE_DELAY": "-1"},
        {"GENROUTER_TIMEOUT": "soon"},
        {"GENROUTER_STRATEGY": "fastest"},
    ])
    def test_invalid_values(self, env):
        with pytest.raises(ConfigError):
            load_router_config(env)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            load_router_config({"GENROUTER_MAX_RETRIES": "x"})

    def test_blank_values_use_defaults(self):
        config = load_router_config({"GENROUTER_MAX_RETRIES": "  ", "GENROUTER_STRATEGY": ""})
        assert config.max_retries == 3
        assert config.default_strategy == RoutingStrategy.LATENCY_FIRST


class TestStrategyParsing:
    """Test strategy names and shorthands."""

    @pytest.mark.parametrize("raw,expected", [
        ("latency_first", RoutingStrategy.LATENCY_FIRST),
        ("latency", RoutingStrategy.LATENCY_FIRST),
        ("LATENCY-FIRST", RoutingStrategy.LATENCY_FIRST),
        ("cost", RoutingStrategy.COST_FIRST),
        ("cost-first", RoutingStrategy.COST_FIRST),
        ("priority", RoutingStrategy.PRIORITY),
    ])
    def test_parse(self, raw, expected):
        assert parse_strategy(raw) == expected

    def test_unknown_lists_valid_options(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_strategy("fastest")
        assert "latency_first" in str(exc_info.value)


class TestBackendConfigs:
    """Test per-backend variables."""

    def test_backend_configured_by_api_key(self):
        configs = load_backend_configs({"OPENAI_API_KEY": "sk-1"})

        assert len(configs) == 1
        assert configs[0].backend == BackendId.OPENAI
        assert configs[0].api_key == "sk-1"
        assert configs[0].default_model == DEFAULT_MODELS[BackendId.OPENAI]

    def test_configuration_order_follows_backend_ids(self):
        configs = load_backend_configs({
            "LOCAL_API_KEY": "none",
            "ANTHROPIC_API_KEY": "sk-ant",
            "OPENAI_API_KEY": "sk-1",
        })
        assert [c.backend for c in configs] == [
            BackendId.OPENAI, BackendId.ANTHROPIC, BackendId.LOCAL
        ]

    def test_per_backend_overrides(self):
        configs = load_backend_configs({
            "ANTHROPIC_API_KEY": "sk-ant",
            "ANTHROPIC_MODEL": "claude-3-5-sonnet-20241022",
            "ANTHROPIC_PRIORITY": "1",
            "ANTHROPIC_TIMEOUT": "8",
            "ANTHROPIC_ENABLED": "false",
            "ANTHROPIC_BASE_URL": "https://proxy.internal",
        })

        config = configs[0]
        assert config.default_model == "claude-3-5-sonnet-20241022"
        assert config.priority == 1
        assert config.timeout == 8.0
        assert config.enabled is False
        assert config.base_url == "https://proxy.internal"

    def test_stubs_configure_every_backend(self):
        configs = load_backend_configs({}, use_stubs=True)

        assert [c.backend for c in configs] == list(BackendId)
        assert all(c.api_key == "stub" for c in configs)

    def test_use_stub_adapters(self):
        assert use_stub_adapters({"GENROUTER_USE_STUBS": "1"}) is True
        assert use_stub_adapters({}) is False

    def test_router_config_carries_backends(self):
        config = load_router_config({"GENROUTER_USE_STUBS": "true", "OPENAI_API_KEY": "sk-1"})

        assert len(config.backends) == 4
        assert config.backends[0].api_key == "sk-1"
