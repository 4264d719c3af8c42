"""
genrouter - Configuration

Builds a RouterConfig from environment variables.

Router-wide:
    GENROUTER_STRATEGY          latency_first | cost_first | priority
    GENROUTER_ENABLE_FALLBACK   true/false
    GENROUTER_MAX_RETRIES       attempts per backend
    GENROUTER_RETRY_BASE_DELAY  seconds
    GENROUTER_RETRY_MAX_DELAY   seconds
    GENROUTER_TRACK_LATENCY     true/false
    GENROUTER_WINDOW_SIZE       rolling window capacity
    GENROUTER_TIMEOUT           default per-attempt timeout (seconds)
    GENROUTER_USE_STUBS         configure stub backends without keys
    GENROUTER_ENV               deployment.environment on trace resources

Per backend (prefix is the upper-cased backend id, e.g. OPENAI_):
    <ID>_API_KEY, <ID>_MODEL, <ID>_BASE_URL, <ID>_PRIORITY,
    <ID>_TIMEOUT, <ID>_ENABLED
"""

import os
from typing import List, Mapping, Optional

from .models import BackendConfig, BackendId, RouterConfig, RoutingStrategy


DEFAULT_MODELS = {
    BackendId.OPENAI: "gpt-4o-mini",
    BackendId.ANTHROPIC: "claude-3-5-haiku-20241022",
    BackendId.GOOGLE: "gemini-1.5-flash",
    BackendId.LOCAL: "llama-3.1-8b-instruct",
}

TRUTHY = {"1", "true", "yes", "on"}
FALSY = {"0", "false", "no", "off"}


class ConfigError(ValueError):
    """Raised for invalid configuration values."""


def _get(env: Mapping[str, str], key: str) -> Optional[str]:
    value = env.get(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _parse_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = _get(env, key)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in TRUTHY:
        return True
    if lowered in FALSY:
        return False
    raise ConfigError(f"{key} must be a boolean, got `{raw}`")


def _parse_int(env: Mapping[str, str], key: str, default: Optional[int], minimum: int = 0) -> Optional[int]:
    raw = _get(env, key)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer, got `{raw}`")
    if value < minimum:
        raise ConfigError(f"{key} must be >= {minimum}, got {value}")
    return value


def _parse_float(env: Mapping[str, str], key: str, default: Optional[float]) -> Optional[float]:
    raw = _get(env, key)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number, got `{raw}`")
    if value < 0:
        raise ConfigError(f"{key} must be >= 0, got {value}")
    return value


def parse_strategy(raw: str) -> RoutingStrategy:
    """Parse a strategy name, accepting `latency`/`cost` shorthands."""
    normalized = raw.strip().lower().replace("-", "_")
    aliases = {"latency": "latency_first", "cost": "cost_first"}
    normalized = aliases.get(normalized, normalized)
    try:
        return RoutingStrategy(normalized)
    except ValueError:
        valid = ", ".join(s.value for s in RoutingStrategy)
        raise ConfigError(f"Unknown routing strategy `{raw}`. Use one of: {valid}")


def load_backend_configs(env: Mapping[str, str], use_stubs: bool = False) -> List[BackendConfig]:
    """
    Collect backend configurations from the environment.

    A backend is configured when its API key is set, or for every
    backend when stubs are requested.
    """
    configs: List[BackendConfig] = []

    for backend in BackendId:
        prefix = backend.value.upper()
        api_key = _get(env, f"{prefix}_API_KEY")
        if api_key is None and not use_stubs:
            continue

        configs.append(
            BackendConfig(
                backend=backend,
                api_key=api_key or "stub",
                default_model=_get(env, f"{prefix}_MODEL") or DEFAULT_MODELS[backend],
                enabled=_parse_bool(env, f"{prefix}_ENABLED", True),
                priority=_parse_int(env, f"{prefix}_PRIORITY", None),
                timeout=_parse_float(env, f"{prefix}_TIMEOUT", None),
                base_url=_get(env, f"{prefix}_BASE_URL"),
            )
        )

    return configs


def load_router_config(env: Optional[Mapping[str, str]] = None) -> RouterConfig:
    """
    Build a RouterConfig from environment variables.

    Args:
        env: Mapping to read from (defaults to os.environ)

    Raises:
        ConfigError: If any value fails to parse
    """
    env_map: Mapping[str, str] = os.environ if env is None else env

    raw_strategy = _get(env_map, "GENROUTER_STRATEGY")
    strategy = parse_strategy(raw_strategy) if raw_strategy else RoutingStrategy.LATENCY_FIRST
    use_stubs = _parse_bool(env_map, "GENROUTER_USE_STUBS", False)

    return RouterConfig(
        default_strategy=strategy,
        backends=load_backend_configs(env_map, use_stubs=use_stubs),
        enable_fallback=_parse_bool(env_map, "GENROUTER_ENABLE_FALLBACK", True),
        max_retries=_parse_int(env_map, "GENROUTER_MAX_RETRIES", 3, minimum=1),
        retry_base_delay=_parse_float(env_map, "GENROUTER_RETRY_BASE_DELAY", 1.0),
        retry_max_delay=_parse_float(env_map, "GENROUTER_RETRY_MAX_DELAY", 10.0),
        track_latency=_parse_bool(env_map, "GENROUTER_TRACK_LATENCY", True),
        window_size=_parse_int(env_map, "GENROUTER_WINDOW_SIZE", 100, minimum=1),
        default_timeout=_parse_float(env_map, "GENROUTER_TIMEOUT", 30.0),
    )


def use_stub_adapters(env: Optional[Mapping[str, str]] = None) -> bool:
    """Check whether stub adapters were requested."""
    env_map: Mapping[str, str] = os.environ if env is None else env
    return _parse_bool(env_map, "GENROUTER_USE_STUBS", False)
