"""Preflight checks for a genrouter environment configuration."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from genrouter.core.config import ConfigError, load_router_config
from genrouter.core.models import BackendId, RouterConfig, RoutingStrategy

MIN_PYTHON = (3, 9)

KNOWN_ROUTER_KEYS = {
    "GENROUTER_STRATEGY",
    "GENROUTER_ENABLE_FALLBACK",
    "GENROUTER_MAX_RETRIES",
    "GENROUTER_RETRY_BASE_DELAY",
    "GENROUTER_RETRY_MAX_DELAY",
    "GENROUTER_TRACK_LATENCY",
    "GENROUTER_WINDOW_SIZE",
    "GENROUTER_TIMEOUT",
    "GENROUTER_USE_STUBS",
    "GENROUTER_ENV",
}


@dataclass
class DoctorResult:
    ok: bool
    messages: List[str]


def _python_version_tuple() -> Tuple[int, int, int]:
    v = sys.version_info
    return (v.major, v.minor, v.micro)


def _check_python_version(errors: List[str]) -> None:
    current = _python_version_tuple()
    if current[:2] < MIN_PYTHON:
        errors.append(
            f"Python {current[0]}.{current[1]} is unsupported. "
            f"Use Python {MIN_PYTHON[0]}.{MIN_PYTHON[1]} or newer."
        )


def _check_unknown_keys(env: Mapping[str, str], warnings: List[str]) -> None:
    for key in sorted(env):
        if key.startswith("GENROUTER_") and key not in KNOWN_ROUTER_KEYS:
            warnings.append(f"`{key}` is not a recognised setting (typo?).")


def _check_backends(config: RouterConfig, errors: List[str], warnings: List[str]) -> None:
    if not config.backends:
        errors.append(
            "No backends configured. Set at least one of "
            + ", ".join(f"`{b.value.upper()}_API_KEY`" for b in BackendId)
            + " or `GENROUTER_USE_STUBS=true`."
        )
        return

    enabled = [b for b in config.backends if b.enabled]
    if not enabled:
        errors.append("Every configured backend is disabled via `<ID>_ENABLED=false`.")
        return

    for backend in enabled:
        if backend.base_url and not backend.base_url.startswith(("http://", "https://")):
            errors.append(
                f"`{backend.backend.value.upper()}_BASE_URL` must start with http:// or https://, "
                f"got `{backend.base_url}`."
            )

    if config.default_strategy == RoutingStrategy.PRIORITY and all(b.priority is None for b in enabled):
        warnings.append(
            "GENROUTER_STRATEGY=priority but no `<ID>_PRIORITY` is set; "
            "backends will be tried in configuration order."
        )

    if len(enabled) == 1 and config.enable_fallback:
        warnings.append("Only one backend enabled: fallback has nothing to fall back to.")


def _check_retry(config: RouterConfig, warnings: List[str]) -> None:
    if config.retry_base_delay > config.retry_max_delay:
        warnings.append(
            f"GENROUTER_RETRY_BASE_DELAY ({config.retry_base_delay:g}s) exceeds "
            f"GENROUTER_RETRY_MAX_DELAY ({config.retry_max_delay:g}s); every retry waits the maximum."
        )


def run_doctor(env: Optional[Mapping[str, str]] = None) -> DoctorResult:
    env_map: Mapping[str, str] = os.environ if env is None else env
    errors: List[str] = []
    warnings: List[str] = []

    _check_python_version(errors)
    _check_unknown_keys(env_map, warnings)

    try:
        config = load_router_config(env_map)
    except ConfigError as exc:
        errors.append(str(exc))
    else:
        _check_backends(config, errors, warnings)
        _check_retry(config, warnings)

    messages: List[str] = []
    if errors:
        messages.append("Doctor found configuration issues:")
        for i, msg in enumerate(errors, 1):
            messages.append(f"{i}. {msg}")
        messages.append("Fix the items above and rerun `python -m scripts.doctor`.")
    else:
        messages.append("Doctor checks passed.")

    if warnings:
        messages.append("Warnings:")
        for msg in warnings:
            messages.append(f"- {msg}")

    return DoctorResult(ok=not errors, messages=messages)


def main() -> int:
    result = run_doctor()
    print("\n".join(result.messages))
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
