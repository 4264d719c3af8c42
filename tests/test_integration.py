"""
Integration tests against real backends.

Skipped unless RUN_INTEGRATION=1. Backends are taken from the usual
environment variables (OPENAI_API_KEY, ANTHROPIC_API_KEY, ...).
"""

from __future__ import annotations

import os

import pytest
import pytest_asyncio

from genrouter import GenerationRequest, Message, Router, RoutingStrategy
from genrouter.core.models import BackendId


pytestmark = pytest.mark.integration


def _configured(backend: BackendId) -> bool:
    return bool(os.getenv(f"{backend.value.upper()}_API_KEY"))


@pytest_asyncio.fixture
async def live_router(metrics, tracer):
    router = Router.from_env(metrics=metrics, tracer=tracer)
    if len(router.registry) == 0:
        pytest.skip("No backend API keys configured")
    yield router
    await router.close()


@pytest.mark.asyncio
async def test_cost_first_round_trip(live_router: Router) -> None:
    result = await live_router.generate(GenerationRequest(
        messages=[Message.user("Reply with the single word: pong")],
        strategy=RoutingStrategy.COST_FIRST,
        max_tokens=10,
        temperature=0.0,
    ))

    assert result.content.strip()
    assert result.usage.total_tokens > 0
    assert result.latency_ms > 0


@pytest.mark.asyncio
@pytest.mark.parametrize("backend", list(BackendId))
async def test_forced_backend(live_router: Router, backend: BackendId) -> None:
    if not _configured(backend):
        pytest.skip(f"{backend.value} not configured")

    result = await live_router.generate(GenerationRequest(
        messages=[Message.user("Say hi")],
        forced_backend=backend,
        max_tokens=10,
    ))

    assert result.backend == backend
    assert result.fallback_used is False


@pytest.mark.asyncio
async def test_health_reports_every_backend(live_router: Router) -> None:
    health = await live_router.check_all_health()
    assert set(health) == {b.value for b in live_router.registry.ids()}
