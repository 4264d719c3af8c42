"""
genrouter - Pytest Configuration

Configures:
- Integration test markers (skip by default)
- Isolated metrics registry and in-memory tracer per test
- Recording sleep so backoff runs instantly
- Canned backend response bodies
"""

import logging
import os
from typing import List, Optional

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
from prometheus_client import CollectorRegistry

from genrouter.adapters.stub_adapter import StubAdapter
from genrouter.core.models import BackendConfig, BackendId, RouterConfig
from genrouter.observability.metrics import MetricsCollector
from genrouter.routing.registry import ProviderRegistry
from genrouter.routing.router import Router


# ============================================================
# Environment Configuration
# ============================================================

def _is_truthy(value: Optional[str]) -> bool:
    """Check if environment variable is truthy."""
    if value is None:
        return False
    return value.lower() in ("1", "true", "yes", "on")


RUN_INTEGRATION = _is_truthy(os.getenv("RUN_INTEGRATION"))


# ============================================================
# Pytest Markers
# ============================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires RUN_INTEGRATION=1)"
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless RUN_INTEGRATION=1."""
    skip_integration = pytest.mark.skip(
        reason="Integration test - set RUN_INTEGRATION=1 to run"
    )

    for item in items:
        if "integration" in item.keywords and not RUN_INTEGRATION:
            item.add_marker(skip_integration)


# ============================================================
# Observability fixtures
# ============================================================

@pytest.fixture
def metrics():
    """Metrics collector on a fresh registry."""
    return MetricsCollector(CollectorRegistry())


@pytest.fixture
def span_exporter():
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter):
    """Tracer that exports into span_exporter, without touching globals."""
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider.get_tracer("genrouter-tests")


# ============================================================
# Routing fixtures
# ============================================================

class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep():
    return RecordingSleep()


@pytest.fixture
def make_stub():
    """
    Build a StubAdapter for a backend.

    Usage:
        a = make_stub(BackendId.OPENAI, fail_with="boom")
    """
    def _make(backend: BackendId, model: Optional[str] = None, priority: Optional[int] = None,
              timeout: Optional[float] = None, window_size: int = 100, **kwargs) -> StubAdapter:
        config = BackendConfig(
            backend=backend,
            api_key="test-key",
            default_model=model or f"{backend.value}-model",
            priority=priority,
            timeout=timeout,
        )
        return StubAdapter(config, window_size, **kwargs)

    return _make


@pytest.fixture
def build_router(metrics, tracer, sleep):
    """
    Build a Router around pre-made adapters.

    Usage:
        router = build_router([a, b], enable_fallback=False)
    """
    def _build(adapters, **config_kwargs) -> Router:
        return Router(
            RouterConfig(**config_kwargs),
            registry=ProviderRegistry.from_adapters(adapters),
            sleep=sleep,
            metrics=metrics,
            tracer=tracer,
        )

    return _build


# ============================================================
# Canned backend responses
# ============================================================

@pytest.fixture
def mock_openai_response():
    """Standard mock OpenAI chat response."""
    return {
        "id": "chatcmpl-test123",
        "object": "chat.completion",
        "created": 1234567890,
        "model": "gpt-4o",
        "choices": [
            {
                "index": 0,
                "message": {
                    "role": "assistant",
                    "content": "Hello! I'm a mock response."
                },
                "finish_reason": "stop"
            }
        ],
        "usage": {
            "prompt_tokens": 10,
            "completion_tokens": 8,
            "total_tokens": 18
        }
    }


@pytest.fixture
def mock_anthropic_response():
    """Standard mock Anthropic response."""
    return {
        "id": "msg-test123",
        "type": "message",
        "role": "assistant",
        "content": [
            {
                "type": "text",
                "text": "Hello! I'm a mock Claude response."
            }
        ],
        "model": "claude-3-5-sonnet-20241022",
        "stop_reason": "end_turn",
        "usage": {
            "input_tokens": 10,
            "output_tokens": 8
        }
    }


@pytest.fixture
def mock_error_500():
    """Mock 500 error response."""
    return {
        "error": {
            "code": "internal_error",
            "message": "Internal server error",
            "type": "server_error"
        }
    }


# ============================================================
# Logging Configuration
# ============================================================

@pytest.fixture(autouse=True)
def configure_test_logging():
    """Configure logging for tests."""
    logging.getLogger("genrouter").setLevel(logging.DEBUG)
    yield
