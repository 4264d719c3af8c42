"""
genrouter Adapters Module

Backend-specific adapters that translate between the unified
generation request and each backend's native API format.
"""

from .base import BaseAdapter
from .openai_adapter import OpenAIAdapter
from .anthropic_adapter import AnthropicAdapter
from .stub_adapter import StubAdapter
from ..core.models import BackendConfig, BackendId
from ..routing.tracker import DEFAULT_WINDOW_SIZE

__all__ = [
    "BaseAdapter",
    "OpenAIAdapter",
    "AnthropicAdapter",
    "StubAdapter",
    "get_adapter",
    "get_stub_adapter",
]


def get_adapter(config: BackendConfig, window_size: int = DEFAULT_WINDOW_SIZE) -> BaseAdapter:
    """
    Factory function to get the appropriate adapter for a backend.

    Args:
        config: Backend configuration with API key and default model
        window_size: Capacity of the adapter's rolling performance window

    Returns:
        Configured adapter instance

    Raises:
        ValueError: If the backend is not supported
    """
    adapters = {
        BackendId.OPENAI: OpenAIAdapter,
        BackendId.ANTHROPIC: AnthropicAdapter,
        BackendId.GOOGLE: OpenAIAdapter,
        BackendId.LOCAL: OpenAIAdapter,
    }

    adapter_class = adapters.get(config.backend)
    if not adapter_class:
        raise ValueError(f"Unsupported backend: {config.backend}")

    return adapter_class(config, window_size)


def get_stub_adapter(config: BackendConfig, window_size: int = DEFAULT_WINDOW_SIZE) -> BaseAdapter:
    """Factory with the same signature as get_adapter, returning stubs."""
    return StubAdapter(config, window_size)
