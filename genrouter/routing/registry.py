"""
genrouter - Provider Registry

Owns the live backend adapters, one per enabled BackendConfig.

The mapping is read-only between (re)initializations; reinitialize()
builds a complete replacement and swaps it in a single assignment, so
concurrent readers see either the old registry or the new one.
"""

from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Optional

from ..core.errors import BackendUnavailableError
from ..core.models import BackendConfig, BackendId
from .tracker import DEFAULT_WINDOW_SIZE

if TYPE_CHECKING:
    from ..adapters.base import BaseAdapter


AdapterFactory = Callable[[BackendConfig, int], "BaseAdapter"]


def _default_factory(config: BackendConfig, window_size: int) -> "BaseAdapter":
    from ..adapters import get_adapter
    return get_adapter(config, window_size)


class ProviderRegistry:
    """Registry of live backend adapters keyed by BackendId."""

    def __init__(
        self,
        configs: Iterable[BackendConfig] = (),
        adapter_factory: Optional[AdapterFactory] = None,
        window_size: int = DEFAULT_WINDOW_SIZE
    ):
        self._factory: AdapterFactory = adapter_factory or _default_factory
        self._window_size = window_size
        self._adapters: Dict[BackendId, "BaseAdapter"] = self._build(configs)

    @classmethod
    def from_adapters(cls, adapters: Iterable["BaseAdapter"]) -> "ProviderRegistry":
        """Build a registry around already-constructed adapters."""
        registry = cls()
        registry._adapters = {adapter.backend: adapter for adapter in adapters}
        return registry

    def _build(self, configs: Iterable[BackendConfig]) -> Dict[BackendId, "BaseAdapter"]:
        adapters: Dict[BackendId, "BaseAdapter"] = {}
        for config in configs:
            if not config.enabled:
                continue
            if config.backend in adapters:
                raise ValueError(f"Backend '{config.backend.value}' configured more than once")
            adapters[config.backend] = self._factory(config, self._window_size)
        return adapters

    def get(self, backend: BackendId) -> Optional["BaseAdapter"]:
        """Get the adapter for a backend, or None if not configured."""
        return self._adapters.get(backend)

    def require(self, backend: BackendId) -> "BaseAdapter":
        """Get the adapter for a backend, raising if not configured."""
        adapter = self._adapters.get(backend)
        if adapter is None:
            raise BackendUnavailableError(backend)
        return adapter

    def all(self) -> List["BaseAdapter"]:
        """All enabled adapters in configuration order."""
        return list(self._adapters.values())

    def ids(self) -> List[BackendId]:
        return list(self._adapters.keys())

    def reinitialize(self, configs: Iterable[BackendConfig]) -> List["BaseAdapter"]:
        """
        Replace every adapter from a new configuration list.

        Returns the previous adapters so the caller can close them once
        in-flight requests have drained.
        """
        replacement = self._build(configs)
        previous = list(self._adapters.values())
        self._adapters = replacement
        return previous

    async def close(self) -> None:
        """Close every adapter."""
        for adapter in list(self._adapters.values()):
            await adapter.close()

    def __contains__(self, backend: object) -> bool:
        return backend in self._adapters

    def __len__(self) -> int:
        return len(self._adapters)
