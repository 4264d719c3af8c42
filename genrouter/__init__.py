"""
genrouter - multi-backend generation router.

Usage:
    from genrouter import GenerationRequest, Message, Router, RouterConfig

    router = Router(RouterConfig.from_env())
    result = await router.generate(
        GenerationRequest(messages=[Message.user("Hello!")])
    )
"""

__version__ = "0.1.0"

from .core import (
    BackendConfig,
    BackendId,
    GenerationRequest,
    GenerationResult,
    Message,
    RouterConfig,
    RoutingStrategy,
    Usage,
    RouterException,
    BackendError,
    BackendUnavailableError,
    NoCandidatesError,
    AllBackendsFailedError,
)
from .routing import ProviderRegistry, Router

__all__ = [
    "__version__",
    "BackendConfig",
    "BackendId",
    "GenerationRequest",
    "GenerationResult",
    "Message",
    "RouterConfig",
    "RoutingStrategy",
    "Usage",
    "RouterException",
    "BackendError",
    "BackendUnavailableError",
    "NoCandidatesError",
    "AllBackendsFailedError",
    "ProviderRegistry",
    "Router",
]
