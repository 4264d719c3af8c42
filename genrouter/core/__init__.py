"""
genrouter Core Module

Unified data models, configuration and the error taxonomy.
"""

from .models import (
    # Enums
    BackendId,
    Role,
    RoutingStrategy,
    UNKNOWN_LATENCY,

    # Configuration
    BackendConfig,
    RouterConfig,

    # Requests / responses
    Message,
    GenerationRequest,
    GenerationResult,
    Usage,
    OutcomeRecord,
)

from .errors import (
    ErrorType,
    ErrorDetails,
    RouterException,
    BackendUnavailableError,
    NoCandidatesError,
    AllBackendsFailedError,
    BackendError,
    BackendTimeoutError,
    BackendAuthError,
    RateLimitedError,
    UpstreamError,
    InvalidRequestError,
    EmptyResponseError,
    InvalidResponseError,
    handle_http_error,
)

from .config import ConfigError, load_router_config

__all__ = [
    # Enums
    "BackendId",
    "Role",
    "RoutingStrategy",
    "UNKNOWN_LATENCY",

    # Configuration
    "BackendConfig",
    "RouterConfig",
    "ConfigError",
    "load_router_config",

    # Requests / responses
    "Message",
    "GenerationRequest",
    "GenerationResult",
    "Usage",
    "OutcomeRecord",

    # Errors
    "ErrorType",
    "ErrorDetails",
    "RouterException",
    "BackendUnavailableError",
    "NoCandidatesError",
    "AllBackendsFailedError",
    "BackendError",
    "BackendTimeoutError",
    "BackendAuthError",
    "RateLimitedError",
    "UpstreamError",
    "InvalidRequestError",
    "EmptyResponseError",
    "InvalidResponseError",
    "handle_http_error",
]
