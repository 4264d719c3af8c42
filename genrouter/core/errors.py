"""
genrouter - Error Definitions

Closed error taxonomy for the router. Callers branch on the exception
type, never on message text:

- BackendUnavailableError: requested backend is not configured
- NoCandidatesError: strategy produced zero usable backends
- BackendError (and subclasses): a single attempt against a backend failed
- AllBackendsFailedError: every candidate in the fallback chain was exhausted
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import httpx

from .models import BackendId


BackendRef = Union[BackendId, str, None]


def _backend_name(backend: BackendRef) -> Optional[str]:
    if backend is None:
        return None
    if isinstance(backend, BackendId):
        return backend.value
    return str(backend)


class ErrorType(str, Enum):
    """Error classification."""
    INFRA = "infra_error"
    SEMANTIC = "semantic_error"


@dataclass
class ErrorDetails:
    """Structured error information for logging and serialization."""
    code: str
    message: str
    type: ErrorType

    backend: Optional[str] = None
    param: Optional[str] = None
    request_id: str = ""

    retryable: bool = False
    retry_after: Optional[int] = None

    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "code": self.code,
            "message": self.message,
            "type": self.type.value,
            "retryable": self.retryable,
        }

        if self.backend:
            result["backend"] = self.backend
        if self.param:
            result["param"] = self.param
        if self.request_id:
            result["request_id"] = self.request_id
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        if self.details:
            result["details"] = self.details

        return {"error": result}


class RouterException(Exception):
    """Base exception for all genrouter errors."""

    def __init__(self, error: ErrorDetails):
        self.error = error
        super().__init__(error.message)

    @property
    def code(self) -> str:
        return self.error.code

    @property
    def retryable(self) -> bool:
        return self.error.retryable


# ============================================================
# Routing errors (never retried)
# ============================================================

class BackendUnavailableError(RouterException):
    """Requested backend is not present in the registry."""

    def __init__(self, backend: BackendRef, request_id: str = ""):
        name = _backend_name(backend)
        super().__init__(
            ErrorDetails(
                code="backend_unavailable",
                message=f"Backend '{name}' is not configured or not enabled",
                type=ErrorType.SEMANTIC,
                backend=name,
                request_id=request_id,
                retryable=False
            )
        )


class NoCandidatesError(RouterException):
    """Strategy produced no usable backends."""

    def __init__(self, strategy: str = "", request_id: str = ""):
        super().__init__(
            ErrorDetails(
                code="no_backends_available",
                message="No backends available",
                type=ErrorType.INFRA,
                request_id=request_id,
                retryable=False,
                details={"strategy": strategy} if strategy else {}
            )
        )


class AllBackendsFailedError(RouterException):
    """
    Every candidate in the fallback chain failed.

    The message lists each backend with its final failure reason,
    e.g. "All backends failed: openai: auth error; anthropic: timeout".
    """

    def __init__(
        self,
        failures: Sequence[Tuple[BackendRef, BaseException]],
        request_id: str = ""
    ):
        self.failures: List[Tuple[str, BaseException]] = [
            (_backend_name(backend) or "unknown", error)
            for backend, error in failures
        ]
        summary = "; ".join(
            f"{name}: {error}" for name, error in self.failures
        )
        super().__init__(
            ErrorDetails(
                code="all_backends_failed",
                message=f"All backends failed: {summary}",
                type=ErrorType.INFRA,
                request_id=request_id,
                retryable=False,
                details={
                    "backends_tried": [name for name, _ in self.failures],
                    "errors": {name: str(error) for name, error in self.failures},
                }
            )
        )

    @property
    def backends_tried(self) -> List[str]:
        return [name for name, _ in self.failures]


# ============================================================
# Per-attempt errors
# ============================================================

class BackendError(RouterException):
    """
    A single attempt against a backend failed.

    Raised by adapters for any failure, including empty content.
    The retry executor treats every BackendError as retryable within
    the same backend; `retryable` is informational for callers.
    """

    def __init__(
        self,
        message: str,
        backend: BackendRef = None,
        code: str = "backend_error",
        error_type: ErrorType = ErrorType.INFRA,
        retryable: bool = True,
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
        request_id: str = ""
    ):
        super().__init__(
            ErrorDetails(
                code=code,
                message=message,
                type=error_type,
                backend=_backend_name(backend),
                request_id=request_id,
                retryable=retryable,
                retry_after=retry_after,
                details=details or {}
            )
        )


class BackendTimeoutError(BackendError):
    """Backend did not answer within the per-attempt timeout."""

    def __init__(self, backend: BackendRef, timeout: Optional[float] = None):
        name = _backend_name(backend)
        message = (
            f"timeout: {name} did not respond within {timeout:g}s"
            if timeout is not None
            else f"timeout: {name} request timed out"
        )
        super().__init__(
            message,
            backend=backend,
            code="timeout",
            details={"timeout_seconds": timeout} if timeout is not None else None
        )


class BackendAuthError(BackendError):
    """Backend rejected the credential."""

    def __init__(self, backend: BackendRef, message: str = ""):
        name = _backend_name(backend)
        super().__init__(
            message or f"{name} authentication failed",
            backend=backend,
            code="auth_error",
            error_type=ErrorType.SEMANTIC,
            retryable=False
        )


class RateLimitedError(BackendError):
    """Backend rate limit exceeded."""

    def __init__(self, backend: BackendRef, retry_after: int = 60):
        name = _backend_name(backend)
        super().__init__(
            f"{name} rate limit exceeded. Retry after {retry_after} seconds.",
            backend=backend,
            code="rate_limited",
            retry_after=retry_after
        )


class UpstreamError(BackendError):
    """Backend returned a server error."""

    def __init__(self, backend: BackendRef, status_code: int, message: str = ""):
        name = _backend_name(backend)
        super().__init__(
            message or f"{name} returned error {status_code}",
            backend=backend,
            code=f"upstream_{status_code}" if status_code >= 500 else "upstream_error",
            details={"status_code": status_code}
        )
        self.status_code = status_code


class InvalidRequestError(BackendError):
    """Backend refused the request as malformed."""

    def __init__(self, backend: BackendRef, message: str, param: str = ""):
        super().__init__(
            message,
            backend=backend,
            code="invalid_request",
            error_type=ErrorType.SEMANTIC,
            retryable=False,
            details={"param": param} if param else None
        )


class EmptyResponseError(BackendError):
    """Backend answered successfully but produced no content."""

    def __init__(self, backend: BackendRef, model: str = ""):
        name = _backend_name(backend)
        super().__init__(
            f"{name} returned empty content" + (f" for model {model}" if model else ""),
            backend=backend,
            code="empty_response"
        )


class InvalidResponseError(BackendError):
    """Backend response could not be parsed."""

    def __init__(self, backend: BackendRef, message: str = ""):
        name = _backend_name(backend)
        super().__init__(
            message or f"{name} returned a malformed response",
            backend=backend,
            code="invalid_response"
        )


# ============================================================
# HTTP error mapping
# ============================================================

def handle_http_error(error: Exception, backend: BackendRef) -> BackendError:
    """
    Convert an httpx error raised by an adapter into a BackendError.

    Understands the OpenAI ({"error": {"message": ...}}) and Anthropic
    ({"type": "error", "error": {...}}) error bodies.
    """
    if isinstance(error, BackendError):
        return error

    if isinstance(error, httpx.TimeoutException):
        return BackendTimeoutError(backend)

    if isinstance(error, httpx.ConnectError):
        return BackendError(
            f"Failed to connect to {_backend_name(backend)}: {error}",
            backend=backend,
            code="connection_error"
        )

    if isinstance(error, httpx.HTTPStatusError):
        status_code = error.response.status_code

        try:
            error_info = error.response.json().get("error", {})
            if isinstance(error_info, dict):
                message = error_info.get("message", str(error))
            else:
                message = str(error_info)
        except Exception:
            message = error.response.text or str(error)

        if status_code in (401, 403):
            return BackendAuthError(backend, message)

        if status_code == 429:
            retry_after = 60
            if "retry-after" in error.response.headers:
                try:
                    retry_after = int(error.response.headers["retry-after"])
                except ValueError:
                    pass
            return RateLimitedError(backend, retry_after)

        if status_code >= 500:
            return UpstreamError(backend, status_code, message)

        if status_code in (400, 404, 422):
            return InvalidRequestError(backend, message)

        return UpstreamError(backend, status_code, message)

    return BackendError(str(error) or type(error).__name__, backend=backend)
