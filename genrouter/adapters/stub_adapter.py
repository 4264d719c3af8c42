"""
genrouter - Stub Backend Adapter

Deterministic in-process adapter used for smoke/integration testing.
No network calls, no backend keys required.
"""

import asyncio
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Union

from .base import BaseAdapter
from ..core.errors import BackendError
from ..core.models import (
    BackendConfig,
    GenerationRequest,
    GenerationResult,
    Usage,
)
from ..routing.tracker import DEFAULT_WINDOW_SIZE


Failure = Union[BaseException, str, None]


class StubAdapter(BaseAdapter):
    """
    Deterministic adapter for tests/smoke checks.

    Behaviour is scriptable:
    - fail_with: raised on every call (str is wrapped in BackendError)
    - failures: consumed one per call; None means that call succeeds
    - latency: seconds to suspend before answering
    - cost_per_1k: price of the default model
    - available: result of is_available()
    """

    def __init__(
        self,
        config: BackendConfig,
        window_size: int = DEFAULT_WINDOW_SIZE,
        content: str = "stub: deterministic response",
        fail_with: Failure = None,
        failures: Optional[Iterable[Failure]] = None,
        latency: float = 0.0,
        cost_per_1k: Optional[float] = None,
        available: bool = True,
        usage: Optional[Usage] = None
    ):
        super().__init__(config, window_size)
        self.content = content
        self.fail_with = fail_with
        self.failures: Deque[Failure] = deque(failures or [])
        self.latency = latency
        self.available = available
        self.usage = usage or Usage(prompt_tokens=8, completion_tokens=6)
        self.calls = 0
        self.requests: List[GenerationRequest] = []
        self.closed = False

        self.COST_PER_1K_TOKENS: Dict[str, float] = {
            config.default_model: cost_per_1k if cost_per_1k is not None else 0.0
        }

    async def _probe(self) -> bool:
        return self.available

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self.calls += 1
        self.requests.append(request)

        if self.latency:
            await asyncio.sleep(self.latency)

        failure = self.failures.popleft() if self.failures else self.fail_with
        if failure is not None:
            raise self._as_error(failure)

        model = self.resolve_model(request)
        return GenerationResult(
            content=self.content,
            backend=self.backend,
            model=model,
            usage=self.usage,
            cost_usd=self.calculate_cost(model, self.usage),
        )

    def _as_error(self, failure: Union[BaseException, str]) -> BaseException:
        if isinstance(failure, BaseException):
            return failure
        return BackendError(failure, backend=self.backend)

    async def close(self):
        self.closed = True
