"""
genrouter - OpenAI-Compatible Backend Adapter

Adapter for any backend speaking the OpenAI /chat/completions protocol:
OpenAI itself, Google's OpenAI-compatible Gemini endpoint, and local
servers (vLLM, llama.cpp, Ollama).
"""

from typing import Any, Dict, Optional

import httpx

from .base import BaseAdapter
from ..core.errors import (
    EmptyResponseError,
    InvalidResponseError,
    handle_http_error,
)
from ..core.models import (
    BackendConfig,
    BackendId,
    GenerationRequest,
    GenerationResult,
    Usage,
)
from ..routing.tracker import DEFAULT_WINDOW_SIZE


class OpenAIAdapter(BaseAdapter):
    """
    Adapter for OpenAI-compatible chat completion APIs.

    The backend identity comes from the config, so one class serves
    the openai, google and local backends with different base URLs.
    """

    DEFAULT_BASE_URLS = {
        BackendId.OPENAI: "https://api.openai.com/v1",
        BackendId.GOOGLE: "https://generativelanguage.googleapis.com/v1beta/openai",
        BackendId.LOCAL: "http://localhost:8000/v1",
    }

    # Blended price: mean of input and output USD per 1K tokens
    COST_PER_1K_TOKENS: Dict[str, float] = {
        "gpt-4o": 0.01,
        "gpt-4o-mini": 0.000375,
        "gpt-4-turbo": 0.02,
        "gpt-3.5-turbo": 0.001,
        "gemini-1.5-pro": 0.003125,
        "gemini-1.5-flash": 0.0001875,
        "llama-3.1-8b-instruct": 0.0,
    }

    def __init__(
        self,
        config: BackendConfig,
        window_size: int = DEFAULT_WINDOW_SIZE,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(config, window_size)
        self.base_url = (
            config.base_url
            or self.DEFAULT_BASE_URLS.get(config.backend)
            or self.DEFAULT_BASE_URLS[BackendId.OPENAI]
        )
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {config.api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(None, connect=self.CONNECT_TIMEOUT),
            transport=transport
        )

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate a chat completion."""
        model = self.resolve_model(request)
        payload = self._build_chat_payload(request, model)

        try:
            response = await self.client.post("/chat/completions", json=payload)
            response.raise_for_status()
            data = response.json()
        except Exception as e:
            raise handle_http_error(e, self.backend)

        return self._parse_chat_response(data, model)

    # ============================================================
    # Private helper methods
    # ============================================================

    def _build_chat_payload(self, request: GenerationRequest, model: str) -> Dict[str, Any]:
        """Build the chat completion payload."""
        payload: Dict[str, Any] = {
            "model": model,
            "messages": self._normalize_messages(request),
        }

        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.max_tokens is not None:
            payload["max_tokens"] = request.max_tokens
        if request.json_mode:
            payload["response_format"] = {"type": "json_object"}

        return payload

    def _parse_chat_response(self, data: Dict[str, Any], model: str) -> GenerationResult:
        """Parse a chat completion body into a GenerationResult."""
        try:
            message_data = data["choices"][0]["message"]
        except (KeyError, IndexError, TypeError):
            raise InvalidResponseError(self.backend, f"{self.backend.value} response has no choices")

        content = message_data.get("content") or ""
        served_model = data.get("model") or model
        if not content.strip():
            raise EmptyResponseError(self.backend, served_model)

        usage_data = data.get("usage") or {}
        usage = Usage(
            prompt_tokens=usage_data.get("prompt_tokens", 0),
            completion_tokens=usage_data.get("completion_tokens", 0),
            total_tokens=usage_data.get("total_tokens", 0)
        )

        return GenerationResult(
            content=content,
            backend=self.backend,
            model=served_model,
            usage=usage,
            cost_usd=self.calculate_cost(served_model, usage),
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
