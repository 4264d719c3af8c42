"""
genrouter - Anthropic Backend Adapter

Adapter for Anthropic's Messages API (Claude 3.5, Claude 3, etc.)
"""

from typing import Any, Dict, List, Optional, Tuple

import httpx

from .base import BaseAdapter
from ..core.errors import (
    EmptyResponseError,
    InvalidResponseError,
    handle_http_error,
)
from ..core.models import (
    BackendConfig,
    GenerationRequest,
    GenerationResult,
    Message,
    Role,
    Usage,
)
from ..routing.tracker import DEFAULT_WINDOW_SIZE


class AnthropicAdapter(BaseAdapter):
    """
    Adapter for Anthropic Claude API.

    System messages are lifted into the top-level `system` field;
    Anthropic has no JSON mode, so json_mode adds a system instruction.
    """

    DEFAULT_BASE_URL = "https://api.anthropic.com"
    API_VERSION = "2023-06-01"
    DEFAULT_MAX_TOKENS = 4096  # Anthropic requires max_tokens

    COST_PER_1K_TOKENS: Dict[str, float] = {
        "claude-3-opus-20240229": 0.045,
        "claude-3-sonnet-20240229": 0.009,
        "claude-3-haiku-20240307": 0.00075,
        "claude-3-5-sonnet-20241022": 0.009,
        "claude-3-5-haiku-20241022": 0.0024,
    }

    MODEL_ALIASES = {
        "claude-3-5-sonnet": "claude-3-5-sonnet-20241022",
        "claude-3.5-sonnet": "claude-3-5-sonnet-20241022",
        "claude-3-5-haiku": "claude-3-5-haiku-20241022",
        "claude-3-opus": "claude-3-opus-20240229",
        "claude-3-sonnet": "claude-3-sonnet-20240229",
        "claude-3-haiku": "claude-3-haiku-20240307",
    }

    JSON_INSTRUCTION = "Respond only with a single valid JSON object."

    def __init__(
        self,
        config: BackendConfig,
        window_size: int = DEFAULT_WINDOW_SIZE,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        super().__init__(config, window_size)
        self.base_url = config.base_url or self.DEFAULT_BASE_URL
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "x-api-key": config.api_key,
                "anthropic-version": self.API_VERSION,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(None, connect=self.CONNECT_TIMEOUT),
            transport=transport
        )

    def resolve_model(self, request: GenerationRequest) -> str:
        model = super().resolve_model(request)
        return self.MODEL_ALIASES.get(model, model)

    def cost_per_1k_tokens(self, model: Optional[str] = None) -> float:
        if model:
            model = self.MODEL_ALIASES.get(model, model)
        return super().cost_per_1k_tokens(model)

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate a completion using Claude."""
        model = self.resolve_model(request)
        payload = self._build_chat_payload(request, model)

        try:
            response = await self.client.post("/v1/messages", json=payload)
            response.raise_for_status()
            data = response.json()
        except Exception as e:
            raise handle_http_error(e, self.backend)

        return self._parse_chat_response(data, model)

    # ============================================================
    # Private helper methods
    # ============================================================

    def _build_chat_payload(self, request: GenerationRequest, model: str) -> Dict[str, Any]:
        """Build Anthropic-specific payload."""
        system_content, messages = self._extract_system_message(request.messages)

        if request.json_mode:
            system_content = (
                f"{system_content}\n\n{self.JSON_INSTRUCTION}"
                if system_content
                else self.JSON_INSTRUCTION
            )

        payload: Dict[str, Any] = {
            "model": model,
            "messages": [message.to_dict() for message in messages],
            "max_tokens": request.max_tokens or self.DEFAULT_MAX_TOKENS,
        }

        if system_content:
            payload["system"] = system_content
        if request.temperature is not None:
            payload["temperature"] = request.temperature

        return payload

    def _extract_system_message(
        self,
        messages: List[Message]
    ) -> Tuple[Optional[str], List[Message]]:
        """Split system messages out of the conversation."""
        system_parts = []
        filtered_messages = []

        for msg in messages:
            if msg.role == Role.SYSTEM:
                system_parts.append(msg.content)
            else:
                filtered_messages.append(msg)

        return ("\n\n".join(system_parts) or None), filtered_messages

    def _parse_chat_response(self, data: Dict[str, Any], model: str) -> GenerationResult:
        """Parse Anthropic response to a GenerationResult."""
        blocks = data.get("content")
        if not isinstance(blocks, list):
            raise InvalidResponseError(self.backend, "anthropic response has no content blocks")

        content = "".join(
            block.get("text", "") for block in blocks if block.get("type") == "text"
        )
        served_model = data.get("model") or model
        if not content.strip():
            raise EmptyResponseError(self.backend, served_model)

        usage_data = data.get("usage") or {}
        usage = Usage(
            prompt_tokens=usage_data.get("input_tokens", 0),
            completion_tokens=usage_data.get("output_tokens", 0)
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
