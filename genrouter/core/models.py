"""
genrouter - Core Data Models

Unified data models shared by the router and every backend adapter.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# Sentinel for "no successful history": sorts after every known latency.
UNKNOWN_LATENCY = float("inf")


# ============================================================
# Enums
# ============================================================

class BackendId(str, Enum):
    """Configured generation backends."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    LOCAL = "local"


class Role(str, Enum):
    """Message roles."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class RoutingStrategy(str, Enum):
    """Candidate ordering strategies."""
    LATENCY_FIRST = "latency_first"
    COST_FIRST = "cost_first"
    PRIORITY = "priority"


# ============================================================
# Messages
# ============================================================

@dataclass
class Message:
    """A single role-tagged chat message."""
    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> Message:
        """Create a system message."""
        return cls(role=Role.SYSTEM, content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        """Create a user message."""
        return cls(role=Role.USER, content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        """Create an assistant message."""
        return cls(role=Role.ASSISTANT, content=content)

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


# ============================================================
# Configuration
# ============================================================

@dataclass(frozen=True)
class BackendConfig:
    """
    Static configuration for one backend.

    Supplied once at startup; maps to exactly one live adapter
    in the provider registry.
    """
    backend: BackendId
    api_key: str
    default_model: str
    enabled: bool = True
    priority: Optional[int] = None
    timeout: Optional[float] = None  # seconds, per attempt
    base_url: Optional[str] = None


@dataclass(frozen=True)
class RouterConfig:
    """
    Process-wide router configuration.

    Per-request overrides live on GenerationRequest, never here.
    """
    default_strategy: RoutingStrategy = RoutingStrategy.LATENCY_FIRST
    backends: List[BackendConfig] = field(default_factory=list)
    enable_fallback: bool = True
    max_retries: int = 3
    retry_base_delay: float = 1.0  # seconds
    retry_max_delay: float = 10.0  # seconds
    track_latency: bool = True
    window_size: int = 100
    default_timeout: float = 30.0  # seconds, per attempt
    check_availability: bool = True

    @classmethod
    def from_env(cls, env: Optional[Dict[str, str]] = None) -> RouterConfig:
        """Build a configuration from environment variables."""
        from .config import load_router_config
        return load_router_config(env)


# ============================================================
# Request / Response Models
# ============================================================

@dataclass
class GenerationRequest:
    """
    Caller-supplied generation request.

    Example:
        request = GenerationRequest(
            messages=[
                Message.system("You are helpful."),
                Message.user("Hello!")
            ],
            strategy=RoutingStrategy.COST_FIRST,
        )

    If forced_backend is set the strategy is ignored and no fallback
    candidates are considered.
    """
    messages: List[Message]
    model: Optional[str] = None
    temperature: float = 0.7
    max_tokens: Optional[int] = None
    json_mode: bool = False
    strategy: Optional[RoutingStrategy] = None
    forced_backend: Optional[BackendId] = None
    enable_retry: Optional[bool] = None
    max_retries: Optional[int] = None
    timeout: Optional[float] = None  # seconds, per attempt
    metadata: Optional[Dict[str, str]] = None


@dataclass
class Usage:
    """Token usage information."""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __post_init__(self):
        if self.total_tokens == 0:
            self.total_tokens = self.prompt_tokens + self.completion_tokens


@dataclass
class GenerationResult:
    """
    Successful generation.

    Token counts and latency describe the winning attempt only,
    never cumulative retry time.
    """
    content: str
    backend: BackendId
    model: str
    usage: Usage = field(default_factory=Usage)
    latency_ms: float = 0.0
    cost_usd: float = 0.0
    attempts: int = 1
    fallback_used: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "content": self.content,
            "backend": self.backend.value,
            "model": self.model,
            "usage": {
                "prompt_tokens": self.usage.prompt_tokens,
                "completion_tokens": self.usage.completion_tokens,
                "total_tokens": self.usage.total_tokens,
            },
            "latency_ms": round(self.latency_ms, 2),
            "cost_usd": self.cost_usd,
            "attempts": self.attempts,
            "fallback_used": self.fallback_used,
        }


@dataclass
class OutcomeRecord:
    """One attempt against one backend, successful or not."""
    backend: BackendId
    latency_ms: float
    model: str
    success: bool
    timestamp: float = field(default_factory=time.time)
    error: Optional[str] = None
