"""Engine collaborator types.

These describe the boundary between the routing core and whatever actually
executes a model. The core never calls an engine itself; callers run the
engines named in a RoutingDecision and hand back EngineResponse objects.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class EngineConfig:
    """Registration details for an engine.

    Attributes:
        name: Engine name used for routing (e.g., "gpt-4o-mini", "tinyllama")
        model: Model identifier the engine runs
        base_url: Optional connection target (local engines usually set this)
    """

    name: str
    model: str
    base_url: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("EngineConfig.name cannot be empty")
        if not self.model:
            raise ValueError("EngineConfig.model cannot be empty")


@dataclass
class TokenUsage:
    """Token usage reported by an engine."""

    prompt: int = 0
    completion: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "promptTokens": self.prompt,
            "completionTokens": self.completion,
            "totalTokens": self.total,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TokenUsage":
        prompt = int(data.get("promptTokens", data.get("prompt", 0)) or 0)
        completion = int(data.get("completionTokens", data.get("completion", 0)) or 0)
        total = int(data.get("totalTokens", data.get("total", prompt + completion)) or 0)
        return cls(prompt=prompt, completion=completion, total=total)


@dataclass
class EngineResponse:
    """Result of executing one engine.

    Attributes:
        engine: Engine name
        model: Model identifier that produced the content
        content: Response text (empty on failure)
        execution_time: Wall-clock execution time in milliseconds
        error: Error message if the engine failed
        token_usage: Optional token counts
        timestamp: When the response was produced
        metadata: Free-form engine metadata
    """

    engine: str
    model: str
    content: str
    execution_time: float
    error: Optional[str] = None
    token_usage: Optional[TokenUsage] = None
    timestamp: datetime = field(default_factory=utc_now)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        """True if the response has no error and non-blank content."""
        return not self.error and bool(self.content and self.content.strip())


# Name fragments and hosts that identify locally-run engines
LOCAL_ENGINE_MARKERS = ("local", "tinyllama", "ollama", "llamacpp", "llama.cpp", "lmstudio")
LOCAL_HOSTS = ("localhost", "127.0.0.1", "0.0.0.0", "[::1]")


def is_local_engine_name(name: str) -> bool:
    """True if an engine or model key names a local runtime."""
    lowered = name.lower()
    return any(marker in lowered for marker in LOCAL_ENGINE_MARKERS)


def is_local_base_url(base_url: Optional[str]) -> bool:
    """True if a connection target points at this machine."""
    if not base_url:
        return False
    lowered = base_url.lower()
    return any(f"//{host}" in lowered for host in LOCAL_HOSTS)
