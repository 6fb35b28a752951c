"""Engine boundary types and the analysis completion client."""

from .openai_client import OpenAIChatClient
from .types import (
    EngineConfig,
    EngineResponse,
    TokenUsage,
    is_local_base_url,
    is_local_engine_name,
)

__all__ = [
    "EngineConfig",
    "EngineResponse",
    "TokenUsage",
    "is_local_engine_name",
    "is_local_base_url",
    "OpenAIChatClient",
]
