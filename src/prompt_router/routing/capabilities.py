"""Engine capability profiles and the per-engine cost/time model.

Each engine carries a static capability vector (six 1-10 scores) and a
linear pricing/latency model. Well-known engine names get tuned defaults;
any other engine derives its pricing and latency from its cost_efficiency
and speed scores.
"""

from dataclasses import dataclass, fields
from typing import Dict, Optional

from ..analysis.types import TaskType
from ..engines.types import EngineConfig, is_local_base_url, is_local_engine_name

CAPABILITY_DIMENSIONS = (
    "code_generation",
    "creativity",
    "accuracy",
    "speed",
    "cost_efficiency",
    "complexity_handling",
)


@dataclass(frozen=True)
class CapabilityProfile:
    """Static scoring attributes of an engine, each on a 1-10 scale."""

    code_generation: int = 7
    creativity: int = 7
    accuracy: int = 7
    speed: int = 5
    cost_efficiency: int = 5
    complexity_handling: int = 7

    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not 1 <= value <= 10:
                raise ValueError(f"CapabilityProfile.{f.name} must be within 1-10, got {value!r}")

    def get(self, dimension: str) -> int:
        if dimension not in CAPABILITY_DIMENSIONS:
            raise KeyError(f"Unknown capability dimension: {dimension}")
        return getattr(self, dimension)


@dataclass(frozen=True)
class EnginePricing:
    """Linear cost and latency model.

    Attributes:
        prompt_per_1k: USD per 1K prompt tokens
        completion_per_1k: USD per 1K completion tokens
        base_time_ms: Fixed latency per request
        time_per_token_ms: Added latency per estimated token
    """

    prompt_per_1k: float
    completion_per_1k: float
    base_time_ms: float
    time_per_token_ms: float = 2.0

    def __post_init__(self):
        if min(self.prompt_per_1k, self.completion_per_1k, self.base_time_ms, self.time_per_token_ms) < 0:
            raise ValueError("EnginePricing values must be non-negative")


KNOWN_ENGINE_CAPABILITIES: Dict[str, CapabilityProfile] = {
    "gpt-4o": CapabilityProfile(accuracy=10, complexity_handling=10, cost_efficiency=3),
    "gpt-4o-mini": CapabilityProfile(
        accuracy=8, complexity_handling=8, speed=8, cost_efficiency=8
    ),
    "claude-sonnet": CapabilityProfile(
        accuracy=9, creativity=9, complexity_handling=9, cost_efficiency=4
    ),
    "claude-haiku": CapabilityProfile(speed=9, cost_efficiency=8, complexity_handling=6),
    "tinyllama": CapabilityProfile(speed=9, cost_efficiency=10, accuracy=6, complexity_handling=5),
    "local": CapabilityProfile(speed=9, cost_efficiency=10, accuracy=6, complexity_handling=5),
}

KNOWN_ENGINE_PRICING: Dict[str, EnginePricing] = {
    "gpt-4o": EnginePricing(0.005, 0.015, base_time_ms=15000),
    "gpt-4o-mini": EnginePricing(0.00015, 0.0006, base_time_ms=8000),
    "claude-sonnet": EnginePricing(0.003, 0.015, base_time_ms=10000),
    "claude-haiku": EnginePricing(0.00025, 0.00125, base_time_ms=5000),
    "tinyllama": EnginePricing(0.0, 0.0, base_time_ms=3000),
    "local": EnginePricing(0.0, 0.0, base_time_ms=3000),
}

# Capability dimensions each task type needs, with relative weights
TASK_REQUIREMENTS: Dict[TaskType, Dict[str, float]] = {
    TaskType.CODE_GENERATION: {"code_generation": 1.0, "accuracy": 0.8},
    TaskType.CODE_REVIEW: {"accuracy": 1.0, "code_generation": 0.8},
    TaskType.ARCHITECTURE_DESIGN: {"complexity_handling": 1.0, "accuracy": 0.9},
    TaskType.DEBUGGING: {"accuracy": 1.0, "code_generation": 0.7},
    TaskType.DOCUMENTATION: {"accuracy": 0.8, "creativity": 0.5},
    TaskType.ANALYSIS: {"accuracy": 1.0, "complexity_handling": 0.8},
    TaskType.CREATIVE_WRITING: {"creativity": 1.0, "accuracy": 0.6},
    TaskType.QUESTION_ANSWERING: {"accuracy": 0.8},
    TaskType.PLANNING: {"complexity_handling": 0.9, "accuracy": 0.8},
    TaskType.BRAINSTORMING: {"creativity": 1.0, "speed": 0.5},
    TaskType.DATA_PROCESSING: {"accuracy": 1.0, "code_generation": 0.7},
    TaskType.GENERAL_CHAT: {"accuracy": 0.7, "creativity": 0.6},
}


def default_capabilities(engine_name: str) -> CapabilityProfile:
    return KNOWN_ENGINE_CAPABILITIES.get(engine_name.lower(), CapabilityProfile())


def derived_pricing(capabilities: CapabilityProfile) -> EnginePricing:
    """Pricing for an engine without a known price sheet.

    Cheaper as cost_efficiency rises and faster as speed rises.
    """
    cost_factor = 11 - capabilities.cost_efficiency
    return EnginePricing(
        prompt_per_1k=0.0005 * cost_factor,
        completion_per_1k=0.0015 * cost_factor,
        base_time_ms=1500.0 * (11 - capabilities.speed),
    )


@dataclass(frozen=True)
class EngineProfile:
    """A registered engine: identity, capabilities and cost/time model."""

    name: str
    model: str
    capabilities: CapabilityProfile
    pricing: EnginePricing
    base_url: Optional[str] = None
    is_local: bool = False

    @classmethod
    def from_config(
        cls,
        name: str,
        config: EngineConfig,
        capabilities: Optional[CapabilityProfile] = None,
        pricing: Optional[EnginePricing] = None,
        is_local: Optional[bool] = None,
    ) -> "EngineProfile":
        """Resolve defaults for anything not given explicitly.

        Known engine names supply tuned capabilities and prices. Locality
        is inferred from the engine name, model, or a loopback base_url.
        """
        capabilities = capabilities or default_capabilities(name)
        if pricing is None:
            pricing = KNOWN_ENGINE_PRICING.get(name.lower()) or derived_pricing(capabilities)
        if is_local is None:
            is_local = (
                is_local_engine_name(name)
                or is_local_engine_name(config.model)
                or is_local_base_url(config.base_url)
            )
        return cls(
            name=name,
            model=config.model,
            capabilities=capabilities,
            pricing=pricing,
            base_url=config.base_url,
            is_local=is_local,
        )
