"""Model scoring and routing decisions.

Example usage:
    from prompt_router.routing import IntelligentRouter, UserPreferences
    from prompt_router.engines import EngineConfig

    router = IntelligentRouter()
    router.register_engine("gpt-4o-mini", EngineConfig(name="gpt-4o-mini", model="gpt-4o-mini"))
    decision = router.select_optimal_models(analysis, UserPreferences(), max_models=2)
"""

from .capabilities import (
    CAPABILITY_DIMENSIONS,
    KNOWN_ENGINE_CAPABILITIES,
    KNOWN_ENGINE_PRICING,
    TASK_REQUIREMENTS,
    CapabilityProfile,
    EnginePricing,
    EngineProfile,
    default_capabilities,
    derived_pricing,
)
from .router import IntelligentRouter
from .scoring import (
    complexity_fit_score,
    cost_score,
    estimate_cost,
    estimate_time,
    historical_component,
    speed_score,
    split_tokens,
    task_match_score,
)
from .types import HybridStrategy, ModelSelection, RoutingDecision, Sensitivity, UserPreferences

__all__ = [
    # Types (types.py)
    "Sensitivity",
    "UserPreferences",
    "ModelSelection",
    "HybridStrategy",
    "RoutingDecision",
    # Capabilities (capabilities.py)
    "CAPABILITY_DIMENSIONS",
    "CapabilityProfile",
    "EnginePricing",
    "EngineProfile",
    "KNOWN_ENGINE_CAPABILITIES",
    "KNOWN_ENGINE_PRICING",
    "TASK_REQUIREMENTS",
    "default_capabilities",
    "derived_pricing",
    # Scoring (scoring.py)
    "historical_component",
    "task_match_score",
    "complexity_fit_score",
    "cost_score",
    "speed_score",
    "split_tokens",
    "estimate_cost",
    "estimate_time",
    # Router (router.py)
    "IntelligentRouter",
]
