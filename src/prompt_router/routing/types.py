"""Routing request and decision types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Sensitivity(Enum):
    """How strongly a caller cares about cost, speed or quality."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass
class UserPreferences:
    """Caller preferences for a routing decision.

    Only avoid_models filters engines out. budget_limit, max_response_time
    and min_quality_score are advisory: violations are reported in the
    reasoning and explanation but do not exclude an engine.
    preferred_models wins ties between equally scored engines.
    """

    cost_sensitivity: Sensitivity = Sensitivity.MEDIUM
    speed_sensitivity: Sensitivity = Sensitivity.MEDIUM
    quality_sensitivity: Sensitivity = Sensitivity.MEDIUM
    user_id: Optional[str] = None
    budget_limit: Optional[float] = None
    max_response_time: Optional[float] = None
    min_quality_score: Optional[float] = None
    preferred_models: List[str] = field(default_factory=list)
    avoid_models: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.cost_sensitivity = Sensitivity(self.cost_sensitivity)
        self.speed_sensitivity = Sensitivity(self.speed_sensitivity)
        self.quality_sensitivity = Sensitivity(self.quality_sensitivity)

    def avoids(self, engine_name: str, model: str) -> bool:
        return engine_name in self.avoid_models or model in self.avoid_models

    def prefers(self, engine_name: str, model: str) -> bool:
        return engine_name in self.preferred_models or model in self.preferred_models


@dataclass(frozen=True)
class ModelSelection:
    """One scored candidate engine.

    Attributes:
        engine_name: Registered engine name
        model: Model identifier
        confidence: 0-1, equal to priority
        reasoning: Per-component score notes and advisory warnings
        estimated_cost: USD
        estimated_time: ms
        estimated_quality: 0-10
        priority: Weighted score in [0, 1] used for ranking
        is_local: Whether the engine runs locally
    """

    engine_name: str
    model: str
    confidence: float
    reasoning: Tuple[str, ...]
    estimated_cost: float
    estimated_time: float
    estimated_quality: float
    priority: float
    is_local: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "engineName": self.engine_name,
            "model": self.model,
            "confidence": self.confidence,
            "reasoning": list(self.reasoning),
            "estimatedCost": self.estimated_cost,
            "estimatedTime": self.estimated_time,
            "estimatedQuality": self.estimated_quality,
            "priority": self.priority,
            "isLocal": self.is_local,
        }


@dataclass(frozen=True)
class HybridStrategy:
    """Recommended execution strategy when local and cloud engines are mixed."""

    try_local_first: bool
    fallback_to_cloud: bool
    parallel_execution: bool

    def to_dict(self) -> Dict[str, bool]:
        return {
            "tryLocalFirst": self.try_local_first,
            "fallbackToCloud": self.fallback_to_cloud,
            "parallelExecution": self.parallel_execution,
        }


@dataclass(frozen=True)
class RoutingDecision:
    """Ranked engines and strategy for one routing request.

    total_estimated_time is the max over selected engines when parallel
    execution is recommended and their sum otherwise, since backups only
    run after earlier engines.
    """

    primary_model: ModelSelection
    backup_models: Tuple[ModelSelection, ...]
    total_estimated_cost: float
    total_estimated_time: float
    confidence: float
    explanation: Tuple[str, ...]
    hybrid_strategy: Optional[HybridStrategy] = None

    @property
    def selected_models(self) -> Tuple[ModelSelection, ...]:
        return (self.primary_model,) + tuple(self.backup_models)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "primaryModel": self.primary_model.to_dict(),
            "backupModels": [m.to_dict() for m in self.backup_models],
            "hybridStrategy": self.hybrid_strategy.to_dict() if self.hybrid_strategy else None,
            "totalEstimatedCost": self.total_estimated_cost,
            "totalEstimatedTime": self.total_estimated_time,
            "confidence": self.confidence,
            "explanation": list(self.explanation),
        }
