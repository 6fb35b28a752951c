"""Scoring components for model routing.

Every component returns a value in [0, 1]; the router combines them with
the weights in ScoringConfig. All thresholds come from ScoringConfig so
they can be overridden and exercised at their boundaries.

Usage:
    >>> from prompt_router.routing.scoring import complexity_fit_score
    >>> complexity_fit_score(complexity=8, complexity_handling=5)
    0.55
"""

import math
from typing import Mapping

from ..analysis.types import TaskType
from ..config import ScoringConfig, TierThreshold
from .capabilities import TASK_REQUIREMENTS, CapabilityProfile, EnginePricing

# Requirements used for a task type missing from the table
DEFAULT_TASK_REQUIREMENTS: Mapping[str, float] = {"accuracy": 0.8}


def historical_component(avg_quality: float) -> float:
    """Normalize a 0-10 average quality score to [0, 1]."""
    return max(0.0, min(1.0, avg_quality / 10.0))


def task_match_score(task_type: TaskType, capabilities: CapabilityProfile) -> float:
    """Weighted mean of the capabilities a task type needs.

    Normalized by the sum of requirement weights, so an engine scoring 10 on
    every required dimension gets exactly 1.0.
    """
    requirements = TASK_REQUIREMENTS.get(task_type, DEFAULT_TASK_REQUIREMENTS)
    total_weight = sum(requirements.values())
    if total_weight <= 0:
        return 0.0
    weighted = sum(
        (capabilities.get(dimension) / 10.0) * weight
        for dimension, weight in requirements.items()
    )
    return weighted / total_weight


def complexity_fit_score(
    complexity: int,
    complexity_handling: int,
    penalty_per_level: float = 0.15,
    floor: float = 0.3,
) -> float:
    """1.0 when the engine handles the complexity, else a floored penalty.

    An under-powered engine is down-weighted, never excluded, so it stays
    available as a backup.
    """
    if complexity <= complexity_handling:
        return 1.0
    overage = complexity - complexity_handling
    return max(floor, round(1.0 - overage * penalty_per_level, 10))


def _tiered_score(
    value: float,
    threshold: TierThreshold,
    decay_per_unit: float,
    acceptable_score: float,
    floor: float,
) -> float:
    if value <= threshold.good:
        return 1.0
    if value <= threshold.acceptable:
        return acceptable_score
    return max(floor, acceptable_score - (value - threshold.acceptable) * decay_per_unit)


def cost_score(cost: float, sensitivity: str, config: ScoringConfig) -> float:
    """Score an estimated USD cost against the sensitivity's tier."""
    return _tiered_score(
        cost,
        config.cost_tiers[sensitivity],
        decay_per_unit=config.cost_decay_per_usd,
        acceptable_score=config.tier_acceptable_score,
        floor=config.tier_floor_score,
    )


def speed_score(time_ms: float, sensitivity: str, config: ScoringConfig) -> float:
    """Score an estimated response time against the sensitivity's tier."""
    return _tiered_score(
        time_ms,
        config.speed_tiers[sensitivity],
        decay_per_unit=1.0 / config.speed_decay_ms,
        acceptable_score=config.tier_acceptable_score,
        floor=config.tier_floor_score,
    )


def split_tokens(estimated_tokens: int, prompt_share: float = 0.3):
    """Split a token estimate into (prompt, completion) token counts."""
    prompt_tokens = math.ceil(round(estimated_tokens * prompt_share, 9))
    completion_tokens = math.ceil(round(estimated_tokens * (1.0 - prompt_share), 9))
    return prompt_tokens, completion_tokens


def estimate_cost(pricing: EnginePricing, estimated_tokens: int, prompt_share: float = 0.3) -> float:
    """Estimated USD cost of one request."""
    prompt_tokens, completion_tokens = split_tokens(estimated_tokens, prompt_share)
    return (
        prompt_tokens * pricing.prompt_per_1k + completion_tokens * pricing.completion_per_1k
    ) / 1000.0


def estimate_time(pricing: EnginePricing, estimated_tokens: int) -> float:
    """Estimated response time of one request in ms."""
    return pricing.base_time_ms + estimated_tokens * pricing.time_per_token_ms
