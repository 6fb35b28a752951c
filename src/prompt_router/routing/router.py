"""Intelligent model router.

Scores every registered engine for a PromptAnalysis and returns a ranked
RoutingDecision. Scoring combines five components (weights from
ScoringConfig):

    historical     average quality from the performance tracker
    task_match     capabilities required by the task type
    complexity_fit whether the engine handles the prompt's complexity
    cost           estimated cost against the caller's cost sensitivity
    speed          estimated time against the caller's speed sensitivity

Example usage:
    router = IntelligentRouter(tracker=tracker)
    router.register_engine("tinyllama", EngineConfig(
        name="tinyllama", model="tinyllama", base_url="http://localhost:11434"))
    router.register_engine("gpt-4o", EngineConfig(name="gpt-4o", model="gpt-4o"))

    decision = router.select_optimal_models(analysis, UserPreferences(cost_sensitivity="high"))
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from ..analysis.types import PromptAnalysis, Urgency
from ..config import EngineEntry, ScoringConfig
from ..engines.types import EngineConfig
from ..errors import NoEnginesRegisteredError
from ..performance.tracker import PerformanceTracker
from ..performance.types import TimeRange, model_key
from .capabilities import CapabilityProfile, EnginePricing, EngineProfile, default_capabilities
from .scoring import (
    complexity_fit_score,
    cost_score,
    estimate_cost,
    estimate_time,
    historical_component,
    speed_score,
    task_match_score,
)
from .types import HybridStrategy, ModelSelection, RoutingDecision, Sensitivity, UserPreferences

logger = logging.getLogger(__name__)


class IntelligentRouter:
    """Rank registered engines for a prompt.

    Attributes:
        tracker: Optional source of historical quality scores
        config: Scoring weights and thresholds
    """

    def __init__(
        self,
        tracker: Optional[PerformanceTracker] = None,
        config: Optional[ScoringConfig] = None,
    ):
        self.tracker = tracker
        self.config = config or ScoringConfig()
        self._engines: Dict[str, EngineProfile] = {}

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------

    def register_engine(
        self,
        name: str,
        config: EngineConfig,
        capabilities: Optional[CapabilityProfile] = None,
        pricing: Optional[EnginePricing] = None,
        is_local: Optional[bool] = None,
    ) -> EngineProfile:
        """Register (or replace) an engine. No network access happens here."""
        profile = EngineProfile.from_config(
            name, config, capabilities=capabilities, pricing=pricing, is_local=is_local
        )
        self._engines[name] = profile
        logger.debug(f"Registered engine {name} (model={profile.model}, local={profile.is_local})")
        return profile

    def register_configured_engines(self, entries: Iterable[EngineEntry]) -> List[EngineProfile]:
        """Register every engine declared in the ``engines`` config section."""
        profiles = []
        for entry in entries:
            capabilities = None
            if entry.capabilities is not None:
                capabilities = replace(
                    default_capabilities(entry.name),
                    **entry.capabilities.model_dump(exclude_none=True),
                )
            pricing = EnginePricing(**entry.pricing.model_dump()) if entry.pricing else None
            config = EngineConfig(
                name=entry.name, model=entry.model or entry.name, base_url=entry.base_url
            )
            profiles.append(
                self.register_engine(
                    entry.name,
                    config,
                    capabilities=capabilities,
                    pricing=pricing,
                    is_local=entry.is_local,
                )
            )
        return profiles

    def unregister_engine(self, name: str) -> bool:
        return self._engines.pop(name, None) is not None

    @property
    def engines(self) -> Dict[str, EngineProfile]:
        return dict(self._engines)

    # ------------------------------------------------------------------
    # Scoring
    # ------------------------------------------------------------------

    def historical_scores(self, now: Optional[datetime] = None) -> Dict[str, float]:
        """Average quality per model key over the configured history window."""
        if self.tracker is None:
            return {}
        window = TimeRange.last_days(self.config.history_window_days, now=now)
        return self.tracker.get_model_quality_scores(window)

    def score_engine(
        self,
        profile: EngineProfile,
        analysis: PromptAnalysis,
        preferences: UserPreferences,
        historical: Optional[Dict[str, float]] = None,
    ) -> ModelSelection:
        """Score one engine for an analysis."""
        weights = self.config.weights
        reasoning: List[str] = []

        avg_quality = (historical or {}).get(model_key(profile.model, profile.name))
        if avg_quality is None:
            avg_quality = self.config.default_historical_score
        history = historical_component(avg_quality)
        reasoning.append(f"Historical avg: {avg_quality:.1f}/10")

        task_match = task_match_score(analysis.task_type, profile.capabilities)
        reasoning.append(f"Task match: {task_match * 10:.1f}/10")

        complexity_fit = complexity_fit_score(
            analysis.complexity,
            profile.capabilities.complexity_handling,
            penalty_per_level=self.config.complexity_penalty_per_level,
            floor=self.config.complexity_floor,
        )
        reasoning.append(f"Complexity fit: {complexity_fit * 10:.1f}/10")

        estimated_cost = estimate_cost(
            profile.pricing, analysis.estimated_tokens, self.config.prompt_token_share
        )
        cost = cost_score(estimated_cost, preferences.cost_sensitivity.value, self.config)
        reasoning.append(f"Cost efficiency: {cost * 10:.1f}/10")

        estimated_time = estimate_time(profile.pricing, analysis.estimated_tokens)
        speed = speed_score(estimated_time, preferences.speed_sensitivity.value, self.config)
        reasoning.append(f"Speed score: {speed * 10:.1f}/10")

        score = (
            weights.historical * history
            + weights.task_match * task_match
            + weights.complexity_fit * complexity_fit
            + weights.cost * cost
            + weights.speed * speed
        )
        estimated_quality = score * 10

        if preferences.budget_limit is not None and estimated_cost > preferences.budget_limit:
            reasoning.append(
                f"Exceeds budget limit (${estimated_cost:.4f} > ${preferences.budget_limit:.4f})"
            )
        if (
            preferences.max_response_time is not None
            and estimated_time > preferences.max_response_time
        ):
            reasoning.append(
                f"Exceeds max response time ({estimated_time:.0f}ms > {preferences.max_response_time:.0f}ms)"
            )
        if (
            preferences.min_quality_score is not None
            and estimated_quality < preferences.min_quality_score
        ):
            reasoning.append(
                f"Below minimum quality ({estimated_quality:.1f} < {preferences.min_quality_score:.1f})"
            )
        if preferences.prefers(profile.name, profile.model):
            reasoning.append("Preferred model")

        return ModelSelection(
            engine_name=profile.name,
            model=profile.model,
            confidence=min(1.0, score),
            reasoning=tuple(reasoning),
            estimated_cost=estimated_cost,
            estimated_time=estimated_time,
            estimated_quality=estimated_quality,
            priority=score,
            is_local=profile.is_local,
        )

    def select_optimal_models(
        self,
        analysis: PromptAnalysis,
        preferences: Optional[UserPreferences] = None,
        max_models: int = 3,
    ) -> RoutingDecision:
        """Rank engines and build a routing decision.

        Args:
            analysis: Prompt analysis
            preferences: Caller preferences (all sensitivities medium if None)
            max_models: Maximum engines in the decision; capped at the
                number of candidates

        Raises:
            NoEnginesRegisteredError: If no engine is registered or all are avoided
            ValueError: If max_models < 1
        """
        if max_models < 1:
            raise ValueError("max_models must be at least 1")
        if not self._engines:
            raise NoEnginesRegisteredError("No engines registered for routing")

        preferences = preferences or UserPreferences()
        candidates = [
            profile
            for profile in self._engines.values()
            if not preferences.avoids(profile.name, profile.model)
        ]
        if not candidates:
            raise NoEnginesRegisteredError("All registered engines are excluded by avoid_models")

        historical = self.historical_scores()
        selections = [
            self.score_engine(profile, analysis, preferences, historical) for profile in candidates
        ]
        # Stable sort keeps registration order among exact ties
        ranked = sorted(
            selections,
            key=lambda s: (s.priority, preferences.prefers(s.engine_name, s.model)),
            reverse=True,
        )
        selected = ranked[:max_models]
        primary, backups = selected[0], tuple(selected[1:])

        hybrid = self.determine_hybrid_strategy(analysis, preferences, selected)
        if hybrid is not None and hybrid.parallel_execution:
            total_time = max(s.estimated_time for s in selected)
        else:
            total_time = sum(s.estimated_time for s in selected)

        decision = RoutingDecision(
            primary_model=primary,
            backup_models=backups,
            hybrid_strategy=hybrid,
            total_estimated_cost=sum(s.estimated_cost for s in selected),
            total_estimated_time=total_time,
            confidence=primary.confidence,
            explanation=tuple(self._explain(analysis, preferences, selected, hybrid)),
        )
        logger.info(
            f"Routed {analysis.task_type.value} (complexity {analysis.complexity}) to "
            f"{primary.engine_name} with {len(backups)} backup(s)"
        )
        return decision

    def determine_hybrid_strategy(
        self,
        analysis: PromptAnalysis,
        preferences: UserPreferences,
        selected: List[ModelSelection],
    ) -> Optional[HybridStrategy]:
        """Strategy for a selection mixing local and cloud engines, else None."""
        has_local = any(s.is_local for s in selected)
        has_cloud = any(not s.is_local for s in selected)
        if not (has_local and has_cloud):
            return None

        return HybridStrategy(
            try_local_first=(
                analysis.complexity <= self.config.local_first_max_complexity
                and preferences.cost_sensitivity != Sensitivity.LOW
            ),
            fallback_to_cloud=True,
            parallel_execution=(
                analysis.urgency == Urgency.HIGH
                or preferences.speed_sensitivity == Sensitivity.HIGH
            ),
        )

    def _explain(
        self,
        analysis: PromptAnalysis,
        preferences: UserPreferences,
        selected: List[ModelSelection],
        hybrid: Optional[HybridStrategy],
    ) -> List[str]:
        primary = selected[0]
        explanation = [
            f"Task: {analysis.task_type.value} with complexity {analysis.complexity}/10",
            f"Primary model: {primary.model} (confidence: {primary.confidence * 100:.1f}%)",
        ]
        if hybrid is not None:
            if hybrid.try_local_first:
                explanation.append("Strategy: Try local model first for cost efficiency")
            if hybrid.parallel_execution:
                explanation.append("Strategy: Parallel execution for faster results")
        explanation.append(f"Estimated cost: ${primary.estimated_cost:.4f}")
        explanation.append(f"Estimated time: {primary.estimated_time / 1000:.1f}s")
        if preferences.quality_sensitivity == Sensitivity.HIGH and primary.estimated_quality < 7:
            explanation.append(
                f"Quality is a priority but the best estimate is {primary.estimated_quality:.1f}/10"
            )
        warnings = [r for r in primary.reasoning if r.startswith(("Exceeds", "Below"))]
        explanation.extend(f"Warning: {w}" for w in warnings)
        return explanation
