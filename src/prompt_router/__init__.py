"""prompt-router - Multi-model routing and performance tracking.

Usage:
    from prompt_router import IntelligentRouter, PromptAnalyzer, PerformanceTracker
    from prompt_router.engines import EngineConfig

    tracker = PerformanceTracker()
    tracker.load_historical_metrics()

    router = IntelligentRouter(tracker=tracker)
    router.register_engine("gpt-4o-mini", EngineConfig(name="gpt-4o-mini", model="gpt-4o-mini"))
    router.register_engine("tinyllama", EngineConfig(
        name="tinyllama", model="tinyllama", base_url="http://localhost:11434"))

    analysis = await PromptAnalyzer().analyze("Design a caching layer for our API")
    decision = router.select_optimal_models(analysis)
    print(decision.primary_model.engine_name)
"""

__version__ = "0.1.0"

from prompt_router.analysis import PromptAnalysis, PromptAnalyzer, TaskType
from prompt_router.comparison import ComparisonEngine, ComparisonResult
from prompt_router.config import RouterConfig, get_config, reload_config
from prompt_router.errors import (
    AnalysisClientError,
    InvalidPromptError,
    NoEnginesRegisteredError,
    PromptRouterError,
)
from prompt_router.performance import PerformanceMetrics, PerformanceTracker
from prompt_router.routing import IntelligentRouter, RoutingDecision, UserPreferences

__all__ = [
    "__version__",
    "PromptAnalysis",
    "PromptAnalyzer",
    "TaskType",
    "IntelligentRouter",
    "RoutingDecision",
    "UserPreferences",
    "PerformanceMetrics",
    "PerformanceTracker",
    "ComparisonEngine",
    "ComparisonResult",
    "RouterConfig",
    "get_config",
    "reload_config",
    "PromptRouterError",
    "InvalidPromptError",
    "NoEnginesRegisteredError",
    "AnalysisClientError",
]
