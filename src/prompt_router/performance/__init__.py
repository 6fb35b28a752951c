"""Performance tracking for routed runs.

Records per-run metrics as one JSON document per run and derives the
summaries the router uses as historical signal.

Usage:
    from prompt_router.performance import (
        ModelPerformance,
        PerformanceMetrics,
        PerformanceTracker,
        TimeRange,
    )

    tracker = PerformanceTracker(metrics_dir=Path(".prompt-router/metrics"))
    tracker.load_historical_metrics()

    tracker.record_run(PerformanceMetrics(
        run_id="run-123",
        prompt="Explain CRDTs",
        models=[ModelPerformance(model_name="gpt-4o-mini", engine="gpt-4o-mini",
                                 execution_time=1800, cost=0.0004, quality_score=8)],
    ))

    summary = tracker.get_performance_summary(TimeRange.last_days(30))
"""

from .store import load_run_metrics, read_run_metrics, run_metrics_path, write_run_metrics
from .tracker import CSV_COLUMNS, PerformanceTracker
from .types import (
    TREND_METRICS,
    TREND_PERIODS,
    ContextMetadata,
    CostAnalysis,
    ModelPerformance,
    ModelUsage,
    PerformanceMetrics,
    PerformanceSummary,
    PerformanceTrend,
    QualityInsights,
    TimeRange,
    TrendPoint,
    UserFeedback,
    model_key,
)

__all__ = [
    # Types (types.py)
    "ModelPerformance",
    "PerformanceMetrics",
    "UserFeedback",
    "ContextMetadata",
    "TimeRange",
    "ModelUsage",
    "PerformanceSummary",
    "CostAnalysis",
    "PerformanceTrend",
    "TrendPoint",
    "QualityInsights",
    "TREND_METRICS",
    "TREND_PERIODS",
    "model_key",
    # Storage (store.py)
    "write_run_metrics",
    "read_run_metrics",
    "load_run_metrics",
    "run_metrics_path",
    # Tracker (tracker.py)
    "PerformanceTracker",
    "CSV_COLUMNS",
]
