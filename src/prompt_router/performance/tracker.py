"""Performance Tracker.

Keeps every recorded run in memory, keyed by run_id, and mirrors each run
to a JSON document on disk. Summaries, cost analysis, trends and quality
insights are computed on demand from the in-memory runs.

History is loaded fully into memory, which suits hundreds to low thousands
of runs.
"""

import csv
import io
import json
import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from ..config import MetricsConfig
from ..engines.types import is_local_engine_name, utc_now
from .store import load_run_metrics, write_run_metrics
from .types import (
    TREND_METRICS,
    TREND_PERIODS,
    CostAnalysis,
    ModelUsage,
    PerformanceMetrics,
    PerformanceSummary,
    PerformanceTrend,
    QualityInsights,
    TimeRange,
    TrendPoint,
    UserFeedback,
)

logger = logging.getLogger(__name__)

CSV_COLUMNS = (
    "runId",
    "timestamp",
    "totalCost",
    "totalTime",
    "successRate",
    "averageQualityScore",
    "modelCount",
)

# Cloud spend above this multiple of local spend triggers a recommendation
CLOUD_TO_LOCAL_COST_RATIO = 5
HIGH_AVG_COST_PER_REQUEST = 0.01
QUALITY_SPREAD_THRESHOLD = 2.0
LOW_QUALITY_THRESHOLD = 6.0


def _trend_direction(metric: str, change_percentage: float, stable_threshold: float) -> str:
    if abs(change_percentage) < stable_threshold:
        return "stable"
    increased = change_percentage > 0
    if metric == "cost":
        increased = not increased
    return "improving" if increased else "declining"


def _change_percentage(first: float, last: float) -> float:
    if first == 0:
        if last == 0:
            return 0.0
        return 100.0 if last > 0 else -100.0
    return (last - first) / abs(first) * 100.0


class PerformanceTracker:
    """Record run metrics and derive performance statistics.

    Attributes:
        metrics_dir: Directory holding one JSON document per run
        config: Metrics configuration (baseline cost, trend threshold)
    """

    def __init__(
        self,
        metrics_dir: Optional[Path] = None,
        config: Optional[MetricsConfig] = None,
    ):
        self.config = config or MetricsConfig()
        self.metrics_dir = Path(metrics_dir) if metrics_dir else self.config.directory
        self._metrics: Dict[str, PerformanceMetrics] = {}
        # Serializes record_run, record_user_feedback and load_historical_metrics
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_run(self, metrics: PerformanceMetrics) -> bool:
        """Record a completed run.

        Re-recording a run_id replaces the earlier record. Persistence
        failures are logged and the in-memory record is kept.

        Returns:
            True if the run was written to disk
        """
        with self._lock:
            self._metrics[metrics.run_id] = metrics
            persisted = self._persist(metrics)

        logger.info(
            f"Performance recorded: {metrics.run_id} ({len(metrics.models)} models, "
            f"{metrics.total_time:.0f}ms, ${metrics.total_cost:.4f})"
        )
        return persisted

    def record_user_feedback(self, feedback: UserFeedback) -> bool:
        """Attach feedback to a recorded run and re-persist it.

        Returns:
            False if the run is unknown
        """
        with self._lock:
            metrics = self._metrics.get(feedback.run_id)
            if metrics is None:
                logger.warning(f"Feedback for unknown run {feedback.run_id} ignored")
                return False
            metrics.user_feedback = feedback
            self._persist(metrics)

        logger.info(
            f"User feedback recorded for {feedback.run_id}: {feedback.overall_satisfaction}/5"
        )
        return True

    def load_historical_metrics(self) -> int:
        """Load every stored run into memory.

        A missing metrics directory means there is no history yet. Runs
        already held in memory are newer than their stored copies and are
        kept as they are.

        Returns:
            Number of runs held in memory afterwards
        """
        with self._lock:
            runs = load_run_metrics(self.metrics_dir)
            for run in runs:
                self._metrics.setdefault(run.run_id, run)
            count = len(self._metrics)

        logger.info(f"Loaded {len(runs)} historical metrics from {self.metrics_dir}")
        return count

    def _persist(self, metrics: PerformanceMetrics) -> bool:
        try:
            write_run_metrics(metrics, self.metrics_dir)
            return True
        except OSError as e:
            logger.warning(f"Failed to persist metrics for {metrics.run_id}: {e}")
            return False

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_run_metrics(self, run_id: str) -> Optional[PerformanceMetrics]:
        return self._metrics.get(run_id)

    @property
    def runs(self) -> List[PerformanceMetrics]:
        """All recorded runs, oldest first."""
        return sorted(self._metrics.values(), key=lambda m: m.timestamp)

    def _runs_in(self, time_range: Optional[TimeRange]) -> List[PerformanceMetrics]:
        runs = self.runs
        if time_range is None:
            return runs
        return [m for m in runs if time_range.contains(m.timestamp)]

    @staticmethod
    def _model_stats(runs: Iterable[PerformanceMetrics]) -> Dict[str, Tuple[int, float, int]]:
        """Per model key: (usage, total quality score, scored count)."""
        stats: Dict[str, Tuple[int, float, int]] = {}
        for run in runs:
            for model in run.models:
                usage, total_score, scored = stats.get(model.key, (0, 0.0, 0))
                usage += 1
                if model.quality_score is not None:
                    total_score += model.quality_score
                    scored += 1
                stats[model.key] = (usage, total_score, scored)
        return stats

    def get_performance_summary(
        self,
        time_range: Optional[TimeRange] = None,
        top_n: Optional[int] = None,
    ) -> PerformanceSummary:
        """Aggregate the runs within a time range.

        Args:
            time_range: Window to aggregate; None means all runs
            top_n: Number of most-used models to list (default from config)
        """
        runs = self._runs_in(time_range)
        if not runs:
            return PerformanceSummary()

        top_n = top_n if top_n is not None else self.config.top_models

        total_cost = sum(m.total_cost for m in runs)
        avg_response_time = sum(m.total_time for m in runs) / len(runs)

        scored_runs = [m.average_quality_score for m in runs if m.average_quality_score is not None]
        avg_quality = sum(scored_runs) / len(scored_runs) if scored_runs else 0.0

        successful_runs = sum(1 for m in runs if m.success_rate > 0)

        top_models = [
            ModelUsage(
                model=key,
                usage=usage,
                avg_score=total_score / scored if scored else 0.0,
            )
            for key, (usage, total_score, scored) in self._model_stats(runs).items()
        ]
        top_models.sort(key=lambda u: u.usage, reverse=True)

        return PerformanceSummary(
            total_runs=len(runs),
            total_cost=total_cost,
            avg_response_time=avg_response_time,
            avg_quality_score=avg_quality,
            success_rate=successful_runs / len(runs),
            top_models=top_models[:top_n],
        )

    def get_model_quality_scores(self, time_range: Optional[TimeRange] = None) -> Dict[str, float]:
        """Average quality score per model key, for models that were scored."""
        return {
            key: total_score / scored
            for key, (_, total_score, scored) in self._model_stats(self._runs_in(time_range)).items()
            if scored
        }

    def analyze_cost_efficiency(
        self,
        time_range: Optional[TimeRange] = None,
        now: Optional[datetime] = None,
    ) -> CostAnalysis:
        """Break down spending and project it forward."""
        runs = self._runs_in(time_range)
        if not runs:
            return CostAnalysis(
                total_spent=0.0,
                cost_by_model={},
                avg_cost_per_request=0.0,
                cost_savings_vs_baseline=0.0,
                projected_monthly_cost=0.0,
                recommendations=["No data available for analysis"],
            )

        total_spent = sum(run.total_cost for run in runs)
        cost_by_model: Dict[str, float] = {}
        local_cost = 0.0
        for run in runs:
            for model in run.models:
                cost_by_model[model.key] = cost_by_model.get(model.key, 0.0) + model.cost
                if is_local_engine_name(model.engine) or is_local_engine_name(model.model_name):
                    local_cost += model.cost

        avg_cost_per_request = total_spent / len(runs)
        baseline_cost = len(runs) * self.config.baseline_cost_per_run
        savings = max(0.0, baseline_cost - total_spent)

        now = now or utc_now()
        days_of_data = max(1.0, (now - runs[0].timestamp).total_seconds() / 86400)
        projected_monthly_cost = total_spent / days_of_data * 30

        recommendations: List[str] = []
        cloud_cost = total_spent - local_cost
        if cloud_cost > local_cost * CLOUD_TO_LOCAL_COST_RATIO:
            recommendations.append("Consider using local models more frequently for simple tasks")
        if avg_cost_per_request > HIGH_AVG_COST_PER_REQUEST:
            recommendations.append(
                "Average cost per request is high - review model selection strategy"
            )
        if savings > 0:
            recommendations.append(f"Saving ${savings:.4f} vs baseline GPT-4-class usage")

        return CostAnalysis(
            total_spent=total_spent,
            cost_by_model=cost_by_model,
            avg_cost_per_request=avg_cost_per_request,
            cost_savings_vs_baseline=savings,
            projected_monthly_cost=projected_monthly_cost,
            recommendations=recommendations,
        )

    def _metric_value(self, run: PerformanceMetrics, metric: str) -> Optional[float]:
        if metric == "cost":
            return run.total_cost
        if metric == "responseTime":
            return run.total_time
        if metric == "qualityScore":
            return run.average_quality_score
        return run.success_rate

    def get_trends(
        self,
        metric: str,
        period: str = "day",
        now: Optional[datetime] = None,
    ) -> Optional[PerformanceTrend]:
        """Compare the first and last value of a metric within a trailing window.

        Args:
            metric: One of cost, responseTime, qualityScore, successRate
            period: One of hour, day, week, month
            now: End of the window (defaults to the current time)

        Returns:
            PerformanceTrend, or None if the window holds no data points
        """
        if metric not in TREND_METRICS:
            raise ValueError(f"Unknown trend metric '{metric}', must be one of {TREND_METRICS}")
        if period not in TREND_PERIODS:
            raise ValueError(f"Unknown trend period '{period}', must be one of {tuple(TREND_PERIODS)}")

        now = now or utc_now()
        cutoff = now - TREND_PERIODS[period]

        points: List[TrendPoint] = []
        for run in self.runs:
            if not cutoff <= run.timestamp <= now:
                continue
            value = self._metric_value(run, metric)
            if value is not None:
                points.append(TrendPoint(timestamp=run.timestamp, value=value))

        if not points:
            return None

        change = _change_percentage(points[0].value, points[-1].value) if len(points) > 1 else 0.0
        return PerformanceTrend(
            metric=metric,
            period=period,
            trend=_trend_direction(metric, change, self.config.stable_trend_threshold_pct),
            change_percentage=change,
            data_points=points,
        )

    def get_quality_insights(self) -> QualityInsights:
        """Average quality per model with recommendations."""
        avg_quality_by_model = self.get_model_quality_scores()

        quality_trends = [
            trend
            for trend in (self.get_trends("qualityScore", p) for p in ("day", "week"))
            if trend is not None
        ]

        recommendations: List[str] = []
        ranked = sorted(avg_quality_by_model.items(), key=lambda item: item[1], reverse=True)
        if ranked:
            best_model, best_score = ranked[0]
            worst_model, worst_score = ranked[-1]
            if best_score - worst_score > QUALITY_SPREAD_THRESHOLD:
                recommendations.append(
                    f"Consider using {best_model} more often (avg quality: {best_score:.1f})"
                )
            if worst_score < LOW_QUALITY_THRESHOLD:
                recommendations.append(
                    f"{worst_model} shows low quality scores (avg: {worst_score:.1f}) - review its usage"
                )

        return QualityInsights(
            avg_quality_by_model=avg_quality_by_model,
            quality_trends=quality_trends,
            recommendations=recommendations,
        )

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def export_metrics(self, format: str = "json") -> str:
        """Export all runs as JSON (full documents) or CSV (summary columns)."""
        runs = self.runs
        if format == "json":
            return json.dumps([m.to_dict() for m in runs], indent=2)
        if format == "csv":
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            writer.writerow(CSV_COLUMNS)
            for m in runs:
                doc = m.to_dict()
                writer.writerow([
                    m.run_id,
                    doc["timestamp"],
                    m.total_cost,
                    m.total_time,
                    m.success_rate,
                    m.average_quality_score or 0,
                    len(m.models),
                ])
            return buffer.getvalue()
        raise ValueError(f"Unsupported export format '{format}', must be 'json' or 'csv'")
