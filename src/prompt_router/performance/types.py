"""Performance Metric Types.

Core dataclasses for run metrics and the summaries derived from them.
PerformanceMetrics is the only durable entity; it serializes to the camelCase
JSON document stored one-per-run on disk.
"""

import math
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from ..engines.types import EngineResponse, TokenUsage, utc_now

TREND_METRICS = ("cost", "responseTime", "qualityScore", "successRate")

TREND_PERIODS: Dict[str, timedelta] = {
    "hour": timedelta(hours=1),
    "day": timedelta(days=1),
    "week": timedelta(days=7),
    "month": timedelta(days=30),
}


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 timestamp; naive values are taken as UTC."""
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_timestamp(value: datetime) -> str:
    return parse_timestamp(value).astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _require_object(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise ValueError(f"{name} must be an object, got {type(value).__name__}")
    return value


def model_key(model_name: str, engine: str) -> str:
    """Key used to aggregate per-model statistics across runs."""
    return f"{model_name} ({engine})"


@dataclass
class ModelPerformance:
    """Outcome of one model invocation within a run.

    Attributes:
        model_name: Model identifier
        engine: Engine name that ran the model
        execution_time: Milliseconds
        cost: USD
        token_usage: Optional token counts
        quality_score: Optional 1-10 quality rating
        success: Whether the invocation produced a usable response
        error: Error message on failure
        timestamp: When the invocation finished
    """

    model_name: str
    engine: str
    execution_time: float
    cost: float = 0.0
    token_usage: Optional[TokenUsage] = None
    quality_score: Optional[float] = None
    success: bool = True
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.timestamp = parse_timestamp(self.timestamp)
        if self.cost < 0:
            raise ValueError("ModelPerformance.cost must be non-negative")
        if self.quality_score is not None and not 1 <= self.quality_score <= 10:
            raise ValueError("ModelPerformance.quality_score must be within 1-10")

    @property
    def key(self) -> str:
        return model_key(self.model_name, self.engine)

    @classmethod
    def from_engine_response(
        cls,
        response: EngineResponse,
        cost: float = 0.0,
        quality_score: Optional[float] = None,
    ) -> "ModelPerformance":
        """Derive a performance record from an executed engine response."""
        return cls(
            model_name=response.model,
            engine=response.engine,
            execution_time=response.execution_time,
            cost=cost,
            token_usage=response.token_usage,
            quality_score=quality_score,
            success=response.is_valid,
            error=response.error,
            timestamp=response.timestamp,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "modelName": self.model_name,
            "engine": self.engine,
            "executionTime": self.execution_time,
            "cost": self.cost,
            "success": self.success,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.token_usage is not None:
            data["tokenUsage"] = self.token_usage.to_dict()
        if self.quality_score is not None:
            data["qualityScore"] = self.quality_score
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ModelPerformance":
        data = _require_object(data, "model entry")
        usage = data.get("tokenUsage")
        token_usage = TokenUsage.from_dict(_require_object(usage, "tokenUsage")) if usage else None
        return cls(
            model_name=data["modelName"],
            engine=data["engine"],
            execution_time=data.get("executionTime", 0),
            cost=data.get("cost", 0.0),
            token_usage=token_usage,
            quality_score=data.get("qualityScore"),
            success=data.get("success", True),
            error=data.get("error"),
            timestamp=parse_timestamp(data["timestamp"]) if data.get("timestamp") else utc_now(),
        )


@dataclass
class UserFeedback:
    """Feedback attached to a run after it completed."""

    run_id: str
    overall_satisfaction: int  # 1-5
    user_id: Optional[str] = None
    best_model: Optional[str] = None
    worst_model: Optional[str] = None
    comments: Optional[str] = None
    timestamp: datetime = field(default_factory=utc_now)

    def __post_init__(self):
        self.timestamp = parse_timestamp(self.timestamp)
        if not 1 <= self.overall_satisfaction <= 5:
            raise ValueError("UserFeedback.overall_satisfaction must be within 1-5")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "runId": self.run_id,
            "overallSatisfaction": self.overall_satisfaction,
            "timestamp": format_timestamp(self.timestamp),
        }
        for key, value in (
            ("userId", self.user_id),
            ("bestModel", self.best_model),
            ("worstModel", self.worst_model),
            ("comments", self.comments),
        ):
            if value is not None:
                data[key] = value
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserFeedback":
        data = _require_object(data, "userFeedback")
        return cls(
            run_id=data["runId"],
            overall_satisfaction=data["overallSatisfaction"],
            user_id=data.get("userId"),
            best_model=data.get("bestModel"),
            worst_model=data.get("worstModel"),
            comments=data.get("comments"),
            timestamp=parse_timestamp(data["timestamp"]) if data.get("timestamp") else utc_now(),
        )


@dataclass
class ContextMetadata:
    """How a run was executed."""

    concurrent: bool = False
    max_concurrency: Optional[int] = None
    timeout: float = 0.0
    retries: int = 0

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "concurrent": self.concurrent,
            "timeout": self.timeout,
            "retries": self.retries,
        }
        if self.max_concurrency is not None:
            data["maxConcurrency"] = self.max_concurrency
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ContextMetadata":
        data = _require_object(data, "contextMetadata")
        return cls(
            concurrent=data.get("concurrent", False),
            max_concurrency=data.get("maxConcurrency"),
            timeout=data.get("timeout", 0.0),
            retries=data.get("retries", 0),
        )


@dataclass
class PerformanceMetrics:
    """Metrics for one completed multi-model run.

    total_cost, success_rate, total_time and average_quality_score are
    derived from ``models`` when omitted. A given total_cost or success_rate
    that disagrees with ``models`` is rejected.

    Attributes:
        run_id: Unique run identifier; also the file name on disk
        prompt: Prompt text that was routed
        models: One record per model invocation
        timestamp: Run completion time
        total_cost: Sum of model costs (USD)
        total_time: Run wall-clock time in ms
        success_rate: Successful invocations / invocations (0-1)
        average_quality_score: Mean of available model quality scores
        user_feedback: Feedback attached after completion
        task_complexity: Prompt complexity (1-10) if known
        context_metadata: Concurrency/timeout/retry settings of the run
    """

    run_id: str
    prompt: str
    models: List[ModelPerformance]
    timestamp: datetime = field(default_factory=utc_now)
    total_cost: Optional[float] = None
    total_time: Optional[float] = None
    success_rate: Optional[float] = None
    average_quality_score: Optional[float] = None
    user_feedback: Optional[UserFeedback] = None
    task_complexity: Optional[int] = None
    context_metadata: ContextMetadata = field(default_factory=ContextMetadata)

    def __post_init__(self):
        if not self.run_id or not self.run_id.strip():
            raise ValueError("PerformanceMetrics.run_id cannot be empty")
        if os.sep in self.run_id or "/" in self.run_id or self.run_id in (".", ".."):
            raise ValueError(f"PerformanceMetrics.run_id is not a safe file name: {self.run_id!r}")

        self.timestamp = parse_timestamp(self.timestamp)

        computed_cost = sum(m.cost for m in self.models)
        if self.total_cost is None:
            self.total_cost = computed_cost
        elif not math.isclose(self.total_cost, computed_cost, rel_tol=1e-9, abs_tol=1e-12):
            raise ValueError(
                f"total_cost {self.total_cost} does not match sum of model costs {computed_cost}"
            )

        successes = sum(1 for m in self.models if m.success)
        computed_rate = successes / len(self.models) if self.models else 0.0
        if self.success_rate is None:
            self.success_rate = computed_rate
        elif not math.isclose(self.success_rate, computed_rate, abs_tol=1e-9):
            raise ValueError(
                f"success_rate {self.success_rate} does not match {successes}/{len(self.models)}"
            )

        if self.total_time is None:
            times = [m.execution_time for m in self.models]
            if not times:
                self.total_time = 0.0
            elif self.context_metadata.concurrent:
                self.total_time = max(times)
            else:
                self.total_time = sum(times)

        if self.average_quality_score is None:
            scores = [m.quality_score for m in self.models if m.quality_score is not None]
            if scores:
                self.average_quality_score = sum(scores) / len(scores)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "runId": self.run_id,
            "timestamp": format_timestamp(self.timestamp),
            "prompt": self.prompt,
            "models": [m.to_dict() for m in self.models],
            "totalCost": self.total_cost,
            "totalTime": self.total_time,
            "successRate": self.success_rate,
            "contextMetadata": self.context_metadata.to_dict(),
        }
        if self.average_quality_score is not None:
            data["averageQualityScore"] = self.average_quality_score
        if self.user_feedback is not None:
            data["userFeedback"] = self.user_feedback.to_dict()
        if self.task_complexity is not None:
            data["taskComplexity"] = self.task_complexity
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PerformanceMetrics":
        data = _require_object(data, "run metrics")
        models = data.get("models", [])
        if not isinstance(models, list):
            raise ValueError(f"models must be a list, got {type(models).__name__}")
        feedback = data.get("userFeedback")
        return cls(
            run_id=data["runId"],
            prompt=data.get("prompt", ""),
            models=[ModelPerformance.from_dict(m) for m in models],
            timestamp=parse_timestamp(data["timestamp"]),
            total_cost=data.get("totalCost"),
            total_time=data.get("totalTime"),
            success_rate=data.get("successRate"),
            average_quality_score=data.get("averageQualityScore"),
            user_feedback=UserFeedback.from_dict(feedback) if feedback else None,
            task_complexity=data.get("taskComplexity"),
            context_metadata=ContextMetadata.from_dict(data.get("contextMetadata") or {}),
        )


@dataclass(frozen=True)
class TimeRange:
    """Inclusive time window."""

    start: datetime
    end: datetime

    def __post_init__(self):
        object.__setattr__(self, "start", parse_timestamp(self.start))
        object.__setattr__(self, "end", parse_timestamp(self.end))
        if self.end < self.start:
            raise ValueError("TimeRange.end must not precede start")

    def contains(self, timestamp: datetime) -> bool:
        return self.start <= timestamp <= self.end

    @classmethod
    def last_days(cls, days: float, now: Optional[datetime] = None) -> "TimeRange":
        end = now or utc_now()
        return cls(start=end - timedelta(days=days), end=end)


@dataclass
class ModelUsage:
    """Usage and average quality of one model key."""

    model: str
    usage: int
    avg_score: float


@dataclass
class PerformanceSummary:
    """Aggregates over the runs in a time range."""

    total_runs: int = 0
    total_cost: float = 0.0
    avg_response_time: float = 0.0
    avg_quality_score: float = 0.0
    success_rate: float = 0.0
    top_models: List[ModelUsage] = field(default_factory=list)


@dataclass
class CostAnalysis:
    """Spending breakdown with projection and recommendations."""

    total_spent: float
    cost_by_model: Dict[str, float]
    avg_cost_per_request: float
    cost_savings_vs_baseline: float
    projected_monthly_cost: float
    recommendations: List[str]


@dataclass
class TrendPoint:
    timestamp: datetime
    value: float


@dataclass
class PerformanceTrend:
    """Direction of a metric over a trailing window.

    trend is "improving", "declining" or "stable". For cost a decrease
    is improving; for every other metric an increase is.
    """

    metric: str
    period: str
    trend: str
    change_percentage: float
    data_points: List[TrendPoint] = field(default_factory=list)


@dataclass
class QualityInsights:
    avg_quality_by_model: Dict[str, float]
    quality_trends: List[PerformanceTrend]
    recommendations: List[str]
