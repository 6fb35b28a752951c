"""Minimal HTTP surface for prompt-router.

Exposes prompt analysis, routing decisions, response comparison and the
performance tracker over a small FastAPI app. Every service is injected
through create_app so tests and embedders can supply their own instances.

Usage:
    pip install "prompt-router[http]"
    prompt-router-serve

Or with uvicorn directly:
    uvicorn --factory prompt_router.http_server:create_app

Or programmatically:
    from prompt_router.http_server import create_app
    app = create_app(router=router, tracker=tracker)
"""

import dataclasses
import logging
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Security
from fastapi.encoders import jsonable_encoder
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field

from prompt_router import __version__
from prompt_router.analysis import PromptAnalyzer
from prompt_router.comparison import ComparisonEngine
from prompt_router.config import RouterConfig, get_config
from prompt_router.engines import EngineResponse, TokenUsage
from prompt_router.engines.types import utc_now
from prompt_router.errors import InvalidPromptError, NoEnginesRegisteredError
from prompt_router.performance import (
    PerformanceMetrics,
    PerformanceTracker,
    TimeRange,
    UserFeedback,
)
from prompt_router.performance.types import format_timestamp
from prompt_router.routing import IntelligentRouter, UserPreferences

logger = logging.getLogger(__name__)

# Security scheme for optional Bearer token authentication
security = HTTPBearer(auto_error=False)

UNAUTHORIZED_DETAIL = "Invalid or missing API token. Provide Authorization: Bearer <token>"


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    service: str
    version: str
    engines: int


class AnalyzeRequest(BaseModel):
    """Request body for prompt analysis."""

    prompt: str = Field(..., description="Prompt text to analyze")
    offline: bool = Field(default=False, description="Skip the AI-assisted path")


class PreferencesModel(BaseModel):
    """Routing preferences; mirrors UserPreferences."""

    cost_sensitivity: str = Field(default="medium", pattern="^(low|medium|high)$")
    speed_sensitivity: str = Field(default="medium", pattern="^(low|medium|high)$")
    quality_sensitivity: str = Field(default="medium", pattern="^(low|medium|high)$")
    user_id: Optional[str] = None
    budget_limit: Optional[float] = Field(default=None, ge=0)
    max_response_time: Optional[float] = Field(default=None, ge=0)
    min_quality_score: Optional[float] = Field(default=None, ge=0, le=10)
    preferred_models: List[str] = Field(default_factory=list)
    avoid_models: List[str] = Field(default_factory=list)

    def to_preferences(self) -> UserPreferences:
        return UserPreferences(**self.model_dump())


class RouteRequest(BaseModel):
    """Request body for a routing decision."""

    prompt: str = Field(..., description="Prompt to analyze and route")
    preferences: PreferencesModel = Field(default_factory=PreferencesModel)
    max_models: int = Field(default=3, ge=1, le=20)
    offline: bool = Field(default=False, description="Analyze with the heuristic only")


class EngineResponseModel(BaseModel):
    """One engine's completed output."""

    engine: str
    model: str
    content: str = ""
    execution_time: float = Field(default=0.0, ge=0)
    error: Optional[str] = None
    token_usage: Optional[Dict[str, int]] = None

    def to_engine_response(self) -> EngineResponse:
        return EngineResponse(
            engine=self.engine,
            model=self.model,
            content=self.content,
            execution_time=self.execution_time,
            error=self.error,
            token_usage=TokenUsage.from_dict(self.token_usage) if self.token_usage else None,
        )


class CompareRequest(BaseModel):
    """Request body for comparing engine responses."""

    responses: List[EngineResponseModel] = Field(default_factory=list)


class FeedbackRequest(BaseModel):
    """Request body for user feedback on a recorded run."""

    overall_satisfaction: int = Field(..., ge=1, le=5)
    user_id: Optional[str] = None
    best_model: Optional[str] = None
    worst_model: Optional[str] = None
    comments: Optional[str] = None


def create_app(
    router: Optional[IntelligentRouter] = None,
    tracker: Optional[PerformanceTracker] = None,
    analyzer: Optional[PromptAnalyzer] = None,
    config: Optional[RouterConfig] = None,
) -> FastAPI:
    """Build the FastAPI app around the given services.

    Missing services are built from config (get_config() if None). A tracker
    built here loads stored history immediately, and a router built here
    registers the engines listed in the engines section.
    """
    config = config or get_config()
    if tracker is None:
        tracker = PerformanceTracker(config=config.metrics)
        tracker.load_historical_metrics()
    if router is None:
        router = IntelligentRouter(tracker=tracker, config=config.scoring)
        router.register_configured_engines(config.engines)
    if analyzer is None:
        analyzer = PromptAnalyzer.from_config(config)
    comparison = ComparisonEngine()
    api_token = config.server.api_token or None
    logger.info(
        f"HTTP app ready: {len(router.engines)} engine(s), {len(tracker.runs)} run(s) loaded, "
        f"auth {'enabled' if api_token else 'disabled'}"
    )

    async def verify_token(
        credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    ) -> None:
        """Require the Bearer token when one is configured.

        Raises:
            HTTPException: 401 if the token is missing or wrong
        """
        if api_token is None:
            return
        if credentials is None or credentials.credentials != api_token:
            raise HTTPException(status_code=401, detail=UNAUTHORIZED_DETAIL)

    auth_dependency = Depends(verify_token)

    app = FastAPI(
        title="Prompt Router",
        description="Multi-model routing and performance tracking",
        version=__version__,
    )
    app.state.router = router
    app.state.tracker = tracker
    app.state.analyzer = analyzer

    async def _analyze(prompt: str, offline: bool):
        try:
            if offline:
                return analyzer.analyze_offline(prompt)
            return await analyzer.analyze(prompt)
        except InvalidPromptError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        """Health check endpoint (never requires auth)."""
        return HealthResponse(
            status="ok",
            service="prompt-router",
            version=__version__,
            engines=len(router.engines),
        )

    @app.post("/v1/analyze", tags=["Routing"], dependencies=[auth_dependency])
    async def analyze(request: AnalyzeRequest) -> Dict[str, Any]:
        analysis = await _analyze(request.prompt, request.offline)
        return analysis.to_dict()

    @app.post("/v1/route", tags=["Routing"], dependencies=[auth_dependency])
    async def route(request: RouteRequest) -> Dict[str, Any]:
        """Analyze a prompt and rank the registered engines for it."""
        analysis = await _analyze(request.prompt, request.offline)
        try:
            decision = router.select_optimal_models(
                analysis, request.preferences.to_preferences(), max_models=request.max_models
            )
        except NoEnginesRegisteredError as e:
            raise HTTPException(status_code=409, detail=str(e))
        return {"analysis": analysis.to_dict(), "decision": decision.to_dict()}

    @app.post("/v1/compare", tags=["Comparison"], dependencies=[auth_dependency])
    async def compare(request: CompareRequest) -> Dict[str, Any]:
        responses = {r.engine: r.to_engine_response() for r in request.responses}
        return comparison.compare(responses).to_dict()

    @app.post("/v1/runs", tags=["Performance"], dependencies=[auth_dependency])
    def record_run(payload: Dict[str, Any]) -> Dict[str, Any]:
        """Record a completed run (camelCase PerformanceMetrics document)."""
        payload.setdefault("timestamp", format_timestamp(utc_now()))
        try:
            metrics = PerformanceMetrics.from_dict(payload)
        except KeyError as e:
            raise HTTPException(status_code=400, detail=f"Missing field: {e.args[0]}")
        except (TypeError, ValueError, AttributeError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        persisted = tracker.record_run(metrics)
        return {"runId": metrics.run_id, "persisted": persisted, "metrics": metrics.to_dict()}

    @app.post("/v1/runs/{run_id}/feedback", tags=["Performance"], dependencies=[auth_dependency])
    def record_feedback(run_id: str, request: FeedbackRequest) -> Dict[str, Any]:
        feedback = UserFeedback(run_id=run_id, **request.model_dump())
        if not tracker.record_user_feedback(feedback):
            raise HTTPException(status_code=404, detail=f"Unknown run: {run_id}")
        return {"runId": run_id, "feedback": feedback.to_dict()}

    @app.get("/v1/performance/summary", tags=["Performance"], dependencies=[auth_dependency])
    def performance_summary(
        days: Optional[int] = Query(default=None, ge=1, le=3650),
    ) -> Dict[str, Any]:
        window = TimeRange.last_days(days or config.server.default_summary_days)
        summary = tracker.get_performance_summary(window)
        return jsonable_encoder(dataclasses.asdict(summary))

    @app.get("/v1/performance/cost", tags=["Performance"], dependencies=[auth_dependency])
    def cost_efficiency(
        days: Optional[int] = Query(default=None, ge=1, le=3650),
    ) -> Dict[str, Any]:
        window = TimeRange.last_days(days) if days else None
        return jsonable_encoder(dataclasses.asdict(tracker.analyze_cost_efficiency(window)))

    @app.get("/v1/performance/trends/{metric}", tags=["Performance"], dependencies=[auth_dependency])
    def performance_trend(metric: str, period: str = "day") -> Dict[str, Any]:
        try:
            trend = tracker.get_trends(metric, period)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        if trend is None:
            raise HTTPException(status_code=404, detail=f"No {metric} data for period {period}")
        return jsonable_encoder(dataclasses.asdict(trend))

    @app.get("/v1/performance/export", tags=["Performance"], dependencies=[auth_dependency])
    def export(format: str = "json") -> PlainTextResponse:
        try:
            body = tracker.export_metrics(format)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        media_type = "text/csv" if format == "csv" else "application/json"
        return PlainTextResponse(body, media_type=media_type)

    return app


def main():
    """Entry point for the prompt-router-serve command."""
    import uvicorn

    config = get_config()
    uvicorn.run(create_app(config=config), host=config.server.host, port=config.server.port)


if __name__ == "__main__":
    main()
