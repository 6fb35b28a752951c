"""Shared test configuration and fixtures."""
from datetime import datetime, timezone

import pytest

# =============================================================================
# Environment Reset
# =============================================================================


@pytest.fixture(autouse=True)
def reset_env(monkeypatch, tmp_path):
    """Clear environment variables before each test."""
    for name in (
        "PROMPT_ROUTER_CONFIG",
        "PROMPT_ROUTER_METRICS_DIR",
        "PROMPT_ROUTER_AI_ANALYSIS",
        "PROMPT_ROUTER_ANALYSIS_MODEL",
        "PROMPT_ROUTER_API_TOKEN",
        "OPENAI_API_KEY",
        "OPENAI_BASE_URL",
    ):
        monkeypatch.delenv(name, raising=False)
    # Keep config discovery away from any prompt_router.yaml in the checkout
    monkeypatch.chdir(tmp_path)


# =============================================================================
# Shared builders
# =============================================================================


@pytest.fixture
def fixed_now():
    return datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def make_run():
    """Factory for PerformanceMetrics with one or more model records."""
    from prompt_router.performance import ModelPerformance, PerformanceMetrics

    def _make(run_id, timestamp, models=None, **kwargs):
        if models is None:
            models = [
                ModelPerformance(
                    model_name="gpt-4o-mini",
                    engine="gpt-4o-mini",
                    execution_time=1200,
                    cost=0.002,
                    quality_score=8,
                    timestamp=timestamp,
                )
            ]
        return PerformanceMetrics(
            run_id=run_id, prompt="Explain CRDTs", models=models, timestamp=timestamp, **kwargs
        )

    return _make
