"""Prompt analysis: AI-assisted with a deterministic heuristic fallback.

Usage:
    from prompt_router.analysis import PromptAnalyzer

    analyzer = PromptAnalyzer()  # heuristic only
    analysis = analyzer.analyze_offline("Fix this bug in my parser")
    assert analysis.task_type.value == "debugging"
"""

from .analyzer import (
    ANALYSIS_SYSTEM_INSTRUCTION,
    AnalysisPayload,
    CompletionFn,
    PromptAnalyzer,
    build_analysis_prompt,
    extract_json_object,
    parse_analysis_response,
)
from .heuristic import HeuristicAnalyzer, classify_task_type, extract_topics, heuristic_analysis
from .types import PromptAnalysis, ResponseLength, TaskType, Urgency

__all__ = [
    # Types (types.py)
    "PromptAnalysis",
    "TaskType",
    "Urgency",
    "ResponseLength",
    # Heuristic (heuristic.py)
    "HeuristicAnalyzer",
    "heuristic_analysis",
    "classify_task_type",
    "extract_topics",
    # AI-assisted (analyzer.py)
    "PromptAnalyzer",
    "CompletionFn",
    "AnalysisPayload",
    "ANALYSIS_SYSTEM_INSTRUCTION",
    "build_analysis_prompt",
    "extract_json_object",
    "parse_analysis_response",
]
