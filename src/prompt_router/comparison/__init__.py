"""Comparison of completed engine responses."""

from .engine import (
    ComparisonEngine,
    classify_style,
    jaccard_similarity,
    similarity_matrix,
    valid_responses,
)
from .types import ComparisonResult, DifferenceAnalysis, DifferenceType, ResponseStyle, Severity

__all__ = [
    "ComparisonEngine",
    "ComparisonResult",
    "DifferenceAnalysis",
    "DifferenceType",
    "ResponseStyle",
    "Severity",
    "classify_style",
    "jaccard_similarity",
    "similarity_matrix",
    "valid_responses",
]
