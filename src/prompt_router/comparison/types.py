"""Comparison result types."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class DifferenceType(Enum):
    CONTENT = "content"
    STYLE = "style"
    ACCURACY = "accuracy"
    COMPLETENESS = "completeness"
    APPROACH = "approach"


class Severity(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ResponseStyle(Enum):
    """Coarse communication style of a single response."""

    TECHNICAL = "technical"
    CONVERSATIONAL = "conversational"
    CODE_FOCUSED = "code-focused"
    NEUTRAL = "neutral"


@dataclass
class DifferenceAnalysis:
    """One categorized difference between engine responses.

    Attributes:
        type: What kind of difference was found
        description: Human-readable summary
        engines: Engines involved
        severity: How much the difference matters for choosing a response
        examples: Per-engine evidence (e.g., "gpt-4o: 1200 characters")
    """

    type: DifferenceType
    description: str
    engines: List[str]
    severity: Severity
    examples: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "engines": list(self.engines),
            "severity": self.severity.value,
            "examples": list(self.examples),
        }


@dataclass
class ComparisonResult:
    """Outcome of comparing two or more engine responses.

    similarities is the rounded mean pairwise Jaccard similarity (0-100).
    """

    similarities: int
    differences: List[DifferenceAnalysis] = field(default_factory=list)
    key_insights: List[str] = field(default_factory=list)
    recommendation: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "similarities": self.similarities,
            "differences": [d.to_dict() for d in self.differences],
            "keyInsights": list(self.key_insights),
            "recommendation": self.recommendation,
        }
