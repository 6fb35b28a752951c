"""Prompt analysis types.

PromptAnalysis is created once per routing request and never mutated. Its
constructor clamps the bounded numeric fields so that no upstream input
(heuristic or AI-provided) can produce out-of-range values.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple


class TaskType(Enum):
    """Primary kind of work a prompt asks for."""

    CODE_GENERATION = "code-generation"
    CODE_REVIEW = "code-review"
    ARCHITECTURE_DESIGN = "architecture-design"
    DEBUGGING = "debugging"
    DOCUMENTATION = "documentation"
    ANALYSIS = "analysis"
    CREATIVE_WRITING = "creative-writing"
    QUESTION_ANSWERING = "question-answering"
    PLANNING = "planning"
    BRAINSTORMING = "brainstorming"
    DATA_PROCESSING = "data-processing"
    GENERAL_CHAT = "general-chat"


class Urgency(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ResponseLength(Enum):
    SHORT = "short"  # < 200 words
    MEDIUM = "medium"  # 200-800 words
    LONG = "long"  # > 800 words


MIN_SCALE = 1
MAX_SCALE = 10


def clamp_scale(value: int) -> int:
    """Clamp a 1-10 scale value."""
    return max(MIN_SCALE, min(MAX_SCALE, int(value)))


@dataclass(frozen=True)
class PromptAnalysis:
    """Structured description of a prompt used for routing.

    Attributes:
        topics: Detected topics (at most a handful)
        complexity: 1 (simple question) to 10 (complex system design)
        task_type: Primary task type
        urgency: How quickly the caller needs an answer
        expected_response_length: Expected answer size
        requires_creativity: Whether original thinking is needed
        requires_accuracy: Whether factual accuracy is critical
        technical_depth: 1 (non-technical) to 10 (deep expertise)
        estimated_tokens: Rough response token estimate (positive)
    """

    complexity: int
    task_type: TaskType
    topics: Tuple[str, ...] = ()
    urgency: Urgency = Urgency.MEDIUM
    expected_response_length: ResponseLength = ResponseLength.MEDIUM
    requires_creativity: bool = False
    requires_accuracy: bool = True
    technical_depth: int = 5
    estimated_tokens: int = 300

    def __post_init__(self):
        # Frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "complexity", clamp_scale(self.complexity))
        object.__setattr__(self, "technical_depth", clamp_scale(self.technical_depth))
        object.__setattr__(self, "estimated_tokens", max(1, int(self.estimated_tokens)))
        object.__setattr__(self, "topics", tuple(self.topics))
        if not isinstance(self.task_type, TaskType):
            object.__setattr__(self, "task_type", TaskType(self.task_type))
        if not isinstance(self.urgency, Urgency):
            object.__setattr__(self, "urgency", Urgency(self.urgency))
        if not isinstance(self.expected_response_length, ResponseLength):
            object.__setattr__(
                self, "expected_response_length", ResponseLength(self.expected_response_length)
            )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the camelCase keys of the analysis JSON shape."""
        return {
            "topics": list(self.topics),
            "complexity": self.complexity,
            "taskType": self.task_type.value,
            "urgency": self.urgency.value,
            "expectedResponseLength": self.expected_response_length.value,
            "requiresCreativity": self.requires_creativity,
            "requiresAccuracy": self.requires_accuracy,
            "technicalDepth": self.technical_depth,
            "estimatedTokens": self.estimated_tokens,
        }
