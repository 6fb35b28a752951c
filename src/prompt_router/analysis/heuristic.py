"""Heuristic prompt analysis.

Deterministic keyword and length rules used when AI-assisted analysis is
unavailable or fails. Pure: the same prompt always yields the same
PromptAnalysis.
"""

import re
from typing import Iterable, List, Sequence, Tuple

from .types import PromptAnalysis, ResponseLength, TaskType, Urgency, clamp_scale

CODE_KEYWORDS = (
    "code", "function", "class", "algorithm", "implement", "debug", "bug", "error",
)
CREATIVE_KEYWORDS = ("creative", "write", "story", "brainstorm", "generate", "ideas")
TECHNICAL_KEYWORDS = ("architecture", "system", "database", "api", "framework", "design")
URGENCY_KEYWORDS = ("urgent", "asap", "quickly", "fast", "immediate")

TOPIC_VOCABULARY = (
    "react", "javascript", "typescript", "python", "node", "api", "database",
    "architecture", "design", "testing", "deployment", "security", "performance",
)
MAX_TOPICS = 5

# First match wins, so more specific intents come before broader ones.
TASK_KEYWORDS: Sequence[Tuple[TaskType, Tuple[str, ...]]] = (
    (TaskType.DEBUGGING, (
        "debug", "bug", "error", "crash", "exception", "traceback", "stack trace",
        "not working", "broken",
    )),
    (TaskType.CODE_REVIEW, ("review", "pull request", "refactor", "code smell")),
    (TaskType.ARCHITECTURE_DESIGN, (
        "architecture", "microservice", "system design", "scalable", "infrastructure",
    )),
    (TaskType.CODE_GENERATION, (
        "code", "function", "class", "algorithm", "implement", "script", "program",
    )),
    (TaskType.DOCUMENTATION, ("document", "docs", "readme", "docstring", "tutorial")),
    (TaskType.DATA_PROCESSING, (
        "csv", "dataset", "spreadsheet", "etl", "data pipeline", "parse", "transform",
    )),
    (TaskType.PLANNING, ("plan", "roadmap", "milestone", "schedule", "timeline")),
    (TaskType.BRAINSTORMING, ("brainstorm", "ideas")),
    (TaskType.CREATIVE_WRITING, ("creative", "story", "poem", "write", "generate", "fiction")),
    (TaskType.ANALYSIS, ("analyze", "analyse", "compare", "evaluate", "assess", "pros and cons")),
)


def _contains_any(text: str, keywords: Iterable[str]) -> bool:
    """Check for keywords at word starts ("bug" matches "bugs", not "debug")."""
    for keyword in keywords:
        if re.search(r"\b" + re.escape(keyword), text):
            return True
    return False


class HeuristicAnalyzer:
    """Keyword/length based prompt analyzer.

    Uses simple rules:
    - word count drives complexity, expected length and token estimate
    - keyword sets drive task type, urgency and creativity/accuracy flags
    """

    def __init__(
        self,
        words_per_complexity_level: int = 10,
        technical_complexity_bonus: int = 3,
        tokens_per_word: int = 3,
        min_tokens: int = 100,
        max_tokens: int = 2000,
        medium_length_min_words: int = 20,
        long_length_min_words: int = 50,
    ):
        self.words_per_complexity_level = words_per_complexity_level
        self.technical_complexity_bonus = technical_complexity_bonus
        self.tokens_per_word = tokens_per_word
        self.min_tokens = min_tokens
        self.max_tokens = max_tokens
        self.medium_length_min_words = medium_length_min_words
        self.long_length_min_words = long_length_min_words

    def analyze(self, prompt: str) -> PromptAnalysis:
        text = prompt.lower()
        words = len(prompt.split())

        has_code = _contains_any(text, CODE_KEYWORDS)
        has_creative = _contains_any(text, CREATIVE_KEYWORDS)
        has_technical = _contains_any(text, TECHNICAL_KEYWORDS)
        has_urgency = _contains_any(text, URGENCY_KEYWORDS)

        complexity = words // self.words_per_complexity_level
        if has_technical:
            complexity += self.technical_complexity_bonus

        if has_technical:
            technical_depth = 8
        elif has_code:
            technical_depth = 6
        else:
            technical_depth = 3

        estimated_tokens = min(self.max_tokens, max(self.min_tokens, words * self.tokens_per_word))

        return PromptAnalysis(
            topics=tuple(extract_topics(text)),
            complexity=clamp_scale(complexity),
            task_type=classify_task_type(text),
            urgency=Urgency.HIGH if has_urgency else Urgency.MEDIUM,
            expected_response_length=self._expected_length(words),
            requires_creativity=has_creative,
            requires_accuracy=not has_creative,
            technical_depth=technical_depth,
            estimated_tokens=estimated_tokens,
        )

    def _expected_length(self, words: int) -> ResponseLength:
        if words > self.long_length_min_words:
            return ResponseLength.LONG
        if words > self.medium_length_min_words:
            return ResponseLength.MEDIUM
        return ResponseLength.SHORT


def classify_task_type(text: str) -> TaskType:
    """Pick the first task type whose keywords appear in lowercased text.

    Prompts without a code, technical or creative keyword are always
    question-answering, whatever else they mention.
    """
    if not (
        _contains_any(text, CODE_KEYWORDS)
        or _contains_any(text, TECHNICAL_KEYWORDS)
        or _contains_any(text, CREATIVE_KEYWORDS)
    ):
        return TaskType.QUESTION_ANSWERING
    for task_type, keywords in TASK_KEYWORDS:
        if _contains_any(text, keywords):
            return task_type
    return TaskType.QUESTION_ANSWERING


def extract_topics(text: str) -> List[str]:
    """Return vocabulary topics that appear inside any word of the text."""
    words = text.lower().split()
    return [topic for topic in TOPIC_VOCABULARY if any(topic in word for word in words)][
        :MAX_TOPICS
    ]


_default_analyzer = HeuristicAnalyzer()


def heuristic_analysis(prompt: str) -> PromptAnalysis:
    """Analyze a prompt with the default heuristic analyzer."""
    return _default_analyzer.analyze(prompt)
