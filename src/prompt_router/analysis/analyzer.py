"""AI-assisted prompt analysis with heuristic fallback.

The analyzer asks a text-completion collaborator for a JSON description of
the prompt. Whatever comes back is treated as untrusted: the first balanced
JSON object is extracted, decoded field by field, clamped and defaulted.
Any failure along the way (collaborator error, no JSON, invalid payload)
falls back to the deterministic heuristic. Only an empty prompt is an error.
"""

import json
import logging
from typing import Any, Awaitable, Callable, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..config import RouterConfig
from ..errors import InvalidPromptError
from .heuristic import HeuristicAnalyzer
from .types import PromptAnalysis, ResponseLength, TaskType, Urgency, clamp_scale

logger = logging.getLogger(__name__)

# (user_prompt, system_instruction) -> completion text
CompletionFn = Callable[[str, str], Awaitable[str]]

ANALYSIS_SYSTEM_INSTRUCTION = "You are a precise prompt analyst. Return only valid JSON."

_TASK_TYPES = ", ".join(t.value for t in TaskType)

ANALYSIS_PROMPT_TEMPLATE = """Analyze this prompt and return a JSON object with the following structure:

{{
  "topics": ["topic1", "topic2", "topic3"],
  "complexity": <1-10>,
  "taskType": "<one of: {task_types}>",
  "urgency": "<low/medium/high>",
  "expectedResponseLength": "<short/medium/long>",
  "requiresCreativity": <boolean>,
  "requiresAccuracy": <boolean>,
  "technicalDepth": <1-10>,
  "estimatedTokens": <number>
}}

Analysis criteria:
- Complexity: 1=simple questions, 10=complex architecture/system design
- TaskType: Primary type of task requested
- Urgency: Based on language like "urgent", "asap", "when you have time"
- ResponseLength: short=<200 words, medium=200-800 words, long=>800 words
- RequiresCreativity: Whether creative/original thinking is needed
- RequiresAccuracy: Whether factual accuracy is critical
- TechnicalDepth: 1=non-technical, 10=deep technical expertise needed
- EstimatedTokens: Rough estimate of response tokens needed

Prompt to analyze:
\"\"\"
{prompt}
\"\"\"

Return only the JSON object:"""

DEFAULT_TECHNICAL_DEPTH = 5
DEFAULT_ESTIMATED_TOKENS = 300
MAX_AI_TOPICS = 10


def build_analysis_prompt(prompt: str) -> str:
    return ANALYSIS_PROMPT_TEMPLATE.format(task_types=_TASK_TYPES, prompt=prompt)


def extract_json_object(text: str) -> Optional[str]:
    """Return the first balanced ``{...}`` substring of text, or None.

    Braces inside JSON string literals are ignored, so prose such as
    ``Here you go: {"a": "}"} hope that helps`` yields ``{"a": "}"}``.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
                continue
            if ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return text[start:i + 1]
        # Unbalanced from this brace; try the next opening brace
        start = text.find("{", start + 1)
    return None


def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
    return default


def _coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class AnalysisPayload(BaseModel):
    """Untrusted analysis JSON from the collaborator.

    ``taskType`` and ``complexity`` must be present; every other field is
    defaulted when missing or unusable.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    task_type: TaskType = Field(alias="taskType")
    complexity: int
    topics: List[str] = Field(default_factory=list)
    urgency: Urgency = Urgency.MEDIUM
    expected_response_length: ResponseLength = Field(
        default=ResponseLength.MEDIUM, alias="expectedResponseLength"
    )
    requires_creativity: bool = Field(default=False, alias="requiresCreativity")
    requires_accuracy: bool = Field(default=True, alias="requiresAccuracy")
    technical_depth: int = Field(default=DEFAULT_TECHNICAL_DEPTH, alias="technicalDepth")
    estimated_tokens: int = Field(default=DEFAULT_ESTIMATED_TOKENS, alias="estimatedTokens")

    @field_validator("task_type", mode="before")
    @classmethod
    def decode_task_type(cls, v: Any) -> TaskType:
        if isinstance(v, str):
            normalized = v.strip().lower().replace("_", "-").replace(" ", "-")
            try:
                return TaskType(normalized)
            except ValueError:
                pass
        return TaskType.GENERAL_CHAT

    @field_validator("complexity", mode="before")
    @classmethod
    def decode_complexity(cls, v: Any) -> int:
        number = _coerce_number(v)
        if number is None:
            raise ValueError(f"complexity is not numeric: {v!r}")
        return clamp_scale(round(number))

    @field_validator("technical_depth", mode="before")
    @classmethod
    def decode_technical_depth(cls, v: Any) -> int:
        number = _coerce_number(v)
        if number is None:
            return DEFAULT_TECHNICAL_DEPTH
        return clamp_scale(round(number))

    @field_validator("estimated_tokens", mode="before")
    @classmethod
    def decode_estimated_tokens(cls, v: Any) -> int:
        number = _coerce_number(v)
        if number is None or number < 1:
            return DEFAULT_ESTIMATED_TOKENS
        return int(number)

    @field_validator("urgency", mode="before")
    @classmethod
    def decode_urgency(cls, v: Any) -> Urgency:
        if isinstance(v, str):
            try:
                return Urgency(v.strip().lower())
            except ValueError:
                pass
        return Urgency.MEDIUM

    @field_validator("expected_response_length", mode="before")
    @classmethod
    def decode_expected_length(cls, v: Any) -> ResponseLength:
        if isinstance(v, str):
            try:
                return ResponseLength(v.strip().lower())
            except ValueError:
                pass
        return ResponseLength.MEDIUM

    @field_validator("requires_creativity", mode="before")
    @classmethod
    def decode_requires_creativity(cls, v: Any) -> bool:
        return _coerce_bool(v, default=False)

    @field_validator("requires_accuracy", mode="before")
    @classmethod
    def decode_requires_accuracy(cls, v: Any) -> bool:
        return _coerce_bool(v, default=True)

    @field_validator("topics", mode="before")
    @classmethod
    def decode_topics(cls, v: Any) -> List[str]:
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, list):
            return []
        topics = [str(t).strip() for t in v if isinstance(t, (str, int, float)) and str(t).strip()]
        return topics[:MAX_AI_TOPICS]

    def to_analysis(self) -> PromptAnalysis:
        return PromptAnalysis(
            topics=tuple(self.topics),
            complexity=self.complexity,
            task_type=self.task_type,
            urgency=self.urgency,
            expected_response_length=self.expected_response_length,
            requires_creativity=self.requires_creativity,
            requires_accuracy=self.requires_accuracy,
            technical_depth=self.technical_depth,
            estimated_tokens=self.estimated_tokens,
        )


def parse_analysis_response(response: str) -> PromptAnalysis:
    """Decode a collaborator response into a PromptAnalysis.

    Raises:
        ValueError: If no JSON object is found or it fails validation
    """
    if not isinstance(response, str):
        raise ValueError(f"Expected text response, got {type(response).__name__}")

    json_text = extract_json_object(response)
    if json_text is None:
        raise ValueError("No JSON object found in response")

    data = json.loads(json_text)
    if not isinstance(data, dict):
        raise ValueError("Analysis JSON is not an object")

    try:
        payload = AnalysisPayload.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Invalid analysis payload: {e.error_count()} error(s)") from e
    return payload.to_analysis()


class PromptAnalyzer:
    """Convert raw prompt text into a PromptAnalysis.

    Attributes:
        completion_fn: Optional async collaborator used for AI-assisted analysis.
            When None, every analysis uses the heuristic.
        heuristic: Fallback analyzer
    """

    def __init__(
        self,
        completion_fn: Optional[CompletionFn] = None,
        heuristic: Optional[HeuristicAnalyzer] = None,
    ):
        self.completion_fn = completion_fn
        self.heuristic = heuristic or HeuristicAnalyzer()

    @classmethod
    def from_config(cls, config: RouterConfig) -> "PromptAnalyzer":
        """Build an analyzer wired to the configured completion endpoint."""
        analysis_config = config.analysis
        completion_fn: Optional[CompletionFn] = None
        is_hosted_openai = analysis_config.base_url.startswith("https://api.openai.com")
        if analysis_config.enabled and (analysis_config.api_key or not is_hosted_openai):
            # Imported lazily so the core does not need httpx to analyze offline
            from ..engines.openai_client import OpenAIChatClient

            completion_fn = OpenAIChatClient.from_config(analysis_config).complete
        return cls(completion_fn=completion_fn)

    async def analyze(self, prompt: str) -> PromptAnalysis:
        """Analyze a prompt, preferring the AI-assisted path.

        Issues at most one collaborator call and never retries.

        Raises:
            InvalidPromptError: If prompt is not a non-blank string
        """
        self._validate_prompt(prompt)

        if self.completion_fn is None:
            return self.heuristic.analyze(prompt)

        try:
            response = await self.completion_fn(
                build_analysis_prompt(prompt), ANALYSIS_SYSTEM_INSTRUCTION
            )
            return parse_analysis_response(response)
        except Exception as e:
            logger.warning("AI prompt analysis failed, using fallback analysis: %s", e)
            return self.heuristic.analyze(prompt)

    def analyze_offline(self, prompt: str) -> PromptAnalysis:
        """Analyze with the heuristic only."""
        self._validate_prompt(prompt)
        return self.heuristic.analyze(prompt)

    @staticmethod
    def _validate_prompt(prompt: Any) -> None:
        if not isinstance(prompt, str) or not prompt.strip():
            raise InvalidPromptError("Prompt must be a non-empty string")
