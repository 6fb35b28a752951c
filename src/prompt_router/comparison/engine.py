"""Post-hoc comparison of engine responses.

Measures how much a set of engine outputs agree (pairwise Jaccard word
overlap), flags notable differences in length, timing and style, and turns
the result into plain-language insights and a recommendation.

Example usage:
    result = ComparisonEngine().compare({
        "gpt-4o": EngineResponse(engine="gpt-4o", model="gpt-4o", content="...", execution_time=2100),
        "tinyllama": EngineResponse(engine="tinyllama", model="tinyllama", content="...", execution_time=800),
    })
    print(result.similarities, result.recommendation)
"""

import logging
import re
from typing import Dict, List, Mapping

from ..engines.types import EngineResponse
from .types import ComparisonResult, DifferenceAnalysis, DifferenceType, ResponseStyle, Severity

logger = logging.getLogger(__name__)

HIGH_CONSENSUS_THRESHOLD = 80
MODERATE_CONSENSUS_THRESHOLD = 50

# (max - min) / max response length above which lengths are flagged
LENGTH_SPREAD_THRESHOLD = 0.3
# (max - min) / min execution time above which timings are flagged
TIMING_SPREAD_THRESHOLD = 1.0
# Length range, relative to the mean length, reported as significant variation
LENGTH_VARIATION_INSIGHT = 0.5

TECHNICAL_PATTERN = re.compile(
    r"\b(algorithm|implementation|architecture|framework|optimization)\b"
)
CONVERSATIONAL_PATTERN = re.compile(r"\b(i think|perhaps|might|could|would suggest)\b")

INSUFFICIENT_INSIGHT = "Insufficient responses for comparison"
INSUFFICIENT_RECOMMENDATION = "Need at least 2 successful responses to compare"


def _word_set(text: str) -> set:
    return set(text.lower().split())


def jaccard_similarity(text_a: str, text_b: str) -> float:
    """Word-set Jaccard similarity of two texts on a 0-100 scale.

    Case-insensitive and whitespace-tokenized. Two texts with no words are
    treated as identical.
    """
    words_a = _word_set(text_a)
    words_b = _word_set(text_b)
    union = words_a | words_b
    if not union:
        return 100.0
    return len(words_a & words_b) / len(union) * 100.0


def classify_style(content: str) -> ResponseStyle:
    """Classify a response as code-focused, technical, conversational or neutral.

    Code-focused wins when fenced code blocks are dense relative to
    sentences. Otherwise technical vocabulary and conversational hedging
    are compared, and one must outnumber the other more than two to one.
    """
    lowered = content.lower()
    code_blocks = lowered.count("```") / 2
    sentences = lowered.count(".")
    if code_blocks > 0 and code_blocks > sentences / 10:
        return ResponseStyle.CODE_FOCUSED

    technical = len(TECHNICAL_PATTERN.findall(lowered))
    conversational = len(CONVERSATIONAL_PATTERN.findall(lowered))
    if technical > conversational * 2:
        return ResponseStyle.TECHNICAL
    if conversational > technical * 2:
        return ResponseStyle.CONVERSATIONAL
    return ResponseStyle.NEUTRAL


def valid_responses(responses: Mapping[str, EngineResponse]) -> Dict[str, EngineResponse]:
    """Drop responses that errored or have blank content, preserving order."""
    return {engine: response for engine, response in responses.items() if response.is_valid}


def similarity_matrix(responses: Mapping[str, EngineResponse]) -> Dict[str, Dict[str, float]]:
    """Full symmetric Jaccard matrix over valid responses (diagonal is 100)."""
    valid = valid_responses(responses)
    return {
        a: {b: jaccard_similarity(ra.content, rb.content) for b, rb in valid.items()}
        for a, ra in valid.items()
    }


class ComparisonEngine:
    """Stateless comparison of engine responses."""

    def compare(self, responses: Mapping[str, EngineResponse]) -> ComparisonResult:
        """Compare engine responses keyed by engine name.

        Never raises for bad input: with fewer than two valid responses the
        result has similarities 0 and an explanatory insight.
        """
        valid = valid_responses(responses)
        if len(valid) < 2:
            logger.debug(f"Skipping comparison: {len(valid)} valid response(s) of {len(responses)}")
            return ComparisonResult(
                similarities=0,
                differences=[],
                key_insights=[INSUFFICIENT_INSIGHT],
                recommendation=INSUFFICIENT_RECOMMENDATION,
            )

        similarities = self.calculate_similarity(valid)
        differences = self.analyze_differences(valid)
        return ComparisonResult(
            similarities=similarities,
            differences=differences,
            key_insights=self._key_insights(valid, similarities),
            recommendation=self._recommendation(similarities),
        )

    def calculate_similarity(self, valid: Mapping[str, EngineResponse]) -> int:
        """Rounded mean Jaccard similarity over every unordered pair."""
        contents = [r.content for r in valid.values()]
        scores = [
            jaccard_similarity(contents[i], contents[j])
            for i in range(len(contents))
            for j in range(i + 1, len(contents))
        ]
        if not scores:
            return 0
        return round(sum(scores) / len(scores))

    def analyze_differences(self, valid: Mapping[str, EngineResponse]) -> List[DifferenceAnalysis]:
        engines = list(valid.keys())
        differences = []

        lengths = {engine: len(r.content) for engine, r in valid.items()}
        max_len, min_len = max(lengths.values()), min(lengths.values())
        if max_len > 0 and (max_len - min_len) / max_len > LENGTH_SPREAD_THRESHOLD:
            differences.append(
                DifferenceAnalysis(
                    type=DifferenceType.COMPLETENESS,
                    description="Significant difference in response lengths",
                    engines=engines,
                    severity=Severity.MEDIUM,
                    examples=[f"{e}: {n} characters" for e, n in lengths.items()],
                )
            )

        times = {engine: r.execution_time for engine, r in valid.items()}
        max_time, min_time = max(times.values()), min(times.values())
        if min_time > 0:
            timing_spread = (max_time - min_time) / min_time > TIMING_SPREAD_THRESHOLD
        else:
            timing_spread = max_time > 0
        if timing_spread:
            differences.append(
                DifferenceAnalysis(
                    type=DifferenceType.APPROACH,
                    description="Significant difference in response times",
                    engines=engines,
                    severity=Severity.LOW,
                    examples=[f"{e}: {t:.0f}ms" for e, t in times.items()],
                )
            )

        styles = {engine: classify_style(r.content) for engine, r in valid.items()}
        if len(set(styles.values())) > 1:
            differences.append(
                DifferenceAnalysis(
                    type=DifferenceType.STYLE,
                    description="Different communication styles detected",
                    engines=engines,
                    severity=Severity.LOW,
                    examples=[f"{e}: {s.value}" for e, s in styles.items()],
                )
            )

        return differences

    def _key_insights(self, valid: Mapping[str, EngineResponse], similarities: int) -> List[str]:
        insights = []
        if similarities > HIGH_CONSENSUS_THRESHOLD:
            insights.append(
                f"High consensus ({similarities}% similarity) - all models agree on core approach"
            )
        elif similarities > MODERATE_CONSENSUS_THRESHOLD:
            insights.append(
                f"Moderate agreement ({similarities}% similarity) - models share some common ground"
            )
        else:
            insights.append(
                f"Low consensus ({similarities}% similarity) - models took different approaches"
            )

        # min() keeps the first engine on ties
        fastest = min(valid, key=lambda engine: valid[engine].execution_time)
        avg_time = sum(r.execution_time for r in valid.values()) / len(valid)
        insights.append(
            f"Fastest response: {fastest} ({valid[fastest].execution_time:.0f}ms, {avg_time:.0f}ms avg)"
        )

        lengths = [len(r.content) for r in valid.values()]
        avg_length = sum(lengths) / len(lengths)
        insights.append(
            f"Response length range: {min(lengths)}-{max(lengths)} characters ({avg_length:.0f} avg)"
        )
        if max(lengths) - min(lengths) > avg_length * LENGTH_VARIATION_INSIGHT:
            insights.append("Response lengths vary significantly - different levels of detail provided")

        return insights

    def _recommendation(self, similarities: int) -> str:
        if similarities > HIGH_CONSENSUS_THRESHOLD:
            return "High consensus detected - any response would be suitable, choose based on style preference"
        if similarities > MODERATE_CONSENSUS_THRESHOLD:
            return "Moderate agreement - review differences and choose based on specific needs"
        return "Low consensus - careful analysis recommended, consider the context and requirements"
