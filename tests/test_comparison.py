"""Tests for ComparisonEngine similarity, differences and insights."""

import pytest


def _response(engine, content, execution_time=1000, error=None, model=None):
    from prompt_router.engines import EngineResponse

    return EngineResponse(
        engine=engine,
        model=model or engine,
        content=content,
        execution_time=execution_time,
        error=error,
    )


def _responses(*items):
    return {r.engine: r for r in items}


class TestJaccardSimilarity:
    """Test jaccard_similarity() properties."""

    @pytest.mark.parametrize(
        "a,b",
        [
            ("the quick brown fox", "the lazy brown dog"),
            ("Hello World", "hello   world again"),
            ("alpha", "beta"),
            ("", "something"),
        ],
    )
    def test_symmetric_and_bounded(self, a, b):
        from prompt_router.comparison import jaccard_similarity

        forward = jaccard_similarity(a, b)
        assert forward == jaccard_similarity(b, a)
        assert 0.0 <= forward <= 100.0

    @pytest.mark.parametrize("text", ["the quick brown fox", "A a A", "", "   "])
    def test_reflexive(self, text):
        from prompt_router.comparison import jaccard_similarity

        assert jaccard_similarity(text, text) == 100.0

    def test_case_insensitive_whitespace_tokens(self):
        from prompt_router.comparison import jaccard_similarity

        assert jaccard_similarity("Use A Cache", "use a\ncache") == 100.0

    def test_partial_overlap(self):
        from prompt_router.comparison import jaccard_similarity

        # {a, b, c} vs {b, c, d}: 2 shared of 4
        assert jaccard_similarity("a b c", "b c d") == pytest.approx(50.0)

    def test_disjoint(self):
        from prompt_router.comparison import jaccard_similarity

        assert jaccard_similarity("alpha", "beta") == 0.0


class TestClassifyStyle:
    def test_code_focused(self):
        from prompt_router.comparison import ResponseStyle, classify_style

        content = "Here you go:\n```python\nprint('hi')\n```"
        assert classify_style(content) == ResponseStyle.CODE_FOCUSED

    def test_technical(self):
        from prompt_router.comparison import ResponseStyle, classify_style

        content = "The implementation relies on a layered architecture and an optimization pass."
        assert classify_style(content) == ResponseStyle.TECHNICAL

    def test_conversational(self):
        from prompt_router.comparison import ResponseStyle, classify_style

        content = "I think you might enjoy this. Perhaps try it out, it could help."
        assert classify_style(content) == ResponseStyle.CONVERSATIONAL

    def test_neutral(self):
        from prompt_router.comparison import ResponseStyle, classify_style

        assert classify_style("Paris is the capital of France.") == ResponseStyle.NEUTRAL


class TestCompareInsufficient:
    """Fewer than two valid responses never raises."""

    @pytest.mark.parametrize(
        "responses",
        [
            {},
            {"a": None},
            {"a": "only one"},
            {"a": "one", "b": ""},
            {"a": "one", "b": "   \n"},
        ],
    )
    def test_insufficient(self, responses):
        from prompt_router.comparison import ComparisonEngine

        built = {
            engine: _response(engine, content)
            for engine, content in responses.items()
            if content is not None
        }
        result = ComparisonEngine().compare(built)

        assert result.similarities == 0
        assert result.differences == []
        assert result.key_insights == ["Insufficient responses for comparison"]
        assert result.recommendation

    def test_error_responses_are_filtered(self):
        from prompt_router.comparison import ComparisonEngine

        result = ComparisonEngine().compare(
            _responses(
                _response("a", "an answer"),
                _response("b", "partial answer", error="rate limited"),
            )
        )
        assert result.similarities == 0
        assert result.key_insights == ["Insufficient responses for comparison"]


class TestCompare:
    def test_identical_responses(self):
        from prompt_router.comparison import ComparisonEngine

        text = "Use a write-through cache in front of the database."
        result = ComparisonEngine().compare(
            _responses(_response("a", text, 1000), _response("b", text, 1200))
        )

        assert result.similarities == 100
        assert result.differences == []
        assert result.key_insights[0].startswith("High consensus (100% similarity)")
        assert result.recommendation.startswith("High consensus detected")

    def test_similarity_is_rounded_pairwise_mean(self):
        from prompt_router.comparison import ComparisonEngine

        result = ComparisonEngine().compare(
            _responses(
                _response("a", "a b c"),
                _response("b", "b c d"),
                _response("c", "a b c"),
            )
        )
        # Pairs: (a, b) 50, (a, c) 100, (b, c) 50 -> 66.67
        assert result.similarities == 67
        assert result.key_insights[0].startswith("Moderate agreement (67% similarity)")
        assert result.recommendation.startswith("Moderate agreement")

    def test_low_consensus(self):
        from prompt_router.comparison import ComparisonEngine

        result = ComparisonEngine().compare(
            _responses(_response("a", "red green blue"), _response("b", "one two three"))
        )
        assert result.similarities == 0
        assert result.key_insights[0].startswith("Low consensus")
        assert result.recommendation.startswith("Low consensus")

    def test_length_difference(self):
        from prompt_router.comparison import ComparisonEngine, DifferenceType, Severity

        result = ComparisonEngine().compare(
            _responses(_response("short", "x" * 60), _response("long", "x" * 100))
        )
        (length_diff,) = [d for d in result.differences if d.type == DifferenceType.COMPLETENESS]
        assert length_diff.severity == Severity.MEDIUM
        assert length_diff.examples == ["short: 60 characters", "long: 100 characters"]

    def test_length_within_threshold(self):
        from prompt_router.comparison import ComparisonEngine, DifferenceType

        result = ComparisonEngine().compare(
            _responses(_response("a", "x" * 70), _response("b", "x" * 100))
        )
        assert not [d for d in result.differences if d.type == DifferenceType.COMPLETENESS]

    def test_timing_difference(self):
        from prompt_router.comparison import ComparisonEngine, DifferenceType, Severity

        result = ComparisonEngine().compare(
            _responses(_response("fast", "same text", 1000), _response("slow", "same text", 2500))
        )
        (timing,) = [d for d in result.differences if d.type == DifferenceType.APPROACH]
        assert timing.severity == Severity.LOW
        assert timing.examples == ["fast: 1000ms", "slow: 2500ms"]

    def test_timing_exactly_double_not_flagged(self):
        from prompt_router.comparison import ComparisonEngine, DifferenceType

        result = ComparisonEngine().compare(
            _responses(_response("a", "same text", 1000), _response("b", "same text", 2000))
        )
        assert not [d for d in result.differences if d.type == DifferenceType.APPROACH]

    def test_zero_execution_time(self):
        from prompt_router.comparison import ComparisonEngine, DifferenceType

        engine = ComparisonEngine()
        flagged = engine.compare(
            _responses(_response("a", "same text", 0), _response("b", "same text", 10))
        )
        assert [d for d in flagged.differences if d.type == DifferenceType.APPROACH]

        both_zero = engine.compare(
            _responses(_response("a", "same text", 0), _response("b", "same text", 0))
        )
        assert not [d for d in both_zero.differences if d.type == DifferenceType.APPROACH]

    def test_style_difference(self):
        from prompt_router.comparison import ComparisonEngine, DifferenceType

        result = ComparisonEngine().compare(
            _responses(
                _response("coder", "```js\nconsole.log(1)\n```"),
                _response("chatty", "I think perhaps you might like this"),
            )
        )
        (style,) = [d for d in result.differences if d.type == DifferenceType.STYLE]
        assert style.examples == ["coder: code-focused", "chatty: conversational"]

    def test_same_style_not_reported(self):
        from prompt_router.comparison import ComparisonEngine, DifferenceType

        result = ComparisonEngine().compare(
            _responses(_response("a", "Paris is lovely."), _response("b", "Rome is lovely."))
        )
        assert not [d for d in result.differences if d.type == DifferenceType.STYLE]

    def test_fastest_and_length_insights_always_present(self):
        from prompt_router.comparison import ComparisonEngine

        result = ComparisonEngine().compare(
            _responses(
                _response("a", "same words here", 3000),
                _response("b", "same words here", 1000),
            )
        )
        assert "Fastest response: b (1000ms, 2000ms avg)" in result.key_insights
        assert "Response length range: 15-15 characters (15 avg)" in result.key_insights

    def test_significant_length_variation_insight(self):
        from prompt_router.comparison import ComparisonEngine

        result = ComparisonEngine().compare(
            _responses(_response("a", "word " * 2), _response("b", "word " * 40))
        )
        assert (
            "Response lengths vary significantly - different levels of detail provided"
            in result.key_insights
        )

    def test_every_difference_kind_yields_only_fixed_insights(self):
        from prompt_router.comparison import ComparisonEngine, DifferenceType, Severity

        result = ComparisonEngine().compare(
            _responses(
                _response("coder", "```js\nconsole.log(1)\n```", 1000),
                _response("chatty", "I think perhaps you might like this one " * 5, 5000),
            )
        )

        assert {d.type for d in result.differences} == {
            DifferenceType.COMPLETENESS,
            DifferenceType.APPROACH,
            DifferenceType.STYLE,
        }
        assert all(d.severity != Severity.HIGH for d in result.differences)
        assert len(result.key_insights) == 4
        assert result.key_insights[1].startswith("Fastest response: coder")
        assert result.key_insights[2].startswith("Response length range:")
        assert result.key_insights[3].startswith("Response lengths vary significantly")

    def test_similarity_matrix(self):
        from prompt_router.comparison import similarity_matrix

        matrix = similarity_matrix(
            _responses(
                _response("a", "a b c"),
                _response("b", "b c d"),
                _response("err", "", error="boom"),
            )
        )
        assert set(matrix) == {"a", "b"}
        assert matrix["a"]["a"] == 100.0
        assert matrix["a"]["b"] == matrix["b"]["a"] == pytest.approx(50.0)

    def test_to_dict(self):
        from prompt_router.comparison import ComparisonEngine

        result = ComparisonEngine().compare(
            _responses(_response("a", "x" * 10, 100), _response("b", "y" * 50, 900))
        )
        data = result.to_dict()
        assert set(data) == {"similarities", "differences", "keyInsights", "recommendation"}
        assert {d["type"] for d in data["differences"]} >= {"completeness", "approach"}
