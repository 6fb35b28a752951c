"""Tests for AI-assisted prompt analysis with heuristic fallback."""

import json
from unittest.mock import AsyncMock

import pytest


def _payload(**overrides):
    data = {
        "topics": ["python", "testing"],
        "complexity": 6,
        "taskType": "code-generation",
        "urgency": "low",
        "expectedResponseLength": "long",
        "requiresCreativity": False,
        "requiresAccuracy": True,
        "technicalDepth": 7,
        "estimatedTokens": 900,
    }
    data.update(overrides)
    return data


class TestExtractJsonObject:
    """Test extract_json_object()."""

    def test_plain_object(self):
        from prompt_router.analysis import extract_json_object

        assert extract_json_object('{"a": 1}') == '{"a": 1}'

    def test_object_wrapped_in_prose(self):
        from prompt_router.analysis import extract_json_object

        text = 'Sure! Here is the analysis:\n{"a": {"b": 2}}\nLet me know if you need more.'
        assert extract_json_object(text) == '{"a": {"b": 2}}'

    def test_braces_inside_strings_are_ignored(self):
        from prompt_router.analysis import extract_json_object

        text = 'Result: {"a": "}{", "b": "\\"}"} trailing }'
        assert json.loads(extract_json_object(text)) == {"a": "}{", "b": '"}'}

    def test_no_object(self):
        from prompt_router.analysis import extract_json_object

        assert extract_json_object("no json here") is None
        assert extract_json_object("{ unbalanced") is None


class TestParseAnalysisResponse:
    """Test parse_analysis_response() validation and defaults."""

    def test_full_payload(self):
        from prompt_router.analysis import ResponseLength, TaskType, Urgency
        from prompt_router.analysis.analyzer import parse_analysis_response

        analysis = parse_analysis_response(json.dumps(_payload()))

        assert analysis.task_type == TaskType.CODE_GENERATION
        assert analysis.complexity == 6
        assert analysis.urgency == Urgency.LOW
        assert analysis.expected_response_length == ResponseLength.LONG
        assert analysis.technical_depth == 7
        assert analysis.estimated_tokens == 900
        assert analysis.topics == ("python", "testing")

    def test_missing_optional_fields_are_defaulted(self):
        from prompt_router.analysis import ResponseLength, Urgency
        from prompt_router.analysis.analyzer import parse_analysis_response

        analysis = parse_analysis_response('{"taskType": "analysis", "complexity": 4}')

        assert analysis.urgency == Urgency.MEDIUM
        assert analysis.expected_response_length == ResponseLength.MEDIUM
        assert analysis.requires_accuracy is True
        assert analysis.requires_creativity is False
        assert analysis.estimated_tokens == 300
        assert analysis.technical_depth == 5
        assert analysis.topics == ()

    @pytest.mark.parametrize("raw,expected", [(-4, 1), (0, 1), (15, 10), ("8", 8), (7.6, 8)])
    def test_complexity_is_clamped(self, raw, expected):
        from prompt_router.analysis.analyzer import parse_analysis_response

        analysis = parse_analysis_response(json.dumps(_payload(complexity=raw)))
        assert analysis.complexity == expected

    @pytest.mark.parametrize("raw,expected", [(-1, 1), (99, 10), ("deep", 5)])
    def test_technical_depth_is_clamped(self, raw, expected):
        from prompt_router.analysis.analyzer import parse_analysis_response

        analysis = parse_analysis_response(json.dumps(_payload(technicalDepth=raw)))
        assert analysis.technical_depth == expected

    def test_unknown_enums_fall_back(self):
        from prompt_router.analysis import TaskType, Urgency
        from prompt_router.analysis.analyzer import parse_analysis_response

        analysis = parse_analysis_response(
            json.dumps(_payload(taskType="interpretive-dance", urgency="yesterday"))
        )
        assert analysis.task_type == TaskType.GENERAL_CHAT
        assert analysis.urgency == Urgency.MEDIUM

    def test_task_type_spelling_is_normalized(self):
        from prompt_router.analysis import TaskType
        from prompt_router.analysis.analyzer import parse_analysis_response

        analysis = parse_analysis_response(json.dumps(_payload(taskType="Code_Review")))
        assert analysis.task_type == TaskType.CODE_REVIEW

    def test_explicit_false_accuracy_is_kept(self):
        from prompt_router.analysis.analyzer import parse_analysis_response

        analysis = parse_analysis_response(json.dumps(_payload(requiresAccuracy="false")))
        assert analysis.requires_accuracy is False

    def test_bad_estimated_tokens_default(self):
        from prompt_router.analysis.analyzer import parse_analysis_response

        analysis = parse_analysis_response(json.dumps(_payload(estimatedTokens=-20)))
        assert analysis.estimated_tokens == 300

    @pytest.mark.parametrize(
        "response",
        [
            "I cannot analyze that.",
            '{"complexity": 5}',
            '{"taskType": "analysis"}',
            '{"taskType": "analysis", "complexity": "very"}',
            "[1, 2, 3]",
        ],
    )
    def test_invalid_responses_raise_value_error(self, response):
        from prompt_router.analysis.analyzer import parse_analysis_response

        with pytest.raises(ValueError):
            parse_analysis_response(response)


class TestPromptAnalyzer:
    """Test PromptAnalyzer.analyze() fallback behaviour."""

    @pytest.mark.asyncio
    async def test_uses_ai_result_when_valid(self):
        from prompt_router.analysis import (
            ANALYSIS_SYSTEM_INSTRUCTION,
            PromptAnalyzer,
            TaskType,
        )

        completion = AsyncMock(return_value="Analysis:\n" + json.dumps(_payload()) + "\nDone.")
        analyzer = PromptAnalyzer(completion_fn=completion)

        analysis = await analyzer.analyze("Write unit tests for my Python module")

        assert analysis.task_type == TaskType.CODE_GENERATION
        assert analysis.estimated_tokens == 900
        completion.assert_awaited_once()
        user_prompt, system_instruction = completion.await_args.args
        assert "Write unit tests for my Python module" in user_prompt
        assert system_instruction == ANALYSIS_SYSTEM_INSTRUCTION

    @pytest.mark.asyncio
    async def test_falls_back_when_collaborator_raises(self):
        from prompt_router.analysis import PromptAnalyzer, heuristic_analysis
        from prompt_router.errors import AnalysisClientError

        completion = AsyncMock(side_effect=AnalysisClientError("boom", status_code=500))
        analyzer = PromptAnalyzer(completion_fn=completion)

        prompt = "Fix this bug in my parser"
        analysis = await analyzer.analyze(prompt)

        assert analysis == heuristic_analysis(prompt)
        assert completion.await_count == 1

    @pytest.mark.asyncio
    async def test_falls_back_on_malformed_json(self, caplog):
        from prompt_router.analysis import PromptAnalyzer, heuristic_analysis

        analyzer = PromptAnalyzer(completion_fn=AsyncMock(return_value="{not json}"))

        with caplog.at_level("WARNING"):
            analysis = await analyzer.analyze("How tall is Mount Everest?")

        assert analysis == heuristic_analysis("How tall is Mount Everest?")
        assert "fallback" in caplog.text

    @pytest.mark.asyncio
    async def test_falls_back_on_missing_fields(self):
        from prompt_router.analysis import PromptAnalyzer, heuristic_analysis

        analyzer = PromptAnalyzer(completion_fn=AsyncMock(return_value='{"topics": []}'))
        prompt = "Brainstorm ideas for a podcast"
        assert await analyzer.analyze(prompt) == heuristic_analysis(prompt)

    @pytest.mark.asyncio
    async def test_without_collaborator_uses_heuristic(self):
        from prompt_router.analysis import PromptAnalyzer, heuristic_analysis

        analyzer = PromptAnalyzer()
        assert await analyzer.analyze("Plan my week") == heuristic_analysis("Plan my week")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("prompt", ["", "   ", None, 42])
    async def test_invalid_prompt_raises(self, prompt):
        from prompt_router.analysis import PromptAnalyzer
        from prompt_router.errors import InvalidPromptError

        completion = AsyncMock(return_value=json.dumps(_payload()))
        analyzer = PromptAnalyzer(completion_fn=completion)

        with pytest.raises(InvalidPromptError):
            await analyzer.analyze(prompt)
        completion.assert_not_awaited()

    def test_invalid_prompt_is_value_error(self):
        from prompt_router.analysis import PromptAnalyzer

        with pytest.raises(ValueError):
            PromptAnalyzer().analyze_offline("")

    def test_analyze_offline_never_calls_collaborator(self):
        from prompt_router.analysis import PromptAnalyzer

        completion = AsyncMock()
        analyzer = PromptAnalyzer(completion_fn=completion)
        analyzer.analyze_offline("Explain the CAP theorem")
        completion.assert_not_called()


class TestPromptAnalyzerFromConfig:
    """Test PromptAnalyzer.from_config() wiring."""

    def test_no_api_key_for_hosted_openai_disables_ai_path(self):
        from prompt_router.analysis import PromptAnalyzer
        from prompt_router.config import RouterConfig

        analyzer = PromptAnalyzer.from_config(RouterConfig())
        assert analyzer.completion_fn is None

    def test_api_key_enables_ai_path(self):
        from prompt_router.analysis import PromptAnalyzer
        from prompt_router.config import AnalyzerConfig, RouterConfig

        config = RouterConfig(analysis=AnalyzerConfig(api_key="sk-test"))
        analyzer = PromptAnalyzer.from_config(config)
        assert analyzer.completion_fn is not None

    def test_local_endpoint_needs_no_key(self):
        from prompt_router.analysis import PromptAnalyzer
        from prompt_router.config import AnalyzerConfig, RouterConfig

        config = RouterConfig(analysis=AnalyzerConfig(base_url="http://localhost:11434/v1"))
        assert PromptAnalyzer.from_config(config).completion_fn is not None

    def test_disabled(self):
        from prompt_router.analysis import PromptAnalyzer
        from prompt_router.config import AnalyzerConfig, RouterConfig

        config = RouterConfig(analysis=AnalyzerConfig(enabled=False, api_key="sk-test"))
        assert PromptAnalyzer.from_config(config).completion_fn is None
