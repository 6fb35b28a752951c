"""Tests for the OpenAI-compatible completion client."""

import json

import httpx
import pytest


def _client(handler, **kwargs):
    from prompt_router.engines import OpenAIChatClient

    return OpenAIChatClient(
        api_key=kwargs.pop("api_key", "sk-test"),
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestOpenAIChatClient:
    """Test OpenAIChatClient.complete()."""

    @pytest.mark.asyncio
    async def test_returns_message_content(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("Authorization")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion('{"taskType": "analysis"}'))

        client = _client(handler, model="gpt-4o-mini", max_tokens=300)
        content = await client.complete("Analyze this", "Return JSON")

        assert content == '{"taskType": "analysis"}'
        assert seen["url"] == "https://api.openai.com/v1/chat/completions"
        assert seen["auth"] == "Bearer sk-test"
        assert seen["body"]["model"] == "gpt-4o-mini"
        assert seen["body"]["max_tokens"] == 300
        assert seen["body"]["messages"] == [
            {"role": "system", "content": "Return JSON"},
            {"role": "user", "content": "Analyze this"},
        ]

    @pytest.mark.asyncio
    async def test_no_system_message_when_instruction_empty(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_completion("ok"))

        await _client(handler).complete("hi")
        assert [m["role"] for m in seen["body"]["messages"]] == ["user"]

    @pytest.mark.asyncio
    async def test_no_auth_header_without_key(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            return httpx.Response(200, json=_completion("ok"))

        await _client(handler, api_key=None, base_url="http://localhost:11434/v1/").complete("hi")
        assert seen["auth"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_failure(self, status):
        from prompt_router.errors import AnalysisClientError

        client = _client(lambda request: httpx.Response(status, json={"error": "nope"}))
        with pytest.raises(AnalysisClientError) as exc_info:
            await client.complete("hi")
        assert exc_info.value.status_code == status
        assert "Authentication failed" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_server_error_is_not_retried(self):
        from prompt_router.errors import AnalysisClientError

        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        with pytest.raises(AnalysisClientError) as exc_info:
            await _client(handler).complete("hi")
        assert exc_info.value.status_code == 503
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        from prompt_router.errors import AnalysisClientError

        client = _client(lambda request: httpx.Response(200, json={"choices": []}))
        with pytest.raises(AnalysisClientError, match="Malformed"):
            await client.complete("hi")

    @pytest.mark.asyncio
    async def test_timeout(self):
        from prompt_router.errors import AnalysisClientError

        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(AnalysisClientError, match="Timeout"):
            await _client(handler).complete("hi")

    @pytest.mark.asyncio
    async def test_connection_error(self):
        from prompt_router.errors import AnalysisClientError

        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(AnalysisClientError, match="failed"):
            await _client(handler).complete("hi")

    def test_from_config(self):
        from prompt_router.config import AnalyzerConfig
        from prompt_router.engines import OpenAIChatClient

        client = OpenAIChatClient.from_config(
            AnalyzerConfig(model="llama3", base_url="http://localhost:11434/v1/", timeout_seconds=5)
        )
        assert client.model == "llama3"
        assert client.endpoint == "http://localhost:11434/v1/chat/completions"
        assert client.timeout == 5
