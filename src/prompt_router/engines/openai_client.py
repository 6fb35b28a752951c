"""OpenAI-compatible chat completion client.

Used as the AI-assisted analysis collaborator for PromptAnalyzer. Any server
that speaks the OpenAI ``/chat/completions`` protocol works (OpenAI, Ollama's
OpenAI endpoint, vLLM, LiteLLM proxies).

Usage:
    from prompt_router.engines import OpenAIChatClient
    from prompt_router.analysis import PromptAnalyzer

    client = OpenAIChatClient(api_key="sk-...", model="gpt-4o-mini")
    analyzer = PromptAnalyzer(completion_fn=client.complete)
    analysis = await analyzer.analyze("Design a caching layer for our API")
"""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from ..config import AnalyzerConfig
from ..errors import AnalysisClientError

logger = logging.getLogger(__name__)


class OpenAIChatClient:
    """Minimal async client for a single chat completion.

    Never retries; a failed call raises AnalysisClientError and the caller
    decides what to do with it.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gpt-4o-mini",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
        max_tokens: int = 500,
        temperature: float = 0.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._transport = transport

    @classmethod
    def from_config(cls, config: AnalyzerConfig) -> "OpenAIChatClient":
        return cls(
            api_key=config.api_key,
            model=config.model,
            base_url=config.base_url,
            timeout=config.timeout_seconds,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/chat/completions"

    def build_payload(self, user_prompt: str, system_instruction: str) -> Dict[str, Any]:
        messages: List[Dict[str, str]] = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})
        messages.append({"role": "user", "content": user_prompt})
        return {
            "model": self.model,
            "messages": messages,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def complete(self, user_prompt: str, system_instruction: str = "") -> str:
        """Send one chat completion request and return the message text.

        Raises:
            AnalysisClientError: On timeout, HTTP error, or malformed response
        """
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        payload = self.build_payload(user_prompt, system_instruction)
        start_time = time.time()

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(self.endpoint, headers=headers, json=payload)
        except httpx.TimeoutException as e:
            raise AnalysisClientError(f"Timeout after {self.timeout}s") from e
        except httpx.HTTPError as e:
            raise AnalysisClientError(f"Request to {self.endpoint} failed: {e}") from e

        latency_ms = int((time.time() - start_time) * 1000)

        if response.status_code in (401, 403):
            raise AnalysisClientError(
                f"Authentication failed for {self.model}: {response.status_code}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise AnalysisClientError(
                f"{self.model} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise AnalysisClientError(f"Malformed completion response: {e}") from e

        logger.debug("Completion from %s in %dms", self.model, latency_ms)
        return content or ""
