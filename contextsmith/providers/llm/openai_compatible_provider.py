"""OpenAI-compatible LLM provider.

Works against api.openai.com or any server exposing the Chat Completions API
(vLLM, Ollama, LiteLLM proxies, ...). The SDK's own retries are disabled;
retries are applied once, around every provider, by ResilientCaller.
"""

from typing import Any

from loguru import logger
from openai import AsyncOpenAI

from contextsmith.core.constants import OPENAI_DEFAULT_BASE_URL, OPENAI_DEFAULT_MODEL
from contextsmith.core.exceptions import LLMCallError
from contextsmith.core.utils import estimate_tokens
from contextsmith.interfaces.llm_provider import LLMProvider, LLMResponse, Message


class OpenAICompatibleProvider(LLMProvider):
    """Chat Completions provider with usage tracking."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = OPENAI_DEFAULT_MODEL,
        base_url: str | None = None,
        temperature: float = 0.7,
        timeout: int = 60,
        max_completion_tokens: int = 4096,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize OpenAI-compatible provider.

        Args:
            api_key: API key (custom endpoints may not need one)
            model: Model name
            base_url: Base URL (defaults to the official OpenAI endpoint)
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            max_completion_tokens: Maximum tokens to generate
            client: Pre-built client (used by tests)
        """
        self._model = model
        self._timeout = timeout
        self._temperature = temperature
        self._max_completion_tokens = max_completion_tokens
        self._base_url = base_url or OPENAI_DEFAULT_BASE_URL

        self._client = client or AsyncOpenAI(
            # Local servers accept any key but the SDK refuses None
            api_key=api_key or "not-needed",
            base_url=self._base_url,
            timeout=timeout,
            max_retries=0,
        )

        self._requests_made = 0
        self._tokens_used = 0
        self._prompt_tokens = 0
        self._completion_tokens = 0

    @property
    def name(self) -> str:
        return "openai"

    @property
    def model(self) -> str:
        return self._model

    async def generate_with_context(self, messages: list[Message]) -> LLMResponse:
        payload = [{"role": m.role.value, "content": m.content} for m in messages]

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=payload,
                temperature=self._temperature,
                max_completion_tokens=self._max_completion_tokens,
            )
        except Exception as e:
            status = getattr(e, "status_code", None)
            logger.error(f"{self.name} completion failed: {e}")
            suffix = " This is retryable." if status is not None and status >= 500 else ""
            raise LLMCallError(
                f"LLM completion failed: {e}.{suffix}", status_code=status
            ) from e

        self._requests_made += 1
        if response.usage:
            self._prompt_tokens += response.usage.prompt_tokens
            self._completion_tokens += response.usage.completion_tokens
            self._tokens_used += response.usage.total_tokens

        content = response.choices[0].message.content
        finish_reason = response.choices[0].finish_reason
        tokens = response.usage.total_tokens if response.usage else 0

        if content is None or not content.strip():
            logger.error(
                f"{self.name} returned empty content (finish_reason={finish_reason}, "
                f"tokens={tokens})"
            )
            raise LLMCallError(
                f"LLM returned empty response (finish_reason={finish_reason})"
            )

        if finish_reason not in ("stop", None):
            logger.warning(
                f"Unexpected finish_reason: {finish_reason} "
                f"(content_length={len(content)})"
            )

        return LLMResponse(
            content=content,
            tokens_used=tokens,
            model=self._model,
            finish_reason=finish_reason,
        )

    def estimate_tokens(self, text: str) -> int:
        return estimate_tokens(text)

    def get_usage_stats(self) -> dict[str, Any]:
        return {
            "requests_made": self._requests_made,
            "total_tokens": self._tokens_used,
            "prompt_tokens": self._prompt_tokens,
            "completion_tokens": self._completion_tokens,
        }
