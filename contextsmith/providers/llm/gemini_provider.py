"""Google Gemini LLM provider for ContextSmith.

Talks to the Gemini REST API (generateContent) directly over httpx.

API: https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent
Auth: API key from GEMINI_API_KEY
"""

from typing import Any

import httpx
from loguru import logger

from contextsmith.core.constants import GEMINI_DEFAULT_BASE_URL, GEMINI_DEFAULT_MODEL
from contextsmith.core.exceptions import ConfigError, LLMCallError
from contextsmith.core.utils import estimate_tokens
from contextsmith.interfaces.llm_provider import LLMProvider, LLMResponse, Message, Role

# Gemini has no system role in `contents`; system turns are sent as model turns
_GEMINI_ROLES = {
    Role.SYSTEM: "model",
    Role.USER: "user",
    Role.ASSISTANT: "model",
}


class GeminiLLMProvider(LLMProvider):
    """Gemini provider performing a single POST per call (no internal retries)."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = GEMINI_DEFAULT_MODEL,
        base_url: str | None = None,
        temperature: float = 0.7,
        timeout: int = 60,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Gemini API key
            model: Model name (e.g., "gemini-2.0-flash")
            base_url: API root (defaults to the public v1beta endpoint)
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        if not api_key:
            raise ConfigError(
                "Gemini API key is required (set GEMINI_API_KEY or CONTEXTSMITH_LLM__API_KEY)"
            )

        self._api_key = api_key
        self._model = model
        self._base_url = (base_url or GEMINI_DEFAULT_BASE_URL).rstrip("/")
        self._temperature = temperature
        self._timeout = timeout
        self._transport = transport

        self._requests_made = 0
        self._tokens_used = 0
        self._errors = 0

    @property
    def name(self) -> str:
        return "gemini"

    @property
    def model(self) -> str:
        return self._model

    def _build_request_body(self, messages: list[Message]) -> dict[str, Any]:
        contents = [
            {"role": _GEMINI_ROLES[m.role], "parts": [{"text": m.content}]}
            for m in messages
        ]
        return {
            "contents": contents,
            "generationConfig": {
                "temperature": self._temperature,
                "topK": 40,
                "topP": 0.95,
            },
        }

    async def generate_with_context(self, messages: list[Message]) -> LLMResponse:
        url = f"{self._base_url}/models/{self._model}:generateContent"
        body = self._build_request_body(messages)

        logger.debug(f"Calling Gemini API with model: {self._model}")

        client_kwargs: dict[str, Any] = {"timeout": self._timeout}
        if self._transport is not None:
            client_kwargs["transport"] = self._transport

        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                response = await client.post(
                    url, json=body, params={"key": self._api_key}
                )
        except httpx.HTTPError as e:
            self._errors += 1
            raise LLMCallError(f"Failed to send request to Gemini API: {e}") from e

        if response.status_code >= 400:
            self._errors += 1
            status = response.status_code
            if status >= 500:
                raise LLMCallError(
                    f"Gemini API server error ({status}): {response.text}. This is retryable.",
                    status_code=status,
                )
            raise LLMCallError(
                f"Gemini API error ({status}): {response.text}", status_code=status
            )

        try:
            data = response.json()
            content = data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            self._errors += 1
            raise LLMCallError(
                f"Failed to extract text from Gemini response: {e}"
            ) from e

        usage = data.get("usageMetadata") or {}
        tokens = int(usage.get("totalTokenCount", 0) or 0)
        finish_reason = data["candidates"][0].get("finishReason")

        self._requests_made += 1
        self._tokens_used += tokens

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
            "errors": self._errors,
        }
