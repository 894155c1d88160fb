"""Test-only fake LLM providers.

These providers are deterministic and never call external services:
- ScriptedLLMProvider replays a fixed list of replies (or errors) in order.
- RoutingLLMProvider picks a reply by looking for a marker in the prompt.
- FailingLLMProvider fails every call, like an unreachable backend.

Every provider records the messages it received so tests can assert on the
prompts that were sent.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from contextsmith.core.exceptions import LLMCallError
from contextsmith.interfaces.llm_provider import LLMProvider, LLMResponse, Message


@dataclass
class GenerateCall:
    messages: list[Message]

    @property
    def system(self) -> str | None:
        for m in self.messages:
            if m.role.value == "system":
                return m.content
        return None

    @property
    def prompt(self) -> str:
        return self.messages[-1].content if self.messages else ""


class _RecordingProvider(LLMProvider):
    def __init__(self, model: str = "fake-model") -> None:
        self._model = model
        self.calls: list[GenerateCall] = []

    @property
    def name(self) -> str:
        return "fake"

    @property
    def model(self) -> str:
        return self._model

    def estimate_tokens(self, text: str) -> int:
        return len(text) // 4

    def get_usage_stats(self) -> dict[str, Any]:
        return {"requests_made": len(self.calls)}

    def _respond(self, content: str) -> LLMResponse:
        return LLMResponse(
            content=content,
            tokens_used=len(content) // 4,
            model=self._model,
            finish_reason="stop",
        )


class ScriptedLLMProvider(_RecordingProvider):
    """Replies with the next scripted entry; exceptions in the script are raised.

    Once the script is exhausted, ``default`` is returned, or LLMCallError is
    raised when no default was given.
    """

    def __init__(
        self,
        replies: list[str | Exception] | None = None,
        *,
        default: str | None = None,
        model: str = "fake-model",
    ) -> None:
        super().__init__(model)
        self._replies = list(replies or [])
        self._default = default

    async def generate_with_context(self, messages: list[Message]) -> LLMResponse:
        self.calls.append(GenerateCall(list(messages)))

        if self._replies:
            reply = self._replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return self._respond(reply)

        if self._default is not None:
            return self._respond(self._default)
        raise LLMCallError("script exhausted", status_code=503)


class RoutingLLMProvider(_RecordingProvider):
    """Returns the reply of the first route whose marker appears in the messages.

    Routes are checked in insertion order against the system and user text.
    Unmatched calls get ``default``.
    """

    def __init__(
        self,
        routes: dict[str, str | Exception],
        *,
        default: str = "{}",
        model: str = "fake-model",
    ) -> None:
        super().__init__(model)
        self._routes = dict(routes)
        self._default = default

    async def generate_with_context(self, messages: list[Message]) -> LLMResponse:
        self.calls.append(GenerateCall(list(messages)))
        text = "\n".join(m.content for m in messages)

        for marker, reply in self._routes.items():
            if marker in text:
                if isinstance(reply, Exception):
                    raise reply
                return self._respond(reply)
        return self._respond(self._default)


class FailingLLMProvider(_RecordingProvider):
    """Every call fails with a server error."""

    def __init__(self, status_code: int = 503, model: str = "fake-model") -> None:
        super().__init__(model)
        self._status_code = status_code

    async def generate_with_context(self, messages: list[Message]) -> LLMResponse:
        self.calls.append(GenerateCall(list(messages)))
        raise LLMCallError(
            f"fake server error ({self._status_code}). This is retryable.",
            status_code=self._status_code,
        )
