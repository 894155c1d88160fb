"""LLM provider interface for ContextSmith."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    """One chat turn sent to a text-generation service."""

    role: Role
    content: str

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(Role.USER, content)


@dataclass
class LLMResponse:
    """Response from LLM completion."""

    content: str
    tokens_used: int
    model: str
    finish_reason: str | None = None


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    Implementations perform exactly one outbound call per method invocation
    and raise LLMCallError on failure; retrying is the caller's concern.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name."""
        pass

    @property
    @abstractmethod
    def model(self) -> str:
        """Model name."""
        pass

    async def generate(self, prompt: str) -> LLMResponse:
        """Generate a completion for a single user prompt."""
        return await self.generate_with_context([Message.user(prompt)])

    @abstractmethod
    async def generate_with_context(self, messages: list[Message]) -> LLMResponse:
        """Generate a completion for an ordered list of chat messages.

        Args:
            messages: System/user/assistant turns, oldest first

        Returns:
            LLMResponse with content and metadata
        """
        pass

    @abstractmethod
    def estimate_tokens(self, text: str) -> int:
        """Estimate token count for text."""
        pass

    @abstractmethod
    def get_usage_stats(self) -> dict[str, Any]:
        """Get usage statistics."""
        pass

    async def health_check(self) -> dict[str, Any]:
        """Perform a single round trip and report provider status."""
        try:
            response = await self.generate("Say 'OK'")
            return {
                "status": "healthy",
                "provider": self.name,
                "model": self.model,
                "test_response": response.content[:50],
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "provider": self.name,
                "error": str(e),
            }
