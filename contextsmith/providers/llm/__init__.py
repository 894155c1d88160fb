"""LLM provider implementations."""

from .gemini_provider import GeminiLLMProvider
from .openai_compatible_provider import OpenAICompatibleProvider

__all__ = ["GeminiLLMProvider", "OpenAICompatibleProvider"]
