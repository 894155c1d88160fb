"""LLM manager - builds the configured provider and its retry wrapper."""

from typing import Any

from loguru import logger

from contextsmith.core.config.llm_config import LLMConfig
from contextsmith.core.exceptions import ConfigError
from contextsmith.interfaces.llm_provider import LLMProvider
from contextsmith.providers.llm.gemini_provider import GeminiLLMProvider
from contextsmith.providers.llm.openai_compatible_provider import OpenAICompatibleProvider
from contextsmith.services.resilient_caller import ResilientCaller


class LLMManager:
    """Owns the provider instance used by every pipeline stage."""

    # Registry of available providers
    _providers: dict[str, type[LLMProvider]] = {
        "gemini": GeminiLLMProvider,
        "openai": OpenAICompatibleProvider,
    }

    def __init__(self, config: LLMConfig):
        """Initialize LLM manager.

        Args:
            config: Provider selection, credentials and retry policy
        """
        self._config = config
        self._provider: LLMProvider | None = None
        self._caller: ResilientCaller | None = None

    @classmethod
    def register_provider(cls, name: str, provider_class: type[LLMProvider]) -> None:
        """Register a custom provider class."""
        cls._providers[name] = provider_class
        logger.debug(f"Registered LLM provider: {name}")

    def _create_provider(self) -> LLMProvider:
        provider_name = self._config.provider
        provider_class = self._providers.get(provider_name)
        if provider_class is None:
            raise ConfigError(
                f"Unknown LLM provider: {provider_name}. "
                f"Available: {', '.join(sorted(self._providers))}"
            )

        kwargs: dict[str, Any] = self._config.get_provider_config()
        try:
            provider = provider_class(**kwargs)
        except TypeError as e:
            raise ConfigError(f"Invalid configuration for {provider_name}: {e}") from e

        logger.info(f"Using LLM provider {provider.name} (model: {provider.model})")
        return provider

    def get_provider(self) -> LLMProvider:
        if self._provider is None:
            self._provider = self._create_provider()
        return self._provider

    def get_caller(self) -> ResilientCaller:
        """Provider wrapped with the configured retry policy."""
        if self._caller is None:
            self._caller = ResilientCaller(
                self.get_provider(),
                max_retries=self._config.max_retries,
                base_delay=self._config.base_delay,
            )
        return self._caller

    def get_usage_stats(self) -> dict[str, Any]:
        if self._provider is None:
            return {}
        return self._provider.get_usage_stats()
