"""
Text-generation provider configuration for ContextSmith.

Covers which provider to talk to (Gemini REST API or any OpenAI-compatible
endpoint) and the retry policy applied around every call.
"""

import argparse
import os
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr, field_validator

from contextsmith.core.constants import (
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_RETRIES,
    GEMINI_DEFAULT_MODEL,
    OPENAI_DEFAULT_MODEL,
)


class LLMConfig(BaseModel):
    """
    Text-generation configuration.

    Environment Variables:
        CONTEXTSMITH_LLM__PROVIDER=gemini
        CONTEXTSMITH_LLM__MODEL=gemini-2.0-flash
        CONTEXTSMITH_LLM__API_KEY=...
        GEMINI_API_KEY / OPENAI_API_KEY are used when no key is configured
    """

    provider: Literal["gemini", "openai"] = Field(
        default="gemini", description="LLM provider (gemini, openai)"
    )

    model: str | None = Field(
        default=None,
        description="Model name (uses provider default if not specified)",
    )

    api_key: SecretStr | None = Field(
        default=None, description="API key for authentication (provider-specific)"
    )

    base_url: str | None = Field(
        default=None, description="Base URL for the provider API"
    )

    temperature: float = Field(
        default=0.7, ge=0.0, le=2.0, description="Sampling temperature"
    )

    timeout: int = Field(default=60, description="Request timeout in seconds")

    max_retries: int = Field(
        default=DEFAULT_MAX_RETRIES,
        ge=0,
        description="Retries after the first failed call (total attempts = max_retries + 1)",
    )

    base_delay: float = Field(
        default=DEFAULT_BASE_DELAY_SECONDS,
        ge=0.0,
        description="Base backoff delay in seconds, doubled on every retry",
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str | None) -> str | None:
        """Validate and normalize base URL."""
        if v is None:
            return v

        v = v.rstrip("/")
        if not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v

    def get_default_model(self) -> str:
        """Get the model name, using the provider default if not specified."""
        if self.model:
            return self.model
        if self.provider == "openai":
            return OPENAI_DEFAULT_MODEL
        return GEMINI_DEFAULT_MODEL

    def resolve_api_key(self) -> str | None:
        """Configured key first, then the provider's conventional env var."""
        if self.api_key is not None:
            return self.api_key.get_secret_value()
        env_var = "OPENAI_API_KEY" if self.provider == "openai" else "GEMINI_API_KEY"
        return os.getenv(env_var)

    def is_provider_configured(self) -> bool:
        """Gemini always needs a key; custom OpenAI-compatible endpoints may not."""
        if self.provider == "openai" and self.base_url:
            return True
        return self.resolve_api_key() is not None

    def get_provider_config(self) -> dict[str, Any]:
        """
        Get provider-specific configuration dictionary.

        Returns:
            Keyword arguments for the selected provider's constructor
        """
        config: dict[str, Any] = {
            "model": self.get_default_model(),
            "temperature": self.temperature,
            "timeout": self.timeout,
        }

        api_key = self.resolve_api_key()
        if api_key:
            config["api_key"] = api_key
        if self.base_url:
            config["base_url"] = self.base_url

        return config

    @classmethod
    def add_cli_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Add LLM-related CLI arguments."""
        parser.add_argument(
            "--provider",
            choices=["gemini", "openai"],
            help="LLM provider (default: gemini)",
        )
        parser.add_argument(
            "--model",
            help="Model name (uses provider default if not specified)",
        )
        parser.add_argument(
            "--base-url",
            help="Base URL for the LLM API",
        )

    @classmethod
    def extract_cli_overrides(cls, args: Any) -> dict[str, Any]:
        """Extract LLM config from CLI arguments."""
        overrides: dict[str, Any] = {}
        if getattr(args, "provider", None):
            overrides["provider"] = args.provider
        if getattr(args, "model", None):
            overrides["model"] = args.model
        if getattr(args, "base_url", None):
            overrides["base_url"] = args.base_url
        return overrides

    def __repr__(self) -> str:
        """String representation hiding sensitive information."""
        api_key_display = "***" if self.api_key else None
        return (
            f"LLMConfig("
            f"provider={self.provider}, "
            f"model={self.get_default_model()}, "
            f"api_key={api_key_display}, "
            f"base_url={self.base_url}, "
            f"max_retries={self.max_retries})"
        )
