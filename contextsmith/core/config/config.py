"""
Top-level configuration for ContextSmith.

Configuration Sources (in order of precedence):
1. CLI arguments
2. Environment variables (CONTEXTSMITH_*, nested with "__")
3. Default values

Environment Variables:
    CONTEXTSMITH_LLM__PROVIDER=openai
    CONTEXTSMITH_LLM__MAX_RETRIES=3
    CONTEXTSMITH_PIPELINE__TOKEN_BUDGET=4000
    CONTEXTSMITH_LOGGING__FILE__ENABLED=true
"""

from typing import Any

from loguru import logger
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from contextsmith.core.exceptions import ConfigError

from .llm_config import LLMConfig
from .logging_config import LoggingConfig
from .pipeline_config import PipelineConfig


class Config(BaseSettings):
    """Aggregated ContextSmith settings."""

    model_config = SettingsConfigDict(
        env_prefix="CONTEXTSMITH_",
        env_nested_delimiter="__",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    llm: LLMConfig = Field(default_factory=LLMConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def _extract_cli_overrides(cls, args: Any) -> dict[str, Any]:
        """Collect overrides from every section's CLI arguments."""
        overrides: dict[str, Any] = {}

        llm_overrides = LLMConfig.extract_cli_overrides(args)
        if llm_overrides:
            overrides["llm"] = llm_overrides

        pipeline_overrides = PipelineConfig.extract_cli_overrides(args)
        if pipeline_overrides:
            overrides["pipeline"] = pipeline_overrides

        logging_overrides = LoggingConfig.extract_cli_overrides(args)
        if logging_overrides:
            overrides["logging"] = logging_overrides

        return overrides

    @classmethod
    def from_args(cls, args: Any = None) -> "Config":
        """Build configuration from env/defaults with CLI overrides on top.

        Raises:
            ConfigError: If the combined configuration is invalid
        """
        overrides = cls._extract_cli_overrides(args) if args is not None else {}
        if overrides:
            logger.debug(f"Applying CLI overrides: {sorted(overrides)}")
        try:
            return cls(**overrides)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
