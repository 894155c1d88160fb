"""Helpers shared by commands that describe a project and talk to a model."""

import argparse

from contextsmith.core.config.config import Config
from contextsmith.core.exceptions import ConfigError
from contextsmith.interfaces.project_descriptor import ProjectSignature
from contextsmith.llm_manager import LLMManager


def project_from_args(args: argparse.Namespace) -> ProjectSignature:
    """Build the project signature from --language/--framework/... flags."""
    return ProjectSignature(
        language=getattr(args, "language", "") or "",
        framework=getattr(args, "framework", "") or "",
        package_manager=getattr(args, "package_manager", "") or "",
        ui_library=getattr(args, "ui_library", "") or "",
        validation=getattr(args, "validation", "") or "",
    )


def create_llm_manager(config: Config) -> LLMManager:
    """LLM manager for the configured provider.

    Raises:
        ConfigError: If the provider is missing credentials
    """
    if not config.llm.is_provider_configured():
        env_var = "OPENAI_API_KEY" if config.llm.provider == "openai" else "GEMINI_API_KEY"
        raise ConfigError(
            f"No API key configured for {config.llm.provider} "
            f"(set {env_var} or CONTEXTSMITH_LLM__API_KEY)"
        )
    return LLMManager(config.llm)
