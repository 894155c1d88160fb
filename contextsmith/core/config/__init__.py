"""Configuration package for ContextSmith."""

from .config import Config
from .llm_config import LLMConfig
from .logging_config import FileLoggingConfig, LoggingConfig
from .pipeline_config import PipelineConfig

__all__ = [
    "Config",
    "FileLoggingConfig",
    "LLMConfig",
    "LoggingConfig",
    "PipelineConfig",
]
