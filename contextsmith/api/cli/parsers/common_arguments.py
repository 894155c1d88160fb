"""Common CLI argument patterns shared across parsers."""

import argparse


def add_common_arguments(parser: argparse.ArgumentParser) -> None:
    """Add arguments common to all commands.

    Args:
        parser: Argument parser to add common arguments to
    """
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        help="Enable file logging to specified path",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set file logging level (default: INFO)",
    )


def add_project_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the detected-stack arguments used to describe the project."""
    parser.add_argument("--language", type=str, default="", help="Project language")
    parser.add_argument("--framework", type=str, default="", help="Project framework")
    parser.add_argument(
        "--package-manager", type=str, default="", help="Package manager in use"
    )
    parser.add_argument("--ui-library", type=str, default="", help="UI library in use")
    parser.add_argument(
        "--validation", type=str, default="", help="Validation library in use"
    )


def add_config_arguments(parser: argparse.ArgumentParser, configs: list[str]) -> None:
    """Add CLI arguments for specified config sections.

    Args:
        parser: Argument parser to add config arguments to
        configs: List of config section names to include
    """
    if "llm" in configs:
        from contextsmith.core.config.llm_config import LLMConfig

        LLMConfig.add_cli_arguments(parser)

    if "pipeline" in configs:
        from contextsmith.core.config.pipeline_config import PipelineConfig

        PipelineConfig.add_cli_arguments(parser)
