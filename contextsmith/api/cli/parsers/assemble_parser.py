"""Assemble command argument parser for ContextSmith CLI."""

import argparse
from pathlib import Path
from typing import Any

from .common_arguments import (
    add_common_arguments,
    add_config_arguments,
    add_project_arguments,
)


def add_assemble_subparser(subparsers: Any) -> argparse.ArgumentParser:
    """Add assemble command subparser to the main parser.

    Args:
        subparsers: Subparsers object from the main argument parser

    Returns:
        The configured assemble subparser
    """
    assemble_parser = subparsers.add_parser(
        "assemble",
        help="Assemble a budgeted context for a task",
        description=(
            "Run the full retrieval pipeline against a JSON symbol index: plan, "
            "run workers, answer critical questions, then deduplicate, prune and "
            "audit the gathered context."
        ),
    )
    assemble_parser.add_argument("task", type=str, help="Task description")
    assemble_parser.add_argument(
        "--symbols",
        type=Path,
        required=True,
        help="Path to a JSON symbol index",
    )
    assemble_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    add_project_arguments(assemble_parser)
    add_common_arguments(assemble_parser)
    add_config_arguments(assemble_parser, ["llm", "pipeline"])

    return assemble_parser
