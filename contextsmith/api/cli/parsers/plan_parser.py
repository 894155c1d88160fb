"""Plan command argument parser for ContextSmith CLI."""

import argparse
from typing import Any

from .common_arguments import (
    add_common_arguments,
    add_config_arguments,
    add_project_arguments,
)


def add_plan_subparser(subparsers: Any) -> argparse.ArgumentParser:
    """Add plan command subparser to the main parser.

    Args:
        subparsers: Subparsers object from the main argument parser

    Returns:
        The configured plan subparser
    """
    plan_parser = subparsers.add_parser(
        "plan",
        help="Plan the search for a task",
        description=(
            "Classify a task, choose specialized workers and queries, and print "
            "the dependency-ordered execution schedule."
        ),
    )
    plan_parser.add_argument("task", type=str, help="Task description")
    plan_parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    add_project_arguments(plan_parser)
    add_common_arguments(plan_parser)
    add_config_arguments(plan_parser, ["llm"])

    return plan_parser
