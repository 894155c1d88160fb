"""Main argument parser for ContextSmith CLI."""

import argparse

from contextsmith import __version__

from .assemble_parser import add_assemble_subparser
from .plan_parser import add_plan_subparser


def create_main_parser() -> argparse.ArgumentParser:
    """Create the top-level parser with all subcommands registered."""
    parser = argparse.ArgumentParser(
        prog="contextsmith",
        description="Assemble minimal, budgeted code context for coding assistants",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"contextsmith {__version__}",
    )
    setup_subparsers(parser)
    return parser


def setup_subparsers(parser: argparse.ArgumentParser) -> None:
    subparsers = parser.add_subparsers(dest="command", help="Available commands")
    add_plan_subparser(subparsers)
    add_assemble_subparser(subparsers)
