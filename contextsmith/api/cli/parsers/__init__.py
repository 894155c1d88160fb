"""Argument parser utilities for ContextSmith CLI commands."""

from .assemble_parser import add_assemble_subparser
from .main_parser import create_main_parser, setup_subparsers
from .plan_parser import add_plan_subparser

__all__ = [
    "add_assemble_subparser",
    "add_plan_subparser",
    "create_main_parser",
    "setup_subparsers",
]
