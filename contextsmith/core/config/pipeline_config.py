"""Retrieval pipeline configuration: budgets, gates and loop limits."""

import argparse
from typing import Any

from pydantic import BaseModel, Field, field_validator

from contextsmith.core.constants import (
    AUDIT_CATEGORY_THRESHOLD,
    AUDIT_GLOBAL_THRESHOLD,
    AUDIT_PREVIEW_CHARS,
    DEFAULT_MAX_ITEMS_PER_CATEGORY,
    DEFAULT_TOKEN_BUDGET,
    QUESTION_MAX_RETRIES,
    SIMILAR_SEARCH_K,
)


class PipelineConfig(BaseModel):
    """Tunables for planning, question answering and context shrinking."""

    token_budget: int = Field(
        default=DEFAULT_TOKEN_BUDGET,
        description="Estimated-token budget for the assembled context",
    )
    question_max_retries: int = Field(
        default=QUESTION_MAX_RETRIES,
        ge=1,
        description="Search/verify attempts per critical question",
    )
    similar_search_k: int = Field(
        default=SIMILAR_SEARCH_K,
        ge=1,
        description="Number of similarity hits requested per search",
    )
    max_items_per_category: int = Field(
        default=DEFAULT_MAX_ITEMS_PER_CATEGORY,
        ge=1,
        description="Per-bucket cap applied by the budget pruner",
    )
    audit_global_threshold: int = Field(
        default=AUDIT_GLOBAL_THRESHOLD,
        ge=0,
        description="Audit runs only when more items than this are present overall",
    )
    audit_category_threshold: int = Field(
        default=AUDIT_CATEGORY_THRESHOLD,
        ge=0,
        description="A category is audited only when it holds more items than this",
    )
    audit_preview_chars: int = Field(
        default=AUDIT_PREVIEW_CHARS,
        ge=1,
        description="Characters of content shown per item in audit prompts",
    )
    max_concurrency: int = Field(
        default=1,
        description="Maximum workers executed at once within a wave",
    )
    generate_questions: bool = Field(
        default=True,
        description="Generate and answer critical questions after the workers run",
    )

    @field_validator("token_budget")
    @classmethod
    def clamp_token_budget(cls, v: int) -> int:
        """Negative budgets behave like a zero budget."""
        return max(v, 0)

    @field_validator("max_concurrency")
    @classmethod
    def validate_max_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_concurrency must be at least 1")
        return v

    @classmethod
    def add_cli_arguments(cls, parser: argparse.ArgumentParser) -> None:
        """Add pipeline-related CLI arguments."""
        parser.add_argument(
            "--budget",
            type=int,
            help=f"Token budget for the assembled context (default: {DEFAULT_TOKEN_BUDGET})",
        )
        parser.add_argument(
            "--max-concurrency",
            type=int,
            help="Maximum workers run at once (default: 1)",
        )
        parser.add_argument(
            "--no-questions",
            action="store_true",
            help="Skip critical question generation",
        )

    @classmethod
    def extract_cli_overrides(cls, args: Any) -> dict[str, Any]:
        """Extract pipeline config from CLI arguments."""
        overrides: dict[str, Any] = {}
        if getattr(args, "budget", None) is not None:
            overrides["token_budget"] = args.budget
        if getattr(args, "max_concurrency", None) is not None:
            overrides["max_concurrency"] = args.max_concurrency
        if getattr(args, "no_questions", False):
            overrides["generate_questions"] = False
        return overrides
