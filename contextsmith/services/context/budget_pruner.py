"""Shrinks a ContextData until its estimated token usage fits a budget.

Tiers are applied in order and stop as soon as usage fits:

1. drop items from test and mock files
2. cap every bucket at ``max_items_per_category`` (earliest items kept)
3. clear similar symbols, constants and design tokens, then pop relevant
   symbols from the end

After the last tier the context fits, or every prunable bucket is empty.
"""

from dataclasses import dataclass, field

from loguru import logger

from contextsmith.core.constants import (
    DEFAULT_MAX_ITEMS_PER_CATEGORY,
    MOCK_PATH_MARKER,
    TEST_PATH_MARKERS,
)

from .models import BUCKETS, ContextData

TIER_TEST_FILES = "test_files"
TIER_ITEM_CAP = "item_cap"
TIER_AGGRESSIVE = "aggressive"


def is_test_path(path: str) -> bool:
    """True for paths that look like tests, specs or mocks."""
    if any(marker in path for marker in TEST_PATH_MARKERS):
        return True
    return MOCK_PATH_MARKER in path.lower()


@dataclass
class PruneReport:
    """What the pruner did to one context."""

    budget: int
    initial_tokens: int
    final_tokens: int
    tiers_applied: list[str] = field(default_factory=list)

    @property
    def pruned(self) -> bool:
        return bool(self.tiers_applied)

    @property
    def within_budget(self) -> bool:
        return self.final_tokens <= self.budget


class BudgetPruner:
    """Tiered pruning against an estimated-token budget."""

    def __init__(self, max_items_per_category: int = DEFAULT_MAX_ITEMS_PER_CATEGORY):
        self._max_items = max(max_items_per_category, 0)

    def prune(self, context: ContextData, token_budget: int) -> PruneReport:
        """Prune in place. Negative budgets behave like zero."""
        budget = max(token_budget, 0)
        initial = context.estimated_tokens()
        report = PruneReport(budget=budget, initial_tokens=initial, final_tokens=initial)

        if initial <= budget:
            logger.debug(f"Context usage {initial} within budget {budget}")
            return report

        logger.info(f"Pruning context: usage {initial} > budget {budget}")

        for tier, apply in (
            (TIER_TEST_FILES, self._remove_test_files),
            (TIER_ITEM_CAP, self._limit_items),
            (TIER_AGGRESSIVE, self._aggressive_prune),
        ):
            apply(context, budget)
            report.tiers_applied.append(tier)
            report.final_tokens = context.estimated_tokens()
            if report.final_tokens <= budget:
                break

        logger.info(
            f"Pruned context from {initial} to {report.final_tokens} tokens "
            f"(tiers: {', '.join(report.tiers_applied)})"
        )
        return report

    def _remove_test_files(self, context: ContextData, budget: int) -> None:
        for name in BUCKETS:
            items = context.bucket(name)
            context.set_bucket(
                name, [item for item in items if not is_test_path(item.file_path)]
            )

    def _limit_items(self, context: ContextData, budget: int) -> None:
        for name in BUCKETS:
            items = context.bucket(name)
            if len(items) > self._max_items:
                del items[self._max_items :]

    def _aggressive_prune(self, context: ContextData, budget: int) -> None:
        context.similar_symbols.clear()
        context.constants.clear()
        context.design_tokens.clear()

        # Types and schemas are kept; only relevant symbols shrink further
        while context.estimated_tokens() > budget and context.relevant_symbols:
            context.relevant_symbols.pop()
