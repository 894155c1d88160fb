"""Removes repeated items from a ContextData, first occurrence wins."""

from collections.abc import Callable, Hashable
from typing import Any

from loguru import logger

from .models import ContextData

# Identity of an item within its bucket
_KEY_FUNCS: dict[str, Callable[[Any], Hashable]] = {
    "relevant_symbols": lambda s: (s.name, s.file_path),
    "similar_symbols": lambda s: (s.name, s.file_path),
    "types": lambda t: (t.name, t.definition),
    "schemas": lambda s: (s.name, s.definition),
    "constants": lambda c: (c.name, c.value),
    "design_tokens": lambda d: (d.name, d.value),
}


def _dedupe(items: list[Any], key: Callable[[Any], Hashable]) -> list[Any]:
    seen: set[Hashable] = set()
    kept = []
    for item in items:
        k = key(item)
        if k not in seen:
            seen.add(k)
            kept.append(item)
    return kept


class Deduplicator:
    """Stable per-bucket deduplication plus relevant/similar overlap removal.

    A symbol already among the relevant symbols is dropped from the similar
    symbols (never the reverse). Running it twice changes nothing.
    """

    def deduplicate(self, context: ContextData) -> int:
        """Deduplicate in place and return the number of removed items."""
        before = context.total_items()

        for bucket, key in _KEY_FUNCS.items():
            context.set_bucket(bucket, _dedupe(context.bucket(bucket), key))

        relevant_names = {s.name for s in context.relevant_symbols}
        context.similar_symbols[:] = [
            s for s in context.similar_symbols if s.name not in relevant_names
        ]

        removed = before - context.total_items()
        if removed:
            logger.debug(f"Deduplicated {removed} items from context")
        return removed
