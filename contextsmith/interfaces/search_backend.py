"""SearchBackend protocol - retrieval over an already-indexed codebase."""

from typing import Protocol

from contextsmith.core.models import SymbolMatch


class SearchBackend(Protocol):
    """Abstract protocol for symbol retrieval.

    Implementations may raise SearchBackendError when a store is unreachable;
    the pipeline treats such failures as empty results.
    """

    async def search_similar(self, query: str, k: int) -> list[SymbolMatch]:
        """Return up to k symbols semantically close to the query, best first."""
        ...

    async def search_symbols(self, query: str) -> list[SymbolMatch]:
        """Return symbols whose name matches the query text."""
        ...

    async def find_symbols_by_name(self, name: str) -> list[SymbolMatch]:
        """Return full symbol records with exactly this name."""
        ...
