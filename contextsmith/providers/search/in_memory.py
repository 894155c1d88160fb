"""In-memory search backend over a JSON symbol index.

A reference implementation of the SearchBackend protocol. Real deployments
plug in vector and graph stores; this one is enough for the CLI and tests.

Index file format: either a JSON array of symbol objects or an object with a
"symbols" array. Each symbol carries name, kind, file_path (or path), and
optionally content, start_line, end_line.
"""

import json
import re
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from contextsmith.core.exceptions import SearchBackendError
from contextsmith.core.models import SymbolMatch

_TOKEN_RE = re.compile(r"[A-Za-z0-9]+")
_CAMEL_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _tokenize(text: str) -> set[str]:
    """Lowercased word tokens, with camelCase split into its parts."""
    tokens: set[str] = set()
    for word in _TOKEN_RE.findall(text):
        tokens.add(word.lower())
        for part in _CAMEL_RE.split(word):
            if part:
                tokens.add(part.lower())
    return tokens


class InMemorySearchBackend:
    """Keeps SymbolMatch records in a list and searches them linearly."""

    def __init__(self, symbols: Iterable[SymbolMatch] = ()):
        self._symbols: list[SymbolMatch] = list(symbols)

    @classmethod
    def from_file(cls, path: str | Path) -> "InMemorySearchBackend":
        """Load a symbol index from a JSON file.

        Raises:
            SearchBackendError: If the file cannot be read or has the wrong shape
        """
        index_path = Path(path)
        try:
            data = json.loads(index_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise SearchBackendError(
                f"Failed to load symbol index {index_path}: {e}", backend="in_memory"
            ) from e

        if isinstance(data, dict):
            data = data.get("symbols", [])
        if not isinstance(data, list):
            raise SearchBackendError(
                f"Symbol index {index_path} must be a list of symbols",
                backend="in_memory",
            )

        symbols = [
            SymbolMatch.from_dict(item)
            for item in data
            if isinstance(item, dict) and item.get("name")
        ]
        logger.info(f"Loaded {len(symbols)} symbols from {index_path}")
        return cls(symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def add(self, symbol: SymbolMatch) -> None:
        self._symbols.append(symbol)

    async def search_similar(self, query: str, k: int) -> list[SymbolMatch]:
        query_tokens = _tokenize(query)
        if not query_tokens or k <= 0:
            return []

        scored: list[tuple[float, int, SymbolMatch]] = []
        for position, symbol in enumerate(self._symbols):
            symbol_tokens = _tokenize(f"{symbol.name} {symbol.kind} {symbol.content}")
            overlap = len(query_tokens & symbol_tokens)
            if overlap:
                scored.append((overlap / len(query_tokens), position, symbol))

        # Best score first; ties keep index order
        scored.sort(key=lambda entry: (-entry[0], entry[1]))
        return [
            SymbolMatch(
                name=s.name,
                kind=s.kind,
                file_path=s.file_path,
                content=s.content,
                start_line=s.start_line,
                end_line=s.end_line,
                score=score,
            )
            for score, _, s in scored[:k]
        ]

    async def search_symbols(self, query: str) -> list[SymbolMatch]:
        needle = query.strip().lower()
        if not needle:
            return []
        return [s for s in self._symbols if needle in s.name.lower()]

    async def find_symbols_by_name(self, name: str) -> list[SymbolMatch]:
        return [s for s in self._symbols if s.name == name]
