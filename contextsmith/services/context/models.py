"""Context data shrunk by the deduplicator, pruner and auditor.

One ContextData is created per request, filled by the producers (workers and
the question loop), shrunk in place by the three shrink stages, then handed
off. Shrink stages only ever remove items.
"""

from dataclasses import asdict, dataclass, field
from typing import Any

from contextsmith.core.utils import estimate_tokens_from_chars


@dataclass
class SymbolItem:
    name: str
    kind: str
    file_path: str
    content: str

    @property
    def text(self) -> str:
        return self.content


@dataclass
class TypeItem:
    name: str
    kind: str
    definition: str
    file_path: str = ""

    @property
    def text(self) -> str:
        return self.definition


@dataclass
class ConstantItem:
    name: str
    value: str
    file_path: str = ""

    @property
    def text(self) -> str:
        return self.value


@dataclass
class DesignTokenItem:
    name: str
    value: str
    token_type: str = ""
    file_path: str = ""

    @property
    def text(self) -> str:
        return self.value


@dataclass
class SchemaItem:
    name: str
    definition: str
    file_path: str = ""

    @property
    def kind(self) -> str:
        return "schema"

    @property
    def text(self) -> str:
        return self.definition


ContextItem = SymbolItem | TypeItem | ConstantItem | DesignTokenItem | SchemaItem

BUCKETS = (
    "relevant_symbols",
    "similar_symbols",
    "types",
    "constants",
    "design_tokens",
    "schemas",
)


@dataclass
class ContextData:
    """Candidate code items grouped into buckets."""

    relevant_symbols: list[SymbolItem] = field(default_factory=list)
    similar_symbols: list[SymbolItem] = field(default_factory=list)
    types: list[TypeItem] = field(default_factory=list)
    constants: list[ConstantItem] = field(default_factory=list)
    design_tokens: list[DesignTokenItem] = field(default_factory=list)
    schemas: list[SchemaItem] = field(default_factory=list)

    def bucket(self, name: str) -> list[Any]:
        if name not in BUCKETS:
            raise KeyError(f"Unknown context bucket: {name}")
        return getattr(self, name)

    def set_bucket(self, name: str, items: list[Any]) -> None:
        """Replace a bucket's contents in place (list identity is kept)."""
        self.bucket(name)[:] = items

    def counts(self) -> dict[str, int]:
        return {name: len(self.bucket(name)) for name in BUCKETS}

    def total_items(self) -> int:
        return sum(self.counts().values())

    def is_empty(self) -> bool:
        return self.total_items() == 0

    def total_chars(self) -> int:
        return sum(len(item.text) for name in BUCKETS for item in self.bucket(name))

    def estimated_tokens(self) -> int:
        return estimate_tokens_from_chars(self.total_chars())

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {name: [asdict(item) for item in self.bucket(name)] for name in BUCKETS}
