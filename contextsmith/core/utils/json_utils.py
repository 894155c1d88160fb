"""Decoding helpers for JSON replies produced by text-generation models.

Model replies are frequently wrapped in Markdown code fences. Every decode
returns a tagged result (Decoded or Malformed) so each caller spells out its
fallback branch explicitly instead of relying on silent defaults.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")

_LEADING_FENCE = re.compile(r"^```[\w-]*[ \t]*\n?")
_TRAILING_FENCE = re.compile(r"\n?```$")


@dataclass(frozen=True)
class Decoded(Generic[T]):
    """A reply that decoded into the expected JSON shape."""

    value: T


@dataclass(frozen=True)
class Malformed:
    """A reply that could not be decoded; keeps the raw text for logging."""

    raw_text: str
    error: str


DecodeResult = Union[Decoded[Any], Malformed]


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```json ... ``` (or bare ```) fence."""
    clean = text.strip()
    clean = _LEADING_FENCE.sub("", clean, count=1)
    clean = _TRAILING_FENCE.sub("", clean, count=1)
    return clean.strip()


def decode_json_reply(
    text: str | None,
    expect: type | tuple[type, ...] | None = None,
) -> DecodeResult:
    """Decode a model reply as JSON.

    The fence-stripped text is tried first, then the raw text.

    Args:
        text: Raw reply text
        expect: Optional JSON container type(s) the top-level value must have

    Returns:
        Decoded(value) on success, Malformed(raw_text, error) otherwise
    """
    if text is None or not text.strip():
        return Malformed(raw_text=text or "", error="empty reply")

    last_error = "no JSON value found"
    for candidate in (strip_code_fences(text), text.strip()):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError as e:
            last_error = f"invalid JSON: {e}"
            continue

        if expect is not None and not isinstance(value, expect):
            last_error = (
                f"expected {_type_label(expect)}, got {type(value).__name__}"
            )
            continue
        return Decoded(value)

    return Malformed(raw_text=text, error=last_error)


def decode_json_object(text: str | None) -> DecodeResult:
    """Decode a reply whose top level must be a JSON object."""
    return decode_json_reply(text, expect=dict)


def decode_json_array(text: str | None) -> DecodeResult:
    """Decode a reply whose top level must be a JSON array."""
    return decode_json_reply(text, expect=list)


def _type_label(expect: type | tuple[type, ...]) -> str:
    if isinstance(expect, tuple):
        return " or ".join(t.__name__ for t in expect)
    return expect.__name__
