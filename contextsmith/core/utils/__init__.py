"""Core utilities package."""

from .json_utils import (
    Decoded,
    DecodeResult,
    Malformed,
    decode_json_array,
    decode_json_object,
    decode_json_reply,
    strip_code_fences,
)
from .token_utils import estimate_tokens, estimate_tokens_from_chars

__all__ = [
    "Decoded",
    "DecodeResult",
    "Malformed",
    "decode_json_array",
    "decode_json_object",
    "decode_json_reply",
    "strip_code_fences",
    "estimate_tokens",
    "estimate_tokens_from_chars",
]
