"""Token estimation utilities.

Exact tokenization is out of scope; every budget in ContextSmith uses the
same rough ~4 characters per token ratio.
"""

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Estimate token count for text (rough approximation)."""
    return len(text) // CHARS_PER_TOKEN


def estimate_tokens_from_chars(char_count: int) -> int:
    """Convert an already-summed character count into estimated tokens."""
    return max(char_count, 0) // CHARS_PER_TOKEN
