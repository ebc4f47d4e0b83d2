"""Heuristic token estimate used for savings reporting."""

import math

TOKENS_PER_CHAR = 0.75


def estimate_tokens(text: str) -> int:
    """Approximate language-model tokens for text: ceil(len(text) * 0.75)."""
    return math.ceil(len(text) * TOKENS_PER_CHAR)
