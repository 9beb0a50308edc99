"""Rough token accounting (≈4 characters per token for English text)."""

from __future__ import annotations

import math

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str | None) -> int:
    """Approximate the token cost of *text*.

    Only used to decide whether a document needs chunking and how much
    retrieved context fits in a prompt, so it never calls a tokenizer.
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)
