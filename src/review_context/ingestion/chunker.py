"""Text chunking along natural break points."""

from __future__ import annotations

from collections.abc import Iterator

PARAGRAPH_BREAK = "\n\n"
SENTENCE_BREAK = ". "
WORD_BREAK = " "

# How far back from the target boundary a break may sit and still be used.
PARAGRAPH_WINDOW = 200
SENTENCE_WINDOW = 100

TITLE_PREVIEW_CHARS = 50


def _last_break(text: str, sep: str, boundary: int) -> int:
    """Index of the last *sep* starting at or before *boundary* (``-1`` if none)."""
    return text.rfind(sep, 0, boundary + len(sep))


def _cut_point(text: str, start: int, boundary: int) -> int:
    paragraph = _last_break(text, PARAGRAPH_BREAK, boundary)
    if paragraph > start and paragraph > boundary - PARAGRAPH_WINDOW:
        return paragraph + len(PARAGRAPH_BREAK)

    sentence = _last_break(text, SENTENCE_BREAK, boundary)
    if sentence > start and sentence > boundary - SENTENCE_WINDOW:
        return sentence + len(SENTENCE_BREAK)

    word = _last_break(text, WORD_BREAK, boundary)
    if word > start:
        return word + len(WORD_BREAK)

    return boundary


def iter_chunk_spans(
    text: str,
    max_chunk_chars: int = 4000,
    overlap_chars: int = 200,
) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` offsets of the chunks :func:`chunk_text` produces.

    Consecutive spans overlap by *overlap_chars* unless that would stall the
    walk, in which case the next span starts where the previous one ended.
    """
    if max_chunk_chars <= 0:
        raise ValueError(f"max_chunk_chars must be positive, got {max_chunk_chars}")
    if overlap_chars < 0:
        raise ValueError(f"overlap_chars must be >= 0, got {overlap_chars}")

    length = len(text)
    if length <= max_chunk_chars:
        yield 0, length
        return

    start = 0
    while start < length:
        end = start + max_chunk_chars
        if end >= length:
            yield start, length
            return

        end = _cut_point(text, start, end)
        if end >= length:
            yield start, length
            return
        yield start, end

        next_start = end - overlap_chars
        if next_start <= start:
            next_start = end
        start = next_start


def chunk_text(
    text: str,
    max_chunk_chars: int = 4000,
    overlap_chars: int = 200,
) -> list[str]:
    """Split *text* into overlapping chunks of roughly *max_chunk_chars*.

    Parameters
    ----------
    text:
        Extracted document or page text.
    max_chunk_chars:
        Target chunk length. Text at or below this length is returned as a
        single chunk, even when empty.
    overlap_chars:
        Number of characters repeated at the start of the following chunk.

    Returns
    -------
    list[str]
        Chunks in document order.
    """
    return [text[start:end] for start, end in iter_chunk_spans(text, max_chunk_chars, overlap_chars)]


def build_chunk_title(chunk: str, index: int, base_title: str) -> str:
    """Label a chunk within its parent document, e.g. ``"report.pdf (chunk 2) - Q3 results"``."""
    first_line = chunk.split("\n", 1)[0].strip()
    if len(first_line) > TITLE_PREVIEW_CHARS:
        first_line = first_line[:TITLE_PREVIEW_CHARS] + "..."
    return f"{base_title} (chunk {index + 1}) - {first_line}"
