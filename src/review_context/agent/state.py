"""Agent state definition — shared across the review-analysis graph nodes."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, TypedDict

from review_context.storage.records import FileContextRecord, UrlContextRecord


@dataclass
class ReviewAnalysis:
    """Structured reply parsed from the LLM output.

    Attributes
    ----------
    sentiment:
        One of ``positive``, ``negative``, ``neutral``, ``mixed``.
    sentiment_score:
        1 (very negative) to 5 (very positive).
    sentiment_reason:
        One-sentence justification.
    suggested_response:
        Draft reply to the customer.
    """

    sentiment: str = "neutral"
    sentiment_score: int = 3
    sentiment_reason: str = ""
    suggested_response: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ReviewState(TypedDict, total=False):
    """State flowing through the review-analysis graph.

    Attributes
    ----------
    review:
        Customer review text.
    rating:
        Star rating given with the review (1-5).
    contexts:
        Retrieved context records, most similar first.
    prompt_context:
        Review plus token-budgeted organisation context.
    llm_output:
        Raw text returned by the chat model.
    analysis:
        Parsed :class:`ReviewAnalysis`.
    """

    review: str
    rating: int
    contexts: list[FileContextRecord | UrlContextRecord]
    prompt_context: str
    llm_output: str
    analysis: ReviewAnalysis
