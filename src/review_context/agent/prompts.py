"""Prompt templates for review analysis.

The system prompt fixes the output format parsed by
:func:`review_context.agent.nodes.parse_llm_output`; change both together.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

from review_context.config import settings
from review_context.ingestion.tokens import estimate_tokens

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from review_context.storage.records import FileContextRecord, UrlContextRecord

CONTEXT_HEADER = "\n\nRelevant Organization Context:\n"
TRUNCATION_NOTE = "\n[Additional context truncated to fit token limits]"

REVIEW_ANALYSIS_SYSTEM = """\
You are a customer support agent for a fintech company.
First, analyze the sentiment of the customer query, then generate a professional response.

For the sentiment analysis:
1. Categorize the sentiment as one of: "positive", "negative", "neutral", or "mixed"
2. Provide a sentiment score from 1 to 5 where:
   - 1 is very negative
   - 2 is somewhat negative
   - 3 is neutral
   - 4 is somewhat positive
   - 5 is very positive
3. Give a brief reason for your sentiment classification in one sentence

Then, generate a response that:
1. Addresses the customer's query and offers solutions from the organization context and maintains the brand voice
2. Is professional, concise, friendly and empathetic
3. Includes specific relevant information from the organization context when needed
4. For negative reviews, is empathetic and offers solutions from the organization context
5. For positive reviews, expresses gratitude from the organization context
6. If the customer's query is not related to the organization, says so
7. If the customer's query is not clear, asks for more information
8. If there is not enough information to answer the query, asks the user to contact the relevant customer support channels

Format your answer exactly as follows:
SENTIMENT: [sentiment category]
SCORE: [1-5 score]
REASON: [brief reason]

RESPONSE:
[your suggested response]
"""


def format_context_item(record: FileContextRecord | UrlContextRecord) -> str:
    """Render one retrieved record as ``Source: <title> (<url>) (NN% relevant):``."""
    if record.title:
        url = getattr(record, "url", None)
        source_info = f"Source: {record.title}" + (f" ({url})" if url else "")
    else:
        source_info = record.source
    percent = round(record.similarity * 100) if record.similarity else 0
    return f"{source_info} ({percent}% relevant):\n{record.content}"


def build_context_block(
    review: str,
    rating: int,
    records: Sequence[FileContextRecord | UrlContextRecord],
    *,
    token_budget: int = settings.prompt_context_tokens,
) -> str:
    """Assemble the review and as much retrieved context as the budget allows.

    Items are added in ranking order; the first item that would push the
    estimate past *token_budget* is dropped along with everything after
    it, and a truncation note is appended.
    """
    context = f'Review: "{review}"\nRating: {rating}/5'
    used = estimate_tokens(context)

    if not records:
        return context

    context += CONTEXT_HEADER
    used += 5
    for record in records:
        item = format_context_item(record)
        item_tokens = estimate_tokens(item)
        if used + item_tokens > token_budget:
            context += TRUNCATION_NOTE
            break
        context += item + "\n\n"
        used += item_tokens + 2
    return context


def build_review_prompt(prompt_context: str) -> list[BaseMessage]:
    """Build the chat prompt for the ``generate_response`` node."""
    return [
        SystemMessage(content=REVIEW_ANALYSIS_SYSTEM),
        HumanMessage(content=prompt_context),
    ]
