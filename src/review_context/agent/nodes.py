"""Graph nodes — each method is one step of the review-analysis workflow.

Node contract
-------------
* Accepts the full :class:`ReviewState` dict.
* Returns a *partial* dict with **only the keys that changed**.
* Collaborators (retriever, embedder, chat model) are injected through
  :class:`ReviewNodes`, so every node can be tested with fakes.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, Any

from review_context.agent.prompts import build_context_block, build_review_prompt
from review_context.agent.state import ReviewAnalysis, ReviewState
from review_context.config import settings

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel

    from review_context.ingestion.embedder import EmbeddingProvider
    from review_context.retrieval.retriever import SimilarityRetriever

logger = logging.getLogger(__name__)

_SENTIMENT_RE = re.compile(r"SENTIMENT:\s*(positive|negative|neutral|mixed)", re.IGNORECASE)
_SCORE_RE = re.compile(r"SCORE:\s*([1-5])", re.IGNORECASE)
_REASON_RE = re.compile(r"REASON:\s*(.+?)(?=\n\n|\n\s*RESPONSE:)", re.IGNORECASE)
_RESPONSE_RE = re.compile(r"RESPONSE:\s*([\s\S]+)$", re.IGNORECASE)


def parse_llm_output(text: str) -> ReviewAnalysis:
    """Extract sentiment fields and the reply from the formatted LLM output.

    Missing fields keep their neutral defaults rather than failing the
    request.
    """
    analysis = ReviewAnalysis()
    if match := _SENTIMENT_RE.search(text):
        analysis.sentiment = match.group(1).lower()
    if match := _SCORE_RE.search(text):
        analysis.sentiment_score = int(match.group(1))
    if match := _REASON_RE.search(text):
        analysis.sentiment_reason = match.group(1).strip()
    if match := _RESPONSE_RE.search(text):
        analysis.suggested_response = match.group(1).strip()
    return analysis


class ReviewNodes:
    """Holds the collaborators used by the graph nodes.

    Parameters
    ----------
    retriever:
        Similarity retriever over the content store.
    embedder:
        Embedding port used to embed the review text.
    llm:
        Chat model; defaults to :func:`review_context.agent.llm.get_llm`.
    k:
        Number of context records to retrieve.
    token_budget:
        Token budget for the context block sent to the model.
    """

    def __init__(
        self,
        retriever: SimilarityRetriever,
        embedder: EmbeddingProvider,
        llm: BaseChatModel | None = None,
        *,
        k: int = settings.retrieval_k,
        token_budget: int = settings.prompt_context_tokens,
    ) -> None:
        self._retriever = retriever
        self._embedder = embedder
        self._llm = llm
        self.k = k
        self.token_budget = token_budget

    # ── 1. RETRIEVE CONTEXT ───────────────────────────────────────────

    async def retrieve_context(self, state: ReviewState) -> dict[str, Any]:
        """Embed the review and fetch the most similar context records."""
        contexts = await self._retriever.search(state["review"], self._embedder, limit=self.k)
        logger.info("Relevant contexts: %s", [c.title or c.source for c in contexts])
        prompt_context = build_context_block(
            state["review"],
            state["rating"],
            contexts,
            token_budget=self.token_budget,
        )
        return {"contexts": contexts, "prompt_context": prompt_context}

    # ── 2. GENERATE RESPONSE ──────────────────────────────────────────

    async def generate_response(self, state: ReviewState) -> dict[str, Any]:
        """Ask the chat model for a sentiment read and a draft reply."""
        llm = self._llm
        if llm is None:
            from review_context.agent.llm import get_llm

            llm = self._llm = get_llm()

        response = await llm.ainvoke(build_review_prompt(state["prompt_context"]))
        content = response.content if isinstance(response.content, str) else str(response.content)
        return {"llm_output": content, "analysis": parse_llm_output(content)}
