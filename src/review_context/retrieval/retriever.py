"""Similarity retriever — cosine ranking over the content store.

This module is the **query entry point** of the system. The review
analysis agent, the HTTP layer and tests all go through
:class:`SimilarityRetriever`, which only needs a store handle.

Usage::

    from review_context.retrieval.retriever import SimilarityRetriever
    from review_context.storage import JsonFileStore

    retriever = SimilarityRetriever(JsonFileStore("data/context-db.json"))
    for record in retriever.find_similar(query_embedding, limit=3):
        print(f"{record.similarity:.2f}", record.title)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from review_context.config import settings
from review_context.retrieval.similarity import DimensionMismatchError, cosine_similarity
from review_context.storage.base import ContentStoreBase
from review_context.storage.records import FileContextRecord, UrlContextRecord

if TYPE_CHECKING:
    from review_context.ingestion.embedder import EmbeddingProvider

logger = logging.getLogger(__name__)


class SimilarityRetriever:
    """Rank stored context records by cosine similarity to a query vector.

    Parameters
    ----------
    store:
        The content store to read records from.
    default_k:
        Number of results returned when no explicit limit is given.
    score_threshold:
        Optional minimum similarity; records scoring below it are dropped.
    """

    def __init__(
        self,
        store: ContentStoreBase,
        *,
        default_k: int = settings.retrieval_k,
        score_threshold: float | None = None,
    ) -> None:
        self._store = store
        self.default_k = default_k
        self.score_threshold = score_threshold

    # -- public API -----------------------------------------------------------

    def find_similar(
        self,
        query_embedding: Sequence[float],
        limit: int | None = None,
    ) -> list[FileContextRecord | UrlContextRecord]:
        """Return up to *limit* records, most similar first.

        Records whose embedding length differs from the query are left out
        of the ranking. Ties keep their store order, so identical inputs
        always produce identical output.

        Returns
        -------
        list
            Copies of the stored records with ``similarity`` set.
        """
        limit = self.default_k if limit is None else limit
        if limit <= 0:
            return []

        records = self._store.load_context()
        if not records:
            return []

        scored: list[tuple[float, FileContextRecord | UrlContextRecord]] = []
        skipped = 0
        for record in records:
            try:
                score = cosine_similarity(query_embedding, record.embedding)
            except DimensionMismatchError:
                skipped += 1
                continue
            if self.score_threshold is not None and score < self.score_threshold:
                continue
            scored.append((score, record))

        if skipped:
            logger.warning(
                "Excluded %d record(s) with embedding dimensionality != %d",
                skipped,
                len(query_embedding),
            )

        # list.sort is stable, also with reverse=True
        scored.sort(key=lambda pair: pair[0], reverse=True)
        return [record.model_copy(update={"similarity": score}) for score, record in scored[:limit]]

    async def search(
        self,
        text: str,
        embedder: EmbeddingProvider,
        limit: int | None = None,
    ) -> list[FileContextRecord | UrlContextRecord]:
        """Embed *text* and delegate to :meth:`find_similar`."""
        query_embedding = await embedder.embed(text)
        results = self.find_similar(query_embedding, limit)
        logger.info("Retrieved %d context record(s) for query of %d chars", len(results), len(text))
        return results
