"""Ingestion pipeline — extracted text in, embedded context records out.

Steps for one document::

    validate → estimate tokens → chunk (if over budget) → embed each chunk
    concurrently → append each embedded chunk to the content store → report

Embedding failures are per chunk: the chunk is listed in
``IngestionReport.failed_chunks`` and its siblings carry on. A content
store failure is fatal and re-raised once every chunk task has finished;
chunks appended before the failure stay in the store.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from review_context.config import settings
from review_context.ingestion.chunker import build_chunk_title, chunk_text
from review_context.ingestion.embedder import EmbeddingError, EmbeddingProvider
from review_context.ingestion.loader import extract_text, is_extraction_failure, is_pdf
from review_context.ingestion.models import (
    ChunkReport,
    FailedChunk,
    IngestionReport,
    Provenance,
)
from review_context.ingestion.tokens import estimate_tokens
from review_context.storage.base import ContentStoreBase
from review_context.storage.records import make_record

if TYPE_CHECKING:
    from review_context.ingestion.scraper import WebScraper

logger = logging.getLogger(__name__)

EMPTY_PDF_ERROR = "This PDF might be image-only or scanned. No text content could be extracted."
EMPTY_FILE_ERROR = "Could not extract text content from this file"
EMPTY_TEXT_ERROR = "No text content to ingest"


class IngestionPipeline:
    """Turn extracted text into embedded context records.

    Parameters
    ----------
    store:
        Content store that receives the records.
    embedder:
        Embedding port implementation.
    max_tokens:
        Token estimate above which a document is chunked.
    chunk_size / chunk_overlap:
        Parameters forwarded to :func:`chunk_text`.
    max_concurrency:
        Upper bound on simultaneous embedding requests.
    """

    def __init__(
        self,
        store: ContentStoreBase,
        embedder: EmbeddingProvider,
        *,
        max_tokens: int = settings.max_embedding_tokens,
        chunk_size: int = settings.chunk_size,
        chunk_overlap: int = settings.chunk_overlap,
        max_concurrency: int = settings.embedding_concurrency,
    ) -> None:
        self._store = store
        self._embedder = embedder
        self.max_tokens = max_tokens
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        self.max_concurrency = max(1, max_concurrency)

    # -- public API -----------------------------------------------------------

    async def ingest(self, raw_text: str, provenance: Provenance) -> IngestionReport:
        """Chunk, embed and store *raw_text*.

        Raises
        ------
        ValueError
            When *provenance* is missing.
        StoreError
            When the content store cannot be written.
        """
        if provenance is None:
            raise ValueError("provenance is required")

        if is_extraction_failure(raw_text):
            error = raw_text.strip() if raw_text and raw_text.strip() else EMPTY_TEXT_ERROR
            logger.warning("Skipping %s: %s", provenance.base_title, error)
            return IngestionReport(provenance=provenance, content_length=len(raw_text or ""), error=error)

        estimated = estimate_tokens(raw_text)
        logger.info("Estimated token count for %s: %d", provenance.base_title, estimated)

        if estimated > self.max_tokens:
            chunks = chunk_text(raw_text, self.chunk_size, self.chunk_overlap)
        else:
            chunks = [raw_text]
        logger.info("Split content into %d chunk(s)", len(chunks))

        semaphore = asyncio.Semaphore(self.max_concurrency)
        outcomes = await asyncio.gather(
            *(self._process_chunk(i, chunk, len(chunks), provenance, semaphore) for i, chunk in enumerate(chunks)),
            return_exceptions=True,
        )

        # Anything other than a report here is fatal (store failure, bug).
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        succeeded = [o for o in outcomes if isinstance(o, ChunkReport)]
        failed = [o for o in outcomes if isinstance(o, FailedChunk)]
        if failed:
            logger.warning("%d chunk(s) failed during processing for %s", len(failed), provenance.base_title)

        return IngestionReport(
            provenance=provenance,
            content_length=len(raw_text),
            total_chunks=len(chunks),
            chunks=succeeded,
            failed_chunks=failed,
        )

    async def ingest_file(
        self,
        path: str | Path,
        *,
        filename: str | None = None,
        mimetype: str | None = None,
    ) -> IngestionReport:
        """Extract text from an uploaded file and ingest it."""
        path = Path(path)
        provenance = Provenance(source="file", origin_ref=str(path), base_title=filename or path.name)

        text = await asyncio.to_thread(extract_text, path, mimetype)
        if not text or not text.strip():
            error = EMPTY_PDF_ERROR if is_pdf(path, mimetype) else EMPTY_FILE_ERROR
            logger.warning("Empty or invalid content from file: %s", provenance.base_title)
            return IngestionReport(provenance=provenance, error=error)

        logger.info("Read %d characters from %s", len(text), provenance.base_title)
        return await self.ingest(text, provenance)

    async def ingest_url(self, url: str, scraper: WebScraper) -> tuple[IngestionReport, str]:
        """Scrape *url* and ingest its text.

        Returns the report together with the scraping method used.
        Raises :class:`~review_context.ingestion.scraper.ScrapeError` when
        the page cannot be retrieved at all.
        """
        page = await asyncio.to_thread(scraper.scrape, url)
        provenance = Provenance(source="url", origin_ref=url, base_title=page.title or url)
        report = await self.ingest(page.text, provenance)
        return report, page.method

    # -- internals ------------------------------------------------------------

    async def _process_chunk(
        self,
        index: int,
        chunk: str,
        total: int,
        provenance: Provenance,
        semaphore: asyncio.Semaphore,
    ) -> ChunkReport | FailedChunk:
        title = build_chunk_title(chunk, index, provenance.base_title) if total > 1 else provenance.base_title
        tokens = estimate_tokens(chunk)
        logger.info("Processing chunk %d/%d, estimated tokens: %d", index + 1, total, tokens)

        try:
            async with semaphore:
                embedding = await self._embedder.embed(chunk)
        except EmbeddingError as exc:
            logger.error("Error processing chunk %d: %s", index + 1, exc)
            return FailedChunk(chunk_index=index, error=str(exc), char_count=len(chunk), token_count=tokens)

        record = make_record(
            provenance.source,
            content=chunk,
            embedding=embedding,
            title=title,
            origin_ref=provenance.origin_ref,
        )
        self._store.append_context([record])

        return ChunkReport(
            chunk_index=index,
            title=title,
            char_count=len(chunk),
            token_count=tokens,
            record_id=record.id,
        )
