"""
Ingestion — text extraction, chunking, embedding and storage of context.

This package turns uploaded files and scraped web pages into embedded
context records appended to the content store.

Public surface
--------------
- :class:`IngestionPipeline` — the ingestion entry point.
- :class:`Provenance`, :class:`IngestionReport` — input / output models.
- :func:`chunk_text`, :func:`estimate_tokens` — pure helpers.
- :class:`EmbeddingProvider` — the embedding port.
"""

from review_context.ingestion.chunker import build_chunk_title, chunk_text, iter_chunk_spans
from review_context.ingestion.embedder import (
    EmbeddingError,
    EmbeddingProvider,
    LangChainEmbeddingProvider,
    get_embedding_provider,
)
from review_context.ingestion.models import (
    ChunkReport,
    FailedChunk,
    IngestionReport,
    IngestionStatus,
    Provenance,
)
from review_context.ingestion.pipeline import IngestionPipeline
from review_context.ingestion.tokens import estimate_tokens

__all__ = [
    "ChunkReport",
    "EmbeddingError",
    "EmbeddingProvider",
    "FailedChunk",
    "IngestionPipeline",
    "IngestionReport",
    "IngestionStatus",
    "LangChainEmbeddingProvider",
    "Provenance",
    "build_chunk_title",
    "chunk_text",
    "estimate_tokens",
    "get_embedding_provider",
    "iter_chunk_spans",
]
