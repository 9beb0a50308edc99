"""Embedding port — text in, fixed-length vector out.

The ingestion pipeline and the retriever depend on
:class:`EmbeddingProvider` only. The default adapter wraps any LangChain
``Embeddings`` implementation, so switching between OpenAI and a local
sentence-transformer model is a configuration change.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from review_context.config import settings

if TYPE_CHECKING:
    from langchain_core.embeddings import Embeddings

logger = logging.getLogger(__name__)


class EmbeddingError(RuntimeError):
    """Provider failure (rate limit, auth, network, timeout, empty vector)."""


class EmbeddingProvider(ABC):
    """Abstract capability: embed one piece of text."""

    @abstractmethod
    async def embed(self, text: str) -> list[float]:
        """Return the embedding of *text*. Raises :class:`EmbeddingError`."""
        ...


class LangChainEmbeddingProvider(EmbeddingProvider):
    """Adapter from a LangChain ``Embeddings`` object to the embedding port.

    Parameters
    ----------
    embeddings:
        Any LangChain embeddings implementation.
    timeout:
        Seconds to wait for a single embedding call; ``None`` disables it.
    """

    def __init__(self, embeddings: Embeddings, *, timeout: float | None = settings.embedding_timeout_seconds) -> None:
        self._embeddings = embeddings
        self._timeout = timeout

    async def embed(self, text: str) -> list[float]:
        try:
            vector = await asyncio.wait_for(self._embeddings.aembed_query(text), timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise EmbeddingError(f"Embedding request timed out after {self._timeout}s") from exc
        except Exception as exc:
            raise EmbeddingError(f"Embedding provider error: {exc}") from exc

        if not vector:
            raise EmbeddingError("Embedding provider returned an empty vector")
        return [float(x) for x in vector]


def get_embedding_function() -> Embeddings:
    """Return the configured LangChain embedding function.

    ``EMBEDDING_BACKEND=huggingface`` selects a local sentence-transformer
    model (requires the ``huggingface`` extra); anything else uses the
    OpenAI embeddings API.
    """
    if settings.embedding_backend == "huggingface":
        from langchain_huggingface import HuggingFaceEmbeddings

        logger.info("Using local embedding model %s", settings.embedding_model)
        return HuggingFaceEmbeddings(model_name=settings.embedding_model)

    from langchain_openai import OpenAIEmbeddings

    kwargs: dict = {"model": settings.embedding_model, "api_key": settings.openai_api_key}
    if settings.llm_base_url:
        kwargs["base_url"] = settings.llm_base_url
    return OpenAIEmbeddings(**kwargs)


def get_embedding_provider() -> LangChainEmbeddingProvider:
    """Return the configured provider behind the embedding port."""
    return LangChainEmbeddingProvider(get_embedding_function())
