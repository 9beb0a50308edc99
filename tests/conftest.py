"""Shared pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from review_context.ingestion.embedder import EmbeddingError, EmbeddingProvider
from review_context.storage.memory_store import InMemoryStore


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


class FakeEmbedder(EmbeddingProvider):
    """Deterministic embedder with optional scripted failures.

    Vectors come from *vectors* when the text is listed there, otherwise
    from a cheap character-count projection.
    """

    def __init__(
        self,
        vectors: dict[str, list[float]] | None = None,
        *,
        fail_on: Callable[[str], bool] | None = None,
    ) -> None:
        self.vectors = vectors or {}
        self.fail_on = fail_on
        self.calls: list[str] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append(text)
        if self.fail_on is not None and self.fail_on(text):
            raise EmbeddingError("rate limit exceeded")
        if text in self.vectors:
            return list(self.vectors[text])
        return [float(len(text)), float(text.count("a")), 1.0]


@pytest.fixture()
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture()
def make_embedder() -> type[FakeEmbedder]:
    return FakeEmbedder
