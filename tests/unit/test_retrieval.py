"""Unit tests for the retrieval layer — cosine scoring and SimilarityRetriever."""

from __future__ import annotations

import asyncio
import math

import pytest

from review_context.retrieval.retriever import SimilarityRetriever
from review_context.retrieval.similarity import DimensionMismatchError, cosine_similarity
from review_context.storage.memory_store import InMemoryStore
from review_context.storage.records import FileContextRecord, UrlContextRecord


def _record(title: str, embedding: list[float]) -> FileContextRecord:
    return FileContextRecord(content=f"content of {title}", title=title, embedding=embedding)


SAMPLE_VECTORS: dict[str, list[float]] = {
    "exact": [1.0, 0.0, 0.0],
    "diagonal": [1.0, 1.0, 0.0],
    "orthogonal": [0.0, 1.0, 0.0],
    "close": [1.0, 0.1, 0.0],
    "opposite": [-1.0, 0.0, 0.0],
}


@pytest.fixture()
def populated_store() -> InMemoryStore:
    store = InMemoryStore()
    store.append_context([_record(title, vec) for title, vec in SAMPLE_VECTORS.items()])
    return store


@pytest.fixture()
def retriever(populated_store: InMemoryStore) -> SimilarityRetriever:
    return SimilarityRetriever(populated_store, default_k=5)


# ── cosine_similarity ─────────────────────────────────────────────────


class TestCosineSimilarity:
    def test_identical_vectors(self) -> None:
        assert cosine_similarity([0.3, -1.2, 4.0], [0.3, -1.2, 4.0]) == pytest.approx(1.0)

    def test_symmetry(self) -> None:
        a, b = [1.0, 2.0, 3.0], [-2.0, 0.5, 1.0]
        assert cosine_similarity(a, b) == pytest.approx(cosine_similarity(b, a))

    def test_known_values(self) -> None:
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([1.0, 0.0], [-1.0, 0.0]) == pytest.approx(-1.0)
        assert cosine_similarity([1.0, 0.0], [1.0, 1.0]) == pytest.approx(1 / math.sqrt(2))

    def test_zero_vector_scores_zero(self) -> None:
        assert cosine_similarity([0.0, 0.0], [1.0, 2.0]) == 0.0
        assert cosine_similarity([1.0, 2.0], [0.0, 0.0]) == 0.0

    def test_result_within_bounds(self) -> None:
        score = cosine_similarity([1e-8, 3e-8], [2e-8, 6e-8])
        assert -1.0 <= score <= 1.0

    def test_dimension_mismatch_raises(self) -> None:
        with pytest.raises(DimensionMismatchError):
            cosine_similarity([1.0, 2.0], [1.0, 2.0, 3.0])

    def test_mismatch_is_a_value_error(self) -> None:
        assert issubclass(DimensionMismatchError, ValueError)


# ── SimilarityRetriever ───────────────────────────────────────────────


class TestSimilarityRetriever:
    def test_top_k_sorted_descending(self, retriever: SimilarityRetriever) -> None:
        results = retriever.find_similar([1.0, 0.0, 0.0], limit=3)
        assert [r.title for r in results] == ["exact", "close", "diagonal"]
        scores = [r.similarity for r in results]
        assert scores == sorted(scores, reverse=True)
        assert scores[0] == pytest.approx(1.0)

    def test_no_excluded_record_scores_higher(self, retriever: SimilarityRetriever) -> None:
        query = [0.4, 0.9, 0.1]
        top = retriever.find_similar(query, limit=2)
        everything = retriever.find_similar(query, limit=100)
        excluded = [r for r in everything if r.id not in {t.id for t in top}]
        assert all(e.similarity <= top[-1].similarity for e in excluded)

    def test_default_limit(self, populated_store: InMemoryStore) -> None:
        retriever = SimilarityRetriever(populated_store, default_k=2)
        assert len(retriever.find_similar([1.0, 0.0, 0.0])) == 2

    def test_limit_larger_than_store(self, retriever: SimilarityRetriever) -> None:
        assert len(retriever.find_similar([1.0, 0.0, 0.0], limit=50)) == len(SAMPLE_VECTORS)

    @pytest.mark.parametrize("limit", [0, -3])
    def test_non_positive_limit_returns_empty(self, retriever: SimilarityRetriever, limit: int) -> None:
        assert retriever.find_similar([1.0, 0.0, 0.0], limit=limit) == []

    def test_empty_store_returns_empty(self) -> None:
        assert SimilarityRetriever(InMemoryStore()).find_similar([1.0, 2.0], limit=3) == []

    def test_repeated_queries_are_identical(self, retriever: SimilarityRetriever) -> None:
        first = retriever.find_similar([0.2, 0.7, 0.0], limit=4)
        second = retriever.find_similar([0.2, 0.7, 0.0], limit=4)
        assert [(r.id, r.similarity) for r in first] == [(r.id, r.similarity) for r in second]

    def test_ties_keep_store_order(self) -> None:
        store = InMemoryStore()
        twins = [_record(f"twin-{i}", [2.0, 2.0]) for i in range(4)]
        store.append_context(twins)
        results = SimilarityRetriever(store).find_similar([1.0, 1.0], limit=4)
        assert [r.id for r in results] == [t.id for t in twins]

    def test_mismatched_dimensions_excluded(self, populated_store: InMemoryStore) -> None:
        populated_store.append_context([_record("wide", [1.0, 0.0, 0.0, 0.0])])
        results = SimilarityRetriever(populated_store).find_similar([1.0, 0.0, 0.0], limit=10)
        assert "wide" not in [r.title for r in results]
        assert len(results) == len(SAMPLE_VECTORS)

    def test_score_threshold(self, populated_store: InMemoryStore) -> None:
        retriever = SimilarityRetriever(populated_store, score_threshold=0.5)
        results = retriever.find_similar([1.0, 0.0, 0.0], limit=10)
        assert [r.title for r in results] == ["exact", "close", "diagonal"]

    def test_returns_copies_and_leaves_store_untouched(
        self, retriever: SimilarityRetriever, populated_store: InMemoryStore
    ) -> None:
        results = retriever.find_similar([1.0, 0.0, 0.0], limit=1)
        assert results[0].similarity is not None
        stored = populated_store.load_context()
        assert all(r.similarity is None for r in stored)
        assert all("similarity" not in item for item in populated_store.get("context"))

    def test_mixed_sources_ranked_together(self) -> None:
        store = InMemoryStore()
        store.append_context(
            [
                _record("file", [0.0, 1.0]),
                UrlContextRecord(content="page", title="page", url="https://shop.example", embedding=[1.0, 0.0]),
            ]
        )
        results = SimilarityRetriever(store).find_similar([1.0, 0.0], limit=2)
        assert [r.source for r in results] == ["url", "file"]

    def test_search_embeds_query(self, retriever: SimilarityRetriever, make_embedder) -> None:
        embedder = make_embedder({"late delivery": [1.0, 0.0, 0.0]})
        results = asyncio.run(retriever.search("late delivery", embedder, limit=1))
        assert embedder.calls == ["late delivery"]
        assert results[0].title == "exact"
