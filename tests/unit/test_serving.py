"""Unit tests for the serving layer."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from langchain_core.messages import AIMessage

from review_context.config import settings
from review_context.ingestion.scraper import ScrapedPage, ScrapeError
from review_context.serving import app as app_module
from review_context.serving.app import (
    app,
    get_chat_model,
    get_embedder,
    get_scraper,
    get_store,
)
from review_context.storage.base import StoreError
from review_context.storage.memory_store import InMemoryStore
from review_context.storage.records import FileContextRecord

LLM_REPLY = "SENTIMENT: positive\nSCORE: 5\nREASON: Happy customer.\n\nRESPONSE:\nThank you for the kind words!"


class StubScraper:
    def __init__(self, page: ScrapedPage | None = None, exc: Exception | None = None) -> None:
        self.page = page
        self.exc = exc

    def scrape(self, url: str) -> ScrapedPage:
        if self.exc is not None:
            raise self.exc
        return self.page or ScrapedPage(url=url, title="About", text="We bake bread daily.", method="static")


class BrokenStore(InMemoryStore):
    def set(self, key: str, value: Any) -> None:
        if value:
            raise StoreError("read-only filesystem")
        super().set(key, value)


@pytest.fixture()
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture()
def client(
    memory_store: InMemoryStore, embedder: Any, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Iterator[TestClient]:
    monkeypatch.setattr(settings, "upload_dir", str(tmp_path / "uploads"))
    llm = MagicMock()
    llm.ainvoke = AsyncMock(return_value=AIMessage(content=LLM_REPLY))

    app.dependency_overrides[get_store] = lambda: memory_store
    app.dependency_overrides[get_embedder] = lambda: embedder
    app.dependency_overrides[get_chat_model] = lambda: llm
    app.dependency_overrides[get_scraper] = lambda: StubScraper()
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# ── /health ───────────────────────────────────────────────────────────


def test_health_endpoint() -> None:
    """GET /health should return 200 with status ok."""
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


# ── /analyze-review ───────────────────────────────────────────────────


@pytest.mark.parametrize(
    "payload",
    [
        {"review": "", "rating": 4},
        {"review": "   ", "rating": 4},
        {"review": "Lovely staff"},
    ],
)
def test_analyze_review_requires_text_and_rating(client: TestClient, payload: dict[str, Any]) -> None:
    response = client.post("/analyze-review", json=payload)
    assert response.status_code == 400


def test_analyze_review_rejects_out_of_range_rating(client: TestClient) -> None:
    assert client.post("/analyze-review", json={"review": "ok", "rating": 9}).status_code == 422


def test_analyze_review_success(client: TestClient, memory_store: InMemoryStore) -> None:
    memory_store.append_context(
        [FileContextRecord(content="Thanks for visiting!", title="greetings.txt", embedding=[10.0, 1.0, 1.0])]
    )

    response = client.post("/analyze-review", json={"review": "Loved it", "rating": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["sentiment"] == "positive"
    assert body["sentiment_score"] == 5
    assert body["sentiment_reason"] == "Happy customer."
    assert body["suggested_response"] == "Thank you for the kind words!"
    assert [c["title"] for c in body["relevant_context"]] == ["greetings.txt"]
    assert 0.0 < body["relevant_context"][0]["similarity"] <= 1.0


def test_analyze_review_embedding_failure_is_bad_gateway(client: TestClient, make_embedder: Any) -> None:
    app.dependency_overrides[get_embedder] = lambda: make_embedder(fail_on=lambda text: True)

    response = client.post("/analyze-review", json={"review": "Cold coffee", "rating": 2})

    assert response.status_code == 502
    assert "rate limit exceeded" in response.json()["detail"]


def test_missing_api_key_is_server_error(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "openai_api_key", "")
    monkeypatch.setattr(settings, "embedding_backend", "openai")
    get_embedder.cache_clear()
    app.dependency_overrides[get_store] = lambda: InMemoryStore()
    try:
        response = TestClient(app).post("/analyze-review", json={"review": "Hi", "rating": 3})
    finally:
        app.dependency_overrides.clear()
        get_embedder.cache_clear()
    assert response.status_code == 500
    assert "API key" in response.json()["detail"]


# ── /upload ───────────────────────────────────────────────────────────


def test_upload_text_file(client: TestClient, memory_store: InMemoryStore, tmp_path: Path) -> None:
    response = client.post(
        "/upload",
        files=[("files", ("hours.txt", b"Open 8am to 6pm every day.", "text/plain"))],
    )

    assert response.status_code == 200
    body = response.json()
    [result] = body["files"]
    assert result["name"] == "hours.txt"
    assert result["type"] == "text/plain"
    assert result["size"] == len(b"Open 8am to 6pm every day.")
    assert result["report"]["status"] == "succeeded"
    assert Path(result["path"]).parent == tmp_path / "uploads"

    [record] = memory_store.load_context()
    assert record.title == "hours.txt"
    assert record.content == "Open 8am to 6pm every day."


def test_upload_multiple_files_reports_each(client: TestClient, memory_store: InMemoryStore) -> None:
    response = client.post(
        "/upload",
        files=[
            ("files", ("a.txt", b"First document", "text/plain")),
            ("files", ("empty.txt", b"   ", "text/plain")),
        ],
    )

    assert response.status_code == 200
    statuses = {f["name"]: f["report"]["status"] for f in response.json()["files"]}
    assert statuses == {"a.txt": "succeeded", "empty.txt": "failed"}
    assert memory_store.context_count() == 1


def test_upload_writes_files_off_the_event_loop(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    loops_seen: list[bool] = []
    save = app_module._save_upload

    def _recording_save(file: Any, target: Path) -> None:
        try:
            asyncio.get_running_loop()
            loops_seen.append(True)
        except RuntimeError:
            loops_seen.append(False)
        save(file, target)

    monkeypatch.setattr(app_module, "_save_upload", _recording_save)
    response = client.post("/upload", files=[("files", ("a.txt", b"Some text", "text/plain"))])

    assert response.status_code == 200
    assert loops_seen == [False]


def test_upload_without_files_is_bad_request(client: TestClient) -> None:
    response = client.post("/upload")
    assert response.status_code == 400
    assert response.json()["detail"] == "No files were uploaded"


def test_upload_store_failure_is_server_error(client: TestClient) -> None:
    app.dependency_overrides[get_store] = lambda: BrokenStore()
    response = client.post("/upload", files=[("files", ("a.txt", b"Some text", "text/plain"))])
    assert response.status_code == 500
    assert "read-only filesystem" in response.json()["detail"]


# ── /scrape ───────────────────────────────────────────────────────────


def test_scrape_stores_page(client: TestClient, memory_store: InMemoryStore) -> None:
    response = client.get("/scrape", params={"url": "https://bakery.test/about"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["scraping_method"] == "static"
    assert body["content_length"] == len("We bake bread daily.")
    assert body["message"].startswith("URL content scraped with static method")
    [preview] = body["context_items"]
    assert preview["title"] == "About"
    assert preview["content_preview"] == "We bake bread daily...."

    [record] = memory_store.load_context()
    assert record.url == "https://bakery.test/about"


def test_scrape_failure_is_bad_gateway(client: TestClient) -> None:
    app.dependency_overrides[get_scraper] = lambda: StubScraper(exc=ScrapeError("Failed to scrape content"))
    response = client.get("/scrape", params={"url": "https://down.test"})
    assert response.status_code == 502


def test_scrape_requires_url(client: TestClient) -> None:
    assert client.get("/scrape").status_code == 422


def test_default_store_is_json_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "context_db_path", str(tmp_path / "db.json"))
    get_store.cache_clear()
    try:
        store = app_module.get_store()
        assert store.path == tmp_path / "db.json"
        assert (tmp_path / "db.json").exists()
    finally:
        get_store.cache_clear()
