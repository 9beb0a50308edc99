"""FastAPI application exposing upload, scrape and review analysis."""

from __future__ import annotations

import asyncio
import logging
import shutil
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Any
from uuid import uuid4

from fastapi import Depends, FastAPI, File, HTTPException, Query, UploadFile
from langchain_core.language_models import BaseChatModel
from pydantic import BaseModel, Field

from review_context.agent.graph import analyze_review
from review_context.config import settings
from review_context.ingestion.embedder import EmbeddingError, EmbeddingProvider, get_embedding_provider
from review_context.ingestion.models import IngestionReport
from review_context.ingestion.pipeline import IngestionPipeline
from review_context.ingestion.renderer import get_default_renderer
from review_context.ingestion.scraper import ScrapeError, WebScraper
from review_context.retrieval.retriever import SimilarityRetriever
from review_context.storage.base import ContentStoreBase, StoreError
from review_context.storage.json_store import JsonFileStore

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Review Context API",
    version="0.1.0",
    description="Ingest organisation documents and draft grounded replies to customer reviews.",
)


# ── Dependencies ──────────────────────────────────────────────────────
@lru_cache
def get_store() -> ContentStoreBase:
    """Process-wide content store handle."""
    return JsonFileStore(settings.context_db_path)


@lru_cache
def get_embedder() -> EmbeddingProvider:
    if not settings.openai_api_key and settings.embedding_backend != "huggingface":
        raise HTTPException(status_code=500, detail="OpenAI API key is not configured")
    return get_embedding_provider()


def get_pipeline(
    store: Annotated[ContentStoreBase, Depends(get_store)],
    embedder: Annotated[EmbeddingProvider, Depends(get_embedder)],
) -> IngestionPipeline:
    return IngestionPipeline(store, embedder)


def get_retriever(store: Annotated[ContentStoreBase, Depends(get_store)]) -> SimilarityRetriever:
    return SimilarityRetriever(store)


def get_scraper() -> WebScraper:
    return WebScraper(renderer=get_default_renderer())


def get_chat_model() -> BaseChatModel | None:
    """``None`` lets the agent build the configured chat model lazily."""
    return None


# ── Request / Response schemas ────────────────────────────────────────
class FileIngestionResult(BaseModel):
    """Outcome for one uploaded file."""

    name: str
    type: str
    size: int
    path: str
    report: IngestionReport


class UploadResponse(BaseModel):
    message: str
    files: list[FileIngestionResult]


class RecordPreview(BaseModel):
    id: str
    title: str | None
    content_preview: str


class ScrapeResponse(BaseModel):
    success: bool
    message: str
    scraping_method: str
    content_length: int
    report: IngestionReport
    context_items: list[RecordPreview] = []


class ReviewRequest(BaseModel):
    """Customer review to analyse."""

    review: str = ""
    rating: int | None = Field(default=None, ge=1, le=5)


class RelevantContext(BaseModel):
    title: str
    similarity: float | None = None


class ReviewResponse(BaseModel):
    success: bool = True
    suggested_response: str
    sentiment: str
    sentiment_score: int
    sentiment_reason: str
    relevant_context: list[RelevantContext] = []


def _save_upload(file: UploadFile, target: Path) -> None:
    with target.open("wb") as fh:
        shutil.copyfileobj(file.file, fh)


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}


@app.post("/upload", response_model=UploadResponse)
async def upload(
    pipeline: Annotated[IngestionPipeline, Depends(get_pipeline)],
    files: Annotated[list[UploadFile] | None, File()] = None,
) -> UploadResponse:
    """Save uploaded files and ingest each of them concurrently."""
    if not files:
        raise HTTPException(status_code=400, detail="No files were uploaded")

    upload_dir = Path(settings.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)

    saved: list[tuple[UploadFile, Path]] = []
    for file in files:
        name = Path(file.filename or "unknown").name
        target = upload_dir / f"{uuid4().hex[:12]}_{name}"
        await asyncio.to_thread(_save_upload, file, target)
        saved.append((file, target))
        logger.info("Saved upload %s → %s", name, target)

    try:
        reports = await asyncio.gather(
            *(
                pipeline.ingest_file(path, filename=file.filename or path.name, mimetype=file.content_type)
                for file, path in saved
            )
        )
    except StoreError as exc:
        logger.exception("Error storing uploaded files")
        raise HTTPException(status_code=500, detail=f"Error uploading files: {exc}") from exc

    results = [
        FileIngestionResult(
            name=file.filename or path.name,
            type=file.content_type or "application/octet-stream",
            size=path.stat().st_size,
            path=str(path),
            report=report,
        )
        for (file, path), report in zip(saved, reports)
    ]
    return UploadResponse(message="Files uploaded and processed", files=results)


@app.get("/scrape", response_model=ScrapeResponse)
async def scrape(
    url: Annotated[str, Query(min_length=1)],
    pipeline: Annotated[IngestionPipeline, Depends(get_pipeline)],
    scraper: Annotated[WebScraper, Depends(get_scraper)],
    store: Annotated[ContentStoreBase, Depends(get_store)],
) -> ScrapeResponse:
    """Scrape *url*, embed its text and store it as context."""
    try:
        report, method = await pipeline.ingest_url(url, scraper)
    except ScrapeError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except StoreError as exc:
        logger.exception("Error storing scraped content")
        raise HTTPException(status_code=500, detail=f"Error storing scraped content: {exc}") from exc

    ids = set(report.record_ids)
    previews = [
        RecordPreview(id=r.id, title=r.title, content_preview=r.content[:100] + "...")
        for r in store.load_context()
        if r.id in ids
    ]
    return ScrapeResponse(
        success=report.successful_chunks > 0,
        message=f"URL content scraped with {method} method: {report.summary()}",
        scraping_method=method,
        content_length=report.content_length,
        report=report,
        context_items=previews,
    )


@app.post("/analyze-review", response_model=ReviewResponse)
async def analyze(
    request: ReviewRequest,
    retriever: Annotated[SimilarityRetriever, Depends(get_retriever)],
    embedder: Annotated[EmbeddingProvider, Depends(get_embedder)],
    llm: Annotated[BaseChatModel | None, Depends(get_chat_model)],
) -> ReviewResponse:
    """Classify sentiment and draft a reply grounded in stored context."""
    if not request.review.strip() or request.rating is None:
        raise HTTPException(status_code=400, detail="Review text and rating are required")

    try:
        result: dict[str, Any] = await analyze_review(
            request.review,
            request.rating,
            retriever=retriever,
            embedder=embedder,
            llm=llm,
        )
    except EmbeddingError as exc:
        logger.error("Could not embed review for analysis: %s", exc)
        raise HTTPException(status_code=502, detail=f"Error analyzing review: {exc}") from exc
    return ReviewResponse(**result)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
