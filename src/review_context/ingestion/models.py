"""Report models returned by the ingestion pipeline."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field, computed_field


class Provenance(BaseModel):
    """Where a piece of ingested text came from.

    Attributes
    ----------
    source:
        ``"file"`` for uploads, ``"url"`` for scraped pages.
    origin_ref:
        Filesystem path or URL, copied onto every record produced.
    base_title:
        Display name of the parent document (file name or page title).
    """

    source: Literal["file", "url"]
    origin_ref: str | None = None
    base_title: str = Field(min_length=1)


class ChunkReport(BaseModel):
    """Progress metadata for one successfully stored chunk."""

    chunk_index: int
    title: str
    char_count: int
    token_count: int
    record_id: str


class FailedChunk(BaseModel):
    """A chunk whose embedding failed; siblings are unaffected."""

    chunk_index: int
    error: str
    char_count: int
    token_count: int


class IngestionStatus(str, Enum):
    SUCCEEDED = "succeeded"
    PARTIAL = "partial"
    FAILED = "failed"


class IngestionReport(BaseModel):
    """Outcome of ingesting one document or page."""

    provenance: Provenance
    content_length: int = 0
    total_chunks: int = 0
    chunks: list[ChunkReport] = Field(default_factory=list)
    failed_chunks: list[FailedChunk] = Field(default_factory=list)
    error: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def successful_chunks(self) -> int:
        return len(self.chunks)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def status(self) -> IngestionStatus:
        if self.error or not self.chunks:
            return IngestionStatus.FAILED
        if self.failed_chunks:
            return IngestionStatus.PARTIAL
        return IngestionStatus.SUCCEEDED

    @property
    def record_ids(self) -> list[str]:
        return [c.record_id for c in self.chunks]

    def summary(self) -> str:
        """One-line human-readable outcome, e.g. ``"partial (2/3 chunks)"``."""
        if self.status is IngestionStatus.FAILED and self.error:
            return f"failed: {self.error}"
        return f"{self.status.value} ({self.successful_chunks}/{self.total_chunks} chunks)"
