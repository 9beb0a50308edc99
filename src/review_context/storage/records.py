"""Context records — the retrievable units persisted in the content store.

A record is one embedded chunk of an uploaded file or scraped page. The
``source`` field tags which variant it is, and the variant decides which
locator field (``filepath`` or ``url``) points back to the origin.

Records are immutable. The retriever attaches ``similarity`` to a *copy*
of a record at query time; that field is never written to disk.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Any, Literal, Union
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


def new_record_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _ContextRecordBase(BaseModel):
    """Fields shared by every context record.

    Attributes
    ----------
    id:
        Store-wide unique identifier.
    content:
        Text of this chunk (not the whole document).
    title:
        Label identifying the chunk within its parent document.
    embedding:
        Vector produced by the configured embedding provider.
    created_at:
        UTC creation time, serialised as ``createdAt``.
    similarity:
        Query-time cosine score; excluded from serialisation.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=new_record_id)
    content: str
    title: str | None = None
    embedding: list[float] = Field(min_length=1)
    created_at: datetime = Field(default_factory=_utcnow, alias="createdAt")
    similarity: float | None = Field(default=None, exclude=True)


class FileContextRecord(_ContextRecordBase):
    """Chunk of an uploaded file."""

    source: Literal["file"] = "file"
    filepath: str | None = None

    @property
    def origin_ref(self) -> str | None:
        return self.filepath


class UrlContextRecord(_ContextRecordBase):
    """Chunk of a scraped web page."""

    source: Literal["url"] = "url"
    url: str | None = None

    @property
    def origin_ref(self) -> str | None:
        return self.url


ContextRecord = Annotated[
    Union[FileContextRecord, UrlContextRecord],
    Field(discriminator="source"),
]

_record_adapter: TypeAdapter[ContextRecord] = TypeAdapter(ContextRecord)


def make_record(
    source: str,
    *,
    content: str,
    embedding: list[float],
    title: str | None = None,
    origin_ref: str | None = None,
) -> FileContextRecord | UrlContextRecord:
    """Build the record variant matching *source* (``"file"`` or ``"url"``)."""
    if source == "file":
        return FileContextRecord(content=content, embedding=embedding, title=title, filepath=origin_ref)
    if source == "url":
        return UrlContextRecord(content=content, embedding=embedding, title=title, url=origin_ref)
    raise ValueError(f"Unsupported record source: {source!r}")


def parse_record(obj: Any) -> FileContextRecord | UrlContextRecord:
    """Validate a raw JSON object into a context record (raises ``ValidationError``)."""
    return _record_adapter.validate_python(obj)


def dump_record(record: FileContextRecord | UrlContextRecord) -> dict[str, Any]:
    """Serialise *record* to its persisted JSON shape."""
    return record.model_dump(mode="json", by_alias=True, exclude_none=True)
