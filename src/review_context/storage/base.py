"""Abstract base class for content-store backends.

A content store is a flat mapping from string keys to JSON values. The
one key the rest of the system relies on is ``"context"``, which holds
every persisted context record in insertion order.

Backends only implement the four primitive operations; the context
helpers on :class:`ContentStoreBase` are shared. There is no locking:
two writers doing read-modify-write on ``"context"`` at the same time can
lose one of the updates.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from pydantic import ValidationError

from review_context.storage.records import (
    FileContextRecord,
    UrlContextRecord,
    dump_record,
    parse_record,
)

logger = logging.getLogger(__name__)

CONTEXT_KEY = "context"


class StoreError(RuntimeError):
    """Raised when the store cannot be read from or written to."""


class ContentStoreBase(ABC):
    """Backend-agnostic key-value interface plus context-record helpers."""

    # -- required overrides ---------------------------------------------------

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """Return a copy of the value stored under *key*, or *default*."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store *value* under *key* and persist. Raises :class:`StoreError`."""
        ...

    @abstractmethod
    def has(self, key: str) -> bool:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key* (no-op when absent) and persist."""
        ...

    # -- context helpers ------------------------------------------------------

    def ensure_context(self) -> None:
        """Initialise ``"context"`` to an empty list on first use."""
        if not self.has(CONTEXT_KEY):
            self.set(CONTEXT_KEY, [])

    def load_context(self) -> list[FileContextRecord | UrlContextRecord]:
        """Return every valid context record in store order.

        Items that fail validation (hand-edited files, records written
        without an embedding, …) are skipped with a warning.
        """
        raw_items = self.get(CONTEXT_KEY) or []
        records: list[FileContextRecord | UrlContextRecord] = []
        for position, item in enumerate(raw_items):
            try:
                records.append(parse_record(item))
            except ValidationError as exc:
                logger.warning(
                    "Skipping invalid context record at position %d: %s",
                    position,
                    exc.errors()[0].get("msg", exc),
                )
        return records

    def append_context(self, records: Sequence[FileContextRecord | UrlContextRecord]) -> None:
        """Append *records* to ``"context"`` with a single rewrite."""
        if not records:
            return
        existing = list(self.get(CONTEXT_KEY) or [])
        existing.extend(dump_record(r) for r in records)
        self.set(CONTEXT_KEY, existing)

    def replace_context(self, records: Sequence[FileContextRecord | UrlContextRecord]) -> None:
        self.set(CONTEXT_KEY, [dump_record(r) for r in records])

    def context_count(self) -> int:
        return len(self.get(CONTEXT_KEY) or [])
