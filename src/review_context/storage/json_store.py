"""JSON-file implementation of the content-store abstraction."""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from review_context.config import settings
from review_context.storage.base import ContentStoreBase, StoreError

logger = logging.getLogger(__name__)

_MISSING = object()


class JsonFileStore(ContentStoreBase):
    """Whole-file JSON store, loaded into memory on construction.

    Every mutation rewrites the file: the new document is written to a
    temporary file in the same directory and moved over the old one with
    :func:`os.replace`, so readers never see a half-written file.

    Parameters
    ----------
    path:
        Location of the JSON document. Parent directories are created on
        the first write.
    indent:
        Pretty-print indentation of the persisted document.
    """

    def __init__(self, path: str | Path = settings.context_db_path, *, indent: int = 2) -> None:
        self.path = Path(path)
        self._indent = indent
        self._data: dict[str, Any] = self._read()
        self.ensure_context()

    # -- ContentStoreBase overrides -------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        previous = self._data.get(key, _MISSING)
        self._data[key] = copy.deepcopy(value)
        try:
            self._flush()
        except StoreError:
            self._restore(key, previous)
            raise

    def has(self, key: str) -> bool:
        return key in self._data

    def delete(self, key: str) -> None:
        if key not in self._data:
            return
        previous = self._data.pop(key)
        try:
            self._flush()
        except StoreError:
            self._restore(key, previous)
            raise

    # -- internals ------------------------------------------------------------

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            raw = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise StoreError(f"Cannot read content store {self.path}: {exc}") from exc
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise StoreError(f"Content store {self.path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"Content store {self.path} must hold a JSON object, got {type(data).__name__}")
        logger.info("Loaded content store %s (%d keys)", self.path, len(data))
        return data

    def _flush(self) -> None:
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                json.dump(self._data, fh, indent=self._indent, ensure_ascii=False)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, self.path)
        except (OSError, TypeError, ValueError) as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Failed to write content store {self.path}: {exc}") from exc

    def _restore(self, key: str, previous: Any) -> None:
        if previous is _MISSING:
            self._data.pop(key, None)
        else:
            self._data[key] = previous
