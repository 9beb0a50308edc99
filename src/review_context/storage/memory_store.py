"""In-memory content store — no persistence, same contract as the JSON store."""

from __future__ import annotations

import copy
import json
from typing import Any

from review_context.storage.base import ContentStoreBase, StoreError


class InMemoryStore(ContentStoreBase):
    """Dict-backed store for tests and throwaway sessions.

    Values are round-tripped through JSON on ``set`` so that anything the
    file-backed store would reject is rejected here too.
    """

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = copy.deepcopy(initial) if initial else {}
        self.ensure_context()

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> None:
        try:
            self._data[key] = json.loads(json.dumps(value))
        except (TypeError, ValueError) as exc:
            raise StoreError(f"Value for {key!r} is not JSON-serialisable: {exc}") from exc

    def has(self, key: str) -> bool:
        return key in self._data

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
