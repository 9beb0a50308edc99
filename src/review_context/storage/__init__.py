"""
Storage — durable key-value persistence of context records.

Public surface
--------------
- :class:`ContentStoreBase` — abstract backend with ``get/set/has/delete``.
- :class:`JsonFileStore` — default whole-file JSON backend.
- :class:`InMemoryStore` — non-persistent backend for tests.
- :class:`FileContextRecord`, :class:`UrlContextRecord` — record variants.
"""

from review_context.storage.base import CONTEXT_KEY, ContentStoreBase, StoreError
from review_context.storage.json_store import JsonFileStore
from review_context.storage.memory_store import InMemoryStore
from review_context.storage.records import (
    ContextRecord,
    FileContextRecord,
    UrlContextRecord,
    dump_record,
    make_record,
    parse_record,
)

__all__ = [
    "CONTEXT_KEY",
    "ContentStoreBase",
    "ContextRecord",
    "FileContextRecord",
    "InMemoryStore",
    "JsonFileStore",
    "StoreError",
    "UrlContextRecord",
    "dump_record",
    "make_record",
    "parse_record",
]
