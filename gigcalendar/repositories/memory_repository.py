# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: in-memory collections.
Used by tests and ephemeral deployments; nothing survives a restart.
"""

import copy
import threading
from typing import Any, Optional

from gigcalendar.repositories.base import (
    COLLECTIONS,
    CollectionStore,
    check_collection,
    record_key,
)


class MemoryStore(CollectionStore):
    """Process-local storage guarded by a single lock."""

    name = "memory"

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: dict[str, list[dict[str, Any]]] = {c: [] for c in COLLECTIONS}

    # ── Read ──

    def get_all(self, collection: str) -> list[dict[str, Any]]:
        check_collection(collection)
        with self._lock:
            return copy.deepcopy(self._store[collection])

    # ── Write ──

    def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        check_collection(collection)
        key = record_key(collection, record)
        with self._lock:
            records = self._store[collection]
            if any(record_key(collection, r) == key for r in records):
                raise KeyError(f"Duplicate key '{key}' in {collection}")
            records.append(copy.deepcopy(record))
        return copy.deepcopy(record)

    def update(
        self, collection: str, key: str, record: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        check_collection(collection)
        with self._lock:
            records = self._store[collection]
            for index, existing in enumerate(records):
                if record_key(collection, existing) == key:
                    records[index] = copy.deepcopy(record)
                    return copy.deepcopy(record)
        return None

    def delete(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        check_collection(collection)
        with self._lock:
            records = self._store[collection]
            for index, existing in enumerate(records):
                if record_key(collection, existing) == key:
                    return records.pop(index)
        return None

    def replace_all(
        self, collection: str, records: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        check_collection(collection)
        with self._lock:
            self._store[collection] = copy.deepcopy(records)
        return copy.deepcopy(records)

    # ── Bulk / internal ──

    def clear(self) -> None:
        with self._lock:
            for collection in COLLECTIONS:
                self._store[collection] = []
