# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: JSON file persistence.

One document per collection under the data directory, each wrapping its
array under the collection name:

    data/gigs.json         {"gigs": [...]}
    data/members.json      {"members": [...]}
    data/commitments.json  {"commitments": [...]}

Files are re-read on every operation, so edits made by another process are
picked up on the next request. Writes go through a temp file + os.replace.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Optional

from gigcalendar.core.errors import StorageError
from gigcalendar.core.logging import get_logger
from gigcalendar.repositories.base import (
    COLLECTIONS,
    CollectionStore,
    check_collection,
    record_key,
)

logger = get_logger(__name__)


class JsonFileStore(CollectionStore):
    """File-backed storage, one JSON document per collection."""

    name = "json"

    def __init__(self, data_dir: str | os.PathLike) -> None:
        self._dir = Path(data_dir)
        self._lock = threading.RLock()
        self._ensure_files()

    def path_for(self, collection: str) -> Path:
        check_collection(collection)
        return self._dir / f"{collection}.json"

    # ── Read ──

    def get_all(self, collection: str) -> list[dict[str, Any]]:
        with self._lock:
            return self._read(collection)

    # ── Write ──

    def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        key = record_key(collection, record)
        with self._lock:
            records = self._read(collection)
            if any(record_key(collection, r) == key for r in records):
                raise KeyError(f"Duplicate key '{key}' in {collection}")
            records.append(record)
            self._write(collection, records)
        return record

    def update(
        self, collection: str, key: str, record: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        with self._lock:
            records = self._read(collection)
            for index, existing in enumerate(records):
                if record_key(collection, existing) == key:
                    records[index] = record
                    self._write(collection, records)
                    return record
        return None

    def delete(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        with self._lock:
            records = self._read(collection)
            for index, existing in enumerate(records):
                if record_key(collection, existing) == key:
                    removed = records.pop(index)
                    self._write(collection, records)
                    return removed
        return None

    def replace_all(
        self, collection: str, records: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        with self._lock:
            self._write(collection, list(records))
        return records

    # ── Lifecycle ──

    def ping(self) -> None:
        if not self._dir.is_dir() or not os.access(self._dir, os.W_OK):
            raise StorageError(f"Data directory {self._dir} is not writable")

    # ── Private ──

    def _ensure_files(self) -> None:
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            for collection in COLLECTIONS:
                path = self.path_for(collection)
                if not path.exists():
                    self._write(collection, [])
                    logger.info("Initialised %s", path)
        except OSError as exc:
            raise StorageError(f"Cannot initialise data directory {self._dir}: {exc}") from exc

    def _read(self, collection: str) -> list[dict[str, Any]]:
        path = self.path_for(collection)
        try:
            with path.open("r", encoding="utf-8") as f:
                document = json.load(f)
        except FileNotFoundError:
            return []
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("Error reading %s: %s", path, exc)
            raise StorageError(f"Cannot read {path}: {exc}") from exc
        # Older data files hold a bare array instead of the wrapping object.
        if isinstance(document, list):
            return document
        records = document.get(collection) if isinstance(document, dict) else None
        return records if isinstance(records, list) else []

    def _write(self, collection: str, records: list[dict[str, Any]]) -> None:
        path = self.path_for(collection)
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=self._dir, prefix=f".{collection}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump({collection: records}, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, path)
        except OSError as exc:
            logger.error("Error writing %s: %s", path, exc)
            raise StorageError(f"Cannot write {path}: {exc}") from exc
