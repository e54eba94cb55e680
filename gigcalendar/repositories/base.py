# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: storage contract shared by every persistence backend.
Backends store plain dict records per collection, in insertion order.
NO business rules here — pure CRUD.
"""

import json
from abc import ABC, abstractmethod
from typing import Any, Optional

COLLECTIONS: tuple[str, ...] = ("gigs", "members", "commitments")

# Fields forming the identity of a record in each collection.
KEY_FIELDS: dict[str, tuple[str, ...]] = {
    "gigs": ("id",),
    "members": ("id",),
    "commitments": ("gigId", "userId"),
}

def check_collection(collection: str) -> None:
    if collection not in KEY_FIELDS:
        raise KeyError(f"Unknown collection '{collection}'")


def compose_key(*parts: Any) -> str:
    """Single ids are used as-is; composite keys are a JSON array of the ids.

    Ids are opaque client strings, so joining them with a separator could
    map two different pairs onto one key.
    """
    if len(parts) == 1:
        return str(parts[0])
    return json.dumps([str(p) for p in parts])


def commitment_key(gig_id: str, user_id: str) -> str:
    return compose_key(gig_id, user_id)


def record_key(collection: str, record: dict[str, Any]) -> str:
    """Return the identity of ``record`` within its collection."""
    check_collection(collection)
    return compose_key(*(record.get(f, "") for f in KEY_FIELDS[collection]))


class CollectionStore(ABC):
    """Durable store for the gigs, members and commitments collections."""

    name: str = "abstract"

    # ── Read ──

    @abstractmethod
    def get_all(self, collection: str) -> list[dict[str, Any]]:
        """Return every record of the collection, in stored order."""

    def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        for record in self.get_all(collection):
            if record_key(collection, record) == key:
                return record
        return None

    def count(self, collection: str) -> int:
        return len(self.get_all(collection))

    # ── Write ──

    @abstractmethod
    def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        """Append a record. Raises KeyError if its key is already present."""

    @abstractmethod
    def update(
        self, collection: str, key: str, record: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        """Replace the record stored under ``key`` in place; None if absent."""

    @abstractmethod
    def delete(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        """Remove and return the record stored under ``key``; None if absent."""

    @abstractmethod
    def replace_all(
        self, collection: str, records: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        """Swap the whole collection for ``records``."""

    # ── Lifecycle ──

    def ping(self) -> None:
        """Raise StorageError when the backend cannot serve requests."""

    def close(self) -> None:
        """Release backend resources."""
