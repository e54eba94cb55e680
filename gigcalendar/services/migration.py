# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: copy every collection from one storage backend to another.

Commitments written by older releases carry ``memberId`` and a synthetic
``id``; they are rewritten to the ``gigId``/``userId`` key on the way through.
"""

from typing import Any

from gigcalendar.core.logging import get_logger
from gigcalendar.core.security import hash_password, is_hashed
from gigcalendar.repositories.base import COLLECTIONS, CollectionStore, record_key

logger = get_logger(__name__)


def upgrade_commitment(record: dict[str, Any]) -> dict[str, Any]:
    upgraded = {k: v for k, v in record.items() if k not in ("id", "memberId")}
    if "userId" not in upgraded and "memberId" in record:
        upgraded["userId"] = record["memberId"]
    upgraded.setdefault("status", "pending")
    return upgraded


def _dedupe(collection: str, records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Keep the last record per key, in the order the last ones appeared."""
    latest: dict[str, dict[str, Any]] = {}
    for record in records:
        key = record_key(collection, record)
        latest.pop(key, None)
        latest[key] = record
    return list(latest.values())


def migrate(
    source: CollectionStore,
    target: CollectionStore,
    hash_passwords: bool = False,
) -> dict[str, int]:
    """Replace every collection in ``target`` with the contents of ``source``.

    Returns the number of records written per collection.
    """
    written: dict[str, int] = {}
    for collection in COLLECTIONS:
        records = source.get_all(collection)
        if collection == "commitments":
            records = [upgrade_commitment(r) for r in records]
        if collection == "members" and hash_passwords:
            records = [
                {**m, "password": hash_password(m["password"])}
                if m.get("password") and not is_hashed(m["password"]) else m
                for m in records
            ]
        records = _dedupe(collection, records)
        target.replace_all(collection, records)
        written[collection] = len(records)
        logger.info(
            "Migrated %d %s", len(records), collection, extra={"collection": collection}
        )
    return written
