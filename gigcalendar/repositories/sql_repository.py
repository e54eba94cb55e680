# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository: SQL persistence via SQLAlchemy.

Every collection lives in one ``records`` table; each row stores the JSON
body of a record next to its collection name and key. ``seq`` keeps the
insertion order that clients rely on for list rendering.
"""

import json
from typing import Any, Optional

from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
    delete,
    insert,
    select,
    text,
    update,
)
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from gigcalendar.core.errors import StorageError
from gigcalendar.core.logging import get_logger
from gigcalendar.repositories.base import CollectionStore, check_collection, record_key

logger = get_logger(__name__)

metadata = MetaData()

records_table = Table(
    "records",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("collection", String(32), nullable=False, index=True),
    Column("record_key", String(512), nullable=False),
    Column("body", Text, nullable=False),
    UniqueConstraint("collection", "record_key", name="uq_records_collection_key"),
)


def build_engine(database_url: str, pool_recycle: int = 300) -> Engine:
    """Create the SQLAlchemy engine for ``database_url``."""
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=pool_recycle,
        connect_args=connect_args,
    )


class SqlStore(CollectionStore):
    """SQLAlchemy-backed storage holding JSON bodies per collection."""

    name = "sql"

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        try:
            metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot initialise database: {exc}") from exc

    # ── Read ──

    def get_all(self, collection: str) -> list[dict[str, Any]]:
        check_collection(collection)
        stmt = (
            select(records_table.c.body)
            .where(records_table.c.collection == collection)
            .order_by(records_table.c.seq)
        )
        try:
            with self._engine.connect() as conn:
                rows = conn.execute(stmt).fetchall()
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot read {collection}: {exc}") from exc
        return [json.loads(row[0]) for row in rows]

    def get(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        check_collection(collection)
        stmt = select(records_table.c.body).where(
            records_table.c.collection == collection,
            records_table.c.record_key == key,
        )
        try:
            with self._engine.connect() as conn:
                row = conn.execute(stmt).fetchone()
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot read {collection}/{key}: {exc}") from exc
        return json.loads(row[0]) if row else None

    # ── Write ──

    def insert(self, collection: str, record: dict[str, Any]) -> dict[str, Any]:
        key = record_key(collection, record)
        try:
            with self._engine.begin() as conn:
                conn.execute(
                    insert(records_table).values(
                        collection=collection, record_key=key, body=json.dumps(record)
                    )
                )
        except IntegrityError as exc:
            raise KeyError(f"Duplicate key '{key}' in {collection}") from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot insert into {collection}: {exc}") from exc
        return record

    def update(
        self, collection: str, key: str, record: dict[str, Any]
    ) -> Optional[dict[str, Any]]:
        check_collection(collection)
        stmt = (
            update(records_table)
            .where(
                records_table.c.collection == collection,
                records_table.c.record_key == key,
            )
            .values(record_key=record_key(collection, record), body=json.dumps(record))
        )
        try:
            with self._engine.begin() as conn:
                result = conn.execute(stmt)
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot update {collection}/{key}: {exc}") from exc
        return record if result.rowcount else None

    def delete(self, collection: str, key: str) -> Optional[dict[str, Any]]:
        check_collection(collection)
        where = (
            records_table.c.collection == collection,
            records_table.c.record_key == key,
        )
        try:
            with self._engine.begin() as conn:
                row = conn.execute(select(records_table.c.body).where(*where)).fetchone()
                if row is None:
                    return None
                conn.execute(delete(records_table).where(*where))
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot delete {collection}/{key}: {exc}") from exc
        return json.loads(row[0])

    def replace_all(
        self, collection: str, records: list[dict[str, Any]]
    ) -> list[dict[str, Any]]:
        check_collection(collection)
        rows = [
            {"collection": collection, "record_key": record_key(collection, r), "body": json.dumps(r)}
            for r in records
        ]
        try:
            with self._engine.begin() as conn:
                conn.execute(delete(records_table).where(records_table.c.collection == collection))
                if rows:
                    conn.execute(insert(records_table), rows)
        except SQLAlchemyError as exc:
            raise StorageError(f"Cannot replace {collection}: {exc}") from exc
        return records

    # ── Lifecycle ──

    def ping(self) -> None:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            raise StorageError(f"Database unreachable: {exc}") from exc

    def close(self) -> None:
        self._engine.dispose()
