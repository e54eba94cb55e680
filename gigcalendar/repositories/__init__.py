# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Repository package — storage backends behind one CollectionStore contract."""
from gigcalendar.core.config import Settings
from gigcalendar.repositories.base import (
    COLLECTIONS,
    CollectionStore,
    commitment_key,
    record_key,
)
from gigcalendar.repositories.json_repository import JsonFileStore
from gigcalendar.repositories.memory_repository import MemoryStore
from gigcalendar.repositories.sql_repository import SqlStore, build_engine


def build_store(settings: Settings) -> CollectionStore:
    """Instantiate the backend named by ``settings.STORAGE_BACKEND``."""
    if settings.STORAGE_BACKEND == "memory":
        return MemoryStore()
    if settings.STORAGE_BACKEND == "sql":
        return SqlStore(build_engine(settings.DATABASE_URL, settings.DB_POOL_RECYCLE))
    return JsonFileStore(settings.DATA_DIR)


__all__ = [
    "COLLECTIONS",
    "CollectionStore",
    "JsonFileStore",
    "MemoryStore",
    "SqlStore",
    "build_engine",
    "build_store",
    "commitment_key",
    "record_key",
]
