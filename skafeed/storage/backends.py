"""Index store selection for the entry points."""

from __future__ import annotations

from skafeed.storage.index_store import IndexStore


def make_index_store(backend: str, pg_dsn: str) -> IndexStore:
    backend = (backend or "postgres").strip().lower()
    if backend == "memory":
        from skafeed.storage.memory_index import MemoryIndexStore

        return MemoryIndexStore()
    if backend == "postgres":
        from skafeed.storage.postgres_index import PostgresIndexStore

        return PostgresIndexStore(pg_dsn)
    raise ValueError(f"Unknown INDEX_BACKEND: {backend!r}")
