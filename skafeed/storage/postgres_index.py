"""Postgres-backed post index (async psycopg).

Each public call opens its own connection; a batch runs inside one
transaction so a failure leaves the index untouched.
"""

from __future__ import annotations

import logging
from collections import Counter
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, List, Optional, Sequence

import psycopg

from skafeed.storage.errors import IndexStoreError
from skafeed.storage.index_store import IndexBatch, IndexedItem, IndexStore

logger = logging.getLogger(__name__)


_SELECT_COLUMNS = "uri, cid, indexed_at, like_count"


class PostgresIndexStore(IndexStore):
    name = "postgres"

    def __init__(self, pg_dsn: str):
        self.pg_dsn = pg_dsn

    @asynccontextmanager
    async def _cursor(self) -> AsyncIterator[psycopg.AsyncCursor]:
        try:
            async with await psycopg.AsyncConnection.connect(self.pg_dsn) as conn:
                async with conn.transaction():
                    async with conn.cursor() as cur:
                        yield cur
        except psycopg.Error as e:
            raise IndexStoreError(f"postgres index operation failed: {e}") from e

    async def get_position(self, service: str) -> Optional[int]:
        async with self._cursor() as cur:
            await cur.execute("SELECT cursor FROM sub_state WHERE service = %s", (service,))
            row = await cur.fetchone()
        return int(row[0]) if row else None

    async def set_position(self, service: str, position: int) -> None:
        async with self._cursor() as cur:
            await cur.execute(
                """
                INSERT INTO sub_state (service, cursor)
                VALUES (%s, %s)
                ON CONFLICT (service) DO UPDATE SET
                  cursor = GREATEST(sub_state.cursor, EXCLUDED.cursor),
                  updated_at = now()
                """,
                (service, int(position)),
            )

    async def apply_batch(self, batch: IndexBatch) -> None:
        if batch.is_empty():
            return
        async with self._cursor() as cur:
            if batch.deletes:
                await cur.execute("DELETE FROM post WHERE uri = ANY(%s)", (list(batch.deletes),))
            if batch.creates:
                await cur.executemany(
                    """
                    INSERT INTO post (uri, cid, indexed_at, like_count)
                    VALUES (%s, %s, %s, %s)
                    ON CONFLICT (uri) DO NOTHING
                    """,
                    [(it.uri, it.cid, it.indexed_at, max(0, int(it.like_count))) for it in batch.creates],
                )
            if batch.likes:
                await self._adjust_likes(cur, batch.likes, 1)
            if batch.unlikes:
                await self._adjust_likes(cur, batch.unlikes, -1)
        logger.debug(
            "Applied batch: deletes=%d creates=%d likes=%d unlikes=%d",
            len(batch.deletes), len(batch.creates), len(batch.likes), len(batch.unlikes),
        )

    async def _adjust_likes(self, cur: psycopg.AsyncCursor, uris: Sequence[str], sign: int) -> None:
        # Repeated subjects in one batch count once per occurrence.
        counts = Counter(uris)
        await cur.execute(
            """
            UPDATE post
            SET like_count = GREATEST(post.like_count + delta.n, 0)
            FROM unnest(%s::text[], %s::int[]) AS delta(uri, n)
            WHERE post.uri = delta.uri
            """,
            (list(counts.keys()), [sign * n for n in counts.values()]),
        )

    async def query_recent(self, since: datetime, offset: int, limit: int) -> List[IndexedItem]:
        async with self._cursor() as cur:
            await cur.execute(
                f"""
                SELECT {_SELECT_COLUMNS}
                FROM post
                WHERE indexed_at > %s
                ORDER BY indexed_at DESC, uri DESC
                OFFSET %s
                LIMIT %s
                """,
                (since, max(0, int(offset)), max(0, int(limit))),
            )
            rows = await cur.fetchall()
        return [self._row_to_item(row) for row in rows]

    async def query_popular(self, min_likes: int, offset: int, limit: int) -> List[IndexedItem]:
        async with self._cursor() as cur:
            await cur.execute(
                f"""
                SELECT {_SELECT_COLUMNS}
                FROM post
                WHERE like_count >= %s
                ORDER BY like_count DESC, indexed_at DESC, uri DESC
                OFFSET %s
                LIMIT %s
                """,
                (int(min_likes), max(0, int(offset)), max(0, int(limit))),
            )
            rows = await cur.fetchall()
        return [self._row_to_item(row) for row in rows]

    def _row_to_item(self, row) -> IndexedItem:
        uri, cid, indexed_at, like_count = row
        return IndexedItem(uri=uri, cid=cid, indexed_at=indexed_at, like_count=int(like_count or 0))
