"""In-process index store, used by tests and dry runs (INDEX_BACKEND=memory).

Batches are applied to a copy of the table and swapped in only when every
step succeeded, so readers never see half of a batch.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from skafeed.storage.index_store import IndexBatch, IndexedItem, IndexStore


class MemoryIndexStore(IndexStore):
    name = "memory"

    def __init__(self) -> None:
        self._posts: Dict[str, IndexedItem] = {}
        self._positions: Dict[str, int] = {}
        self._write_lock = asyncio.Lock()

    async def get_position(self, service: str) -> Optional[int]:
        return self._positions.get(service)

    async def set_position(self, service: str, position: int) -> None:
        current = self._positions.get(service)
        self._positions[service] = int(position) if current is None else max(current, int(position))

    async def apply_batch(self, batch: IndexBatch) -> None:
        if batch.is_empty():
            return
        async with self._write_lock:
            posts = dict(self._posts)
            for uri in batch.deletes:
                posts.pop(uri, None)
            for item in batch.creates:
                if item.uri not in posts:
                    posts[item.uri] = replace(item, like_count=max(0, item.like_count))
            for uri, n in Counter(batch.likes).items():
                if uri in posts:
                    posts[uri] = replace(posts[uri], like_count=posts[uri].like_count + n)
            for uri, n in Counter(batch.unlikes).items():
                if uri in posts:
                    posts[uri] = replace(posts[uri], like_count=max(0, posts[uri].like_count - n))
            self._posts = posts

    async def query_recent(self, since: datetime, offset: int, limit: int) -> List[IndexedItem]:
        rows = [it for it in self._posts.values() if it.indexed_at > since]
        rows.sort(key=lambda it: (it.indexed_at, it.uri), reverse=True)
        return self._page(rows, offset, limit)

    async def query_popular(self, min_likes: int, offset: int, limit: int) -> List[IndexedItem]:
        rows = [it for it in self._posts.values() if it.like_count >= min_likes]
        rows.sort(key=lambda it: (it.like_count, it.indexed_at, it.uri), reverse=True)
        return self._page(rows, offset, limit)

    def get(self, uri: str) -> Optional[IndexedItem]:
        return self._posts.get(uri)

    def __len__(self) -> int:
        return len(self._posts)

    @staticmethod
    def _page(rows: List[IndexedItem], offset: int, limit: int) -> List[IndexedItem]:
        start = max(0, int(offset))
        return rows[start:start + max(0, int(limit))]
