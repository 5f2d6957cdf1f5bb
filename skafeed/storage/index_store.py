"""Index store interface and the records it holds."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence


@dataclass(frozen=True)
class IndexedItem:
    """A post that passed classification.

    `indexed_at` is assigned by the ingestor when the post is first stored and
    is never rewritten; `like_count` only moves through engagement updates.
    """

    uri: str
    cid: str
    indexed_at: datetime
    like_count: int = 0


@dataclass
class IndexBatch:
    """Mutations derived from one commit event, applied as a single unit."""

    deletes: List[str] = field(default_factory=list)
    creates: List[IndexedItem] = field(default_factory=list)
    likes: List[str] = field(default_factory=list)
    unlikes: List[str] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.deletes or self.creates or self.likes or self.unlikes)


class IndexStore:
    """Async interface over the post index and the stream position record.

    `apply_batch` is the only write path the ingestor uses; it must commit all
    of deletes, inserts, increments and decrements, in that order, or none.
    The single-operation writers each run as their own unit.
    """

    name: str = "base"

    async def get_position(self, service: str) -> Optional[int]:
        raise NotImplementedError

    async def set_position(self, service: str, position: int) -> None:
        raise NotImplementedError

    async def apply_batch(self, batch: IndexBatch) -> None:
        raise NotImplementedError

    async def query_recent(self, since: datetime, offset: int, limit: int) -> List[IndexedItem]:
        raise NotImplementedError

    async def query_popular(self, min_likes: int, offset: int, limit: int) -> List[IndexedItem]:
        raise NotImplementedError

    async def insert_if_absent(self, items: Sequence[IndexedItem]) -> None:
        await self.apply_batch(IndexBatch(creates=list(items)))

    async def delete_by_uri(self, uris: Sequence[str]) -> None:
        await self.apply_batch(IndexBatch(deletes=list(uris)))

    async def increment_engagement(self, uris: Sequence[str]) -> None:
        await self.apply_batch(IndexBatch(likes=list(uris)))

    async def decrement_engagement(self, uris: Sequence[str]) -> None:
        await self.apply_batch(IndexBatch(unlikes=list(uris)))
