"""Feed page composition: fresh posts interleaved with popular ones.

Each page blends two independently paginated queries 3:1 (fresh:popular).
The cursor "<freshOffset>:<popularOffset>" records how far each query has
been consumed, so the calls stay stateless.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from skafeed.storage.index_store import IndexedItem, IndexStore

FRESH_PER_ROUND = 3
POPULAR_PER_ROUND = 1
DEFAULT_LOOKBACK_HOURS = 48
FRESH_OVERFETCH = 2
MIN_POPULAR_LIKES = 1

_LEADING_INT = re.compile(r"\s*\+?(\d+)")


def _parse_offset(raw: str) -> int:
    m = _LEADING_INT.match(raw or "")
    return int(m.group(1)) if m else 0


@dataclass(frozen=True)
class FeedCursor:
    fresh_offset: int = 0
    popular_offset: int = 0

    @classmethod
    def decode(cls, raw: Optional[str]) -> "FeedCursor":
        """Never raises: anything unreadable resolves to offset 0."""
        if not isinstance(raw, str) or ":" not in raw:
            return cls()
        fresh, popular = raw.split(":", 1)
        return cls(fresh_offset=_parse_offset(fresh), popular_offset=_parse_offset(popular))

    def encode(self) -> str:
        return f"{self.fresh_offset}:{self.popular_offset}"


@dataclass(frozen=True)
class FeedPage:
    posts: List[str] = field(default_factory=list)
    cursor: Optional[str] = None

    def to_skeleton(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"feed": [{"post": uri} for uri in self.posts]}
        if self.cursor is not None:
            out["cursor"] = self.cursor
        return out


def interleave(
    fresh: Sequence[IndexedItem],
    popular: Sequence[IndexedItem],
    limit: int,
) -> Tuple[List[str], int, int]:
    """Blend the two lists, dropping uris already on this page.

    Returns (uris, fresh_consumed, popular_consumed); skipped duplicates count
    as consumed so the next page starts past them.
    """
    seen = set()
    feed: List[str] = []
    fresh_idx = 0
    popular_idx = 0

    while len(feed) < limit:
        for _ in range(FRESH_PER_ROUND):
            if len(feed) >= limit:
                break
            while fresh_idx < len(fresh) and fresh[fresh_idx].uri in seen:
                fresh_idx += 1
            if fresh_idx < len(fresh):
                seen.add(fresh[fresh_idx].uri)
                feed.append(fresh[fresh_idx].uri)
                fresh_idx += 1

        for _ in range(POPULAR_PER_ROUND):
            if len(feed) >= limit:
                break
            while popular_idx < len(popular) and popular[popular_idx].uri in seen:
                popular_idx += 1
            if popular_idx < len(popular):
                seen.add(popular[popular_idx].uri)
                feed.append(popular[popular_idx].uri)
                popular_idx += 1

        if fresh_idx >= len(fresh) and popular_idx >= len(popular):
            break

    return feed, fresh_idx, popular_idx


async def compose_feed(
    store: IndexStore,
    *,
    limit: int,
    cursor: Optional[str] = None,
    now: Optional[datetime] = None,
    lookback_hours: int = DEFAULT_LOOKBACK_HOURS,
) -> FeedPage:
    limit = max(0, int(limit))
    pos = FeedCursor.decode(cursor)
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(hours=lookback_hours)

    fresh = await store.query_recent(since, pos.fresh_offset, limit * FRESH_OVERFETCH)
    popular = await store.query_popular(MIN_POPULAR_LIKES, pos.popular_offset, limit)

    posts, fresh_used, popular_used = interleave(fresh, popular, limit)
    if not posts:
        return FeedPage()
    next_cursor = FeedCursor(
        fresh_offset=pos.fresh_offset + fresh_used,
        popular_offset=pos.popular_offset + popular_used,
    )
    return FeedPage(posts=posts, cursor=next_cursor.encode())
