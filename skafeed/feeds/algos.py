"""Feed algorithm registry, keyed by feed record shortname (rkey)."""

from __future__ import annotations

from typing import Awaitable, Callable, Dict, Optional

from skafeed.feeds.composer import FeedPage, compose_feed
from skafeed.storage.index_store import IndexStore

FEED_GENERATOR_COLLECTION = "app.bsky.feed.generator"

# max 15 chars
BLUESKA_SHORTNAME = "blueska"

AlgoHandler = Callable[..., Awaitable[FeedPage]]


async def blueska(
    store: IndexStore,
    *,
    limit: int,
    cursor: Optional[str] = None,
    lookback_hours: int = 48,
) -> FeedPage:
    return await compose_feed(store, limit=limit, cursor=cursor, lookback_hours=lookback_hours)


ALGOS: Dict[str, AlgoHandler] = {
    BLUESKA_SHORTNAME: blueska,
}


def feed_uri(publisher_did: str, shortname: str) -> str:
    return f"at://{publisher_did}/{FEED_GENERATOR_COLLECTION}/{shortname}"


def resolve_algo(feed: Optional[str], publisher_did: Optional[str] = None) -> Optional[AlgoHandler]:
    """Map a feed generator AT-URI to its handler, or None if unsupported."""
    if not feed or not feed.startswith("at://"):
        return None
    parts = feed[len("at://"):].split("/")
    if len(parts) != 3:
        return None
    did, collection, rkey = parts
    if collection != FEED_GENERATOR_COLLECTION:
        return None
    if publisher_did and did != publisher_did:
        return None
    return ALGOS.get(rkey)
