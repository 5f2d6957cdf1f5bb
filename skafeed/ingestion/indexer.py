"""Stream ingestor: commit events -> classified index mutations.

One commit becomes one IndexBatch. The batch is applied atomically and the
stream position is written only after it commits, so a crash can at worst
replay a batch (inserts/deletes are idempotent; like increments are not).
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from skafeed.classification.ska_classifier import is_ska_related
from skafeed.ingestion.event_types import OpsByType, RepoEvent, is_commit
from skafeed.ingestion.ops import extract_ops, like_subject_uri
from skafeed.ingestion.subscription import FirehoseSubscriptionBase
from skafeed.storage.errors import IndexStoreError
from skafeed.storage.index_store import IndexBatch, IndexedItem, IndexStore

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class IngestStats:
    events: int = 0
    commits: int = 0
    indexed: int = 0
    deleted: int = 0
    liked: int = 0
    unlike_skipped: int = 0

    def add(self, batch: IndexBatch, unlike_skipped: int) -> None:
        self.commits += 1
        self.indexed += len(batch.creates)
        self.deleted += len(batch.deletes)
        self.liked += len(batch.likes)
        self.unlike_skipped += unlike_skipped


class StreamIngestor:
    def __init__(
        self,
        store: IndexStore,
        *,
        classify: Callable[[Any], bool] = is_ska_related,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.store = store
        self.classify = classify
        self.clock = clock
        self.stats = IngestStats()

    def build_batch(self, ops: OpsByType) -> IndexBatch:
        indexed_at = self.clock()
        batch = IndexBatch(
            deletes=[d.uri for d in ops.posts.deletes],
            creates=[
                IndexedItem(uri=c.uri, cid=c.cid, indexed_at=indexed_at, like_count=0)
                for c in ops.posts.creates
                if self.classify(c.record.get("text"))
            ],
        )
        for like in ops.likes.creates:
            subject = like_subject_uri(like)
            if subject:
                batch.likes.append(subject)
        # Like deletes only carry the like's own uri, not its subject, so there
        # is nothing to decrement. Counts can stay inflated after an unlike.
        return batch

    async def handle_event(self, evt: RepoEvent) -> Optional[IndexBatch]:
        self.stats.events += 1
        if not is_commit(evt):
            return None
        ops = extract_ops(evt)
        batch = self.build_batch(ops)
        unlike_skipped = len(ops.likes.deletes)
        if unlike_skipped:
            logger.debug(f"seq={evt.seq}: skipped {unlike_skipped} like deletes without subject")
        if not batch.is_empty():
            try:
                await self.store.apply_batch(batch)
            except IndexStoreError as e:
                logger.error(f"Batch for seq={evt.seq} failed, position not advanced: {e}")
                raise
            logger.debug(
                f"seq={evt.seq}: indexed={len(batch.creates)} deleted={len(batch.deletes)} liked={len(batch.likes)}"
            )
        self.stats.add(batch, unlike_skipped)
        return batch

    async def run(
        self,
        subscription: FirehoseSubscriptionBase,
        stop: Optional[asyncio.Event] = None,
    ) -> IngestStats:
        """Consume until end of stream or until `stop` is set.

        A batch that has started is always allowed to finish; `stop` is only
        checked between events and while waiting for the next one.
        """
        stop = stop or asyncio.Event()
        try:
            while not stop.is_set():
                evt = await self._next_event(subscription, stop)
                if evt is None:
                    break
                await self.handle_event(evt)
                if evt.seq is not None:
                    await subscription.set_position(evt.seq)
                    logger.debug(f"Position for {subscription.service} -> {evt.seq}")
        finally:
            await subscription.close()
        return self.stats

    async def _next_event(
        self,
        subscription: FirehoseSubscriptionBase,
        stop: asyncio.Event,
    ) -> Optional[RepoEvent]:
        receive = asyncio.ensure_future(subscription.receive())
        stopped = asyncio.ensure_future(stop.wait())
        done, _ = await asyncio.wait({receive, stopped}, return_when=asyncio.FIRST_COMPLETED)
        if receive in done:
            stopped.cancel()
            return receive.result()
        receive.cancel()
        logger.info("Stop requested, no longer consuming events")
        return None
