#!/usr/bin/env python3
"""Firehose ingestion worker.

Consumes decoded repo commit messages, keeps ska-related posts in the index
and counts likes on them. Runs until the stream ends or SIGINT/SIGTERM; the
batch in flight always finishes committing before exit.
"""

from __future__ import annotations

import asyncio
import logging
import signal

from skafeed.config import Settings, configure_logging
from skafeed.ingestion.indexer import IngestStats, StreamIngestor
from skafeed.ingestion.subscription import JsonLinesSubscription
from skafeed.storage.backends import make_index_store
from skafeed.storage.postgres_schema import ensure_postgres_schema

logger = logging.getLogger(__name__)


async def run(settings: Settings) -> IngestStats:
    store = make_index_store(settings.index_backend, settings.pg_dsn)
    subscription = JsonLinesSubscription(store, settings.subscription_endpoint, settings.replay_path)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except NotImplementedError:
            # Windows event loops have no signal handler support
            logger.warning(f"Cannot install handler for {sig.name}")

    ingestor = StreamIngestor(store)
    return await ingestor.run(subscription, stop)


def main() -> int:
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    if not settings.replay_path:
        logger.error("FIREHOSE_REPLAY_PATH is not set; nothing to consume")
        return 2
    if settings.index_backend == "postgres":
        ensure_postgres_schema(settings.pg_dsn)

    stats = asyncio.run(run(settings))
    logger.info(
        f"[ingest] events={stats.events} commits={stats.commits} indexed={stats.indexed} "
        f"deleted={stats.deleted} liked={stats.liked} unlike_skipped={stats.unlike_skipped}"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
