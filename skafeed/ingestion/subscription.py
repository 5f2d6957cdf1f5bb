"""Firehose subscription sources.

The ingestor only needs `receive()` plus position get/set; transports that
speak the websocket protocol live outside this package. Two sources ship
here: an in-memory replay (tests) and a JSON-lines replay of already
decoded messages.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import IO, Iterable, Iterator, List, Optional

from skafeed.ingestion.event_types import RepoEvent
from skafeed.storage.index_store import IndexStore

logger = logging.getLogger(__name__)


class FirehoseSubscriptionBase:
    def __init__(self, store: IndexStore, service: str):
        self.store = store
        self.service = service

    async def receive(self) -> Optional[RepoEvent]:
        """Next event, or None at end of stream."""
        raise NotImplementedError

    async def get_position(self) -> Optional[int]:
        return await self.store.get_position(self.service)

    async def set_position(self, seq: int) -> None:
        await self.store.set_position(self.service, seq)

    async def close(self) -> None:
        return None


class ReplaySubscription(FirehoseSubscriptionBase):
    """Replays a fixed sequence of events, then ends."""

    def __init__(self, store: IndexStore, service: str, events: Iterable[RepoEvent]):
        super().__init__(store, service)
        self._events: List[RepoEvent] = list(events)
        self._idx = 0

    async def receive(self) -> Optional[RepoEvent]:
        if self._idx >= len(self._events):
            return None
        evt = self._events[self._idx]
        self._idx += 1
        return evt


class JsonLinesSubscription(FirehoseSubscriptionBase):
    """Reads one decoded message per line and resumes after the stored position."""

    def __init__(self, store: IndexStore, service: str, path: str):
        super().__init__(store, service)
        self.path = Path(path)
        self._fh: Optional[IO[str]] = None
        self._lines: Optional[Iterator[str]] = None
        self._resume_after: Optional[int] = None

    async def _open(self) -> Iterator[str]:
        if self._lines is None:
            self._resume_after = await self.get_position()
            if self._resume_after is not None:
                logger.info(f"Resuming {self.service} after seq {self._resume_after}")
            self._fh = self.path.open("r", encoding="utf-8")
            self._lines = iter(self._fh)
        return self._lines

    async def receive(self) -> Optional[RepoEvent]:
        lines = await self._open()
        for line in lines:
            line = line.strip()
            if not line:
                continue
            try:
                msg = json.loads(line)
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping undecodable line in {self.path}: {e}")
                continue
            if not isinstance(msg, dict):
                continue
            evt = RepoEvent.from_message(msg)
            if self._resume_after is not None and evt.seq is not None and evt.seq <= self._resume_after:
                continue
            return evt
        await self.close()
        self._lines = iter(())
        return None

    async def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None
