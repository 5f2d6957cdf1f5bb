import os
import unittest

from skafeed.ingestion.indexer import StreamIngestor
from skafeed.ingestion.subscription import JsonLinesSubscription
from skafeed.storage.memory_index import MemoryIndexStore

FIXTURE = os.path.join(os.path.dirname(__file__), "fixtures", "firehose_sample.jsonl")
SERVICE = "wss://bsky.network"


async def drain(sub):
    out = []
    while True:
        evt = await sub.receive()
        if evt is None:
            return out
        out.append(evt)


class TestJsonLinesSubscription(unittest.IsolatedAsyncioTestCase):
    async def test_reads_all_events_skipping_bad_lines(self):
        sub = JsonLinesSubscription(MemoryIndexStore(), SERVICE, FIXTURE)
        events = await drain(sub)
        self.assertEqual([e.seq for e in events], [101, 102, 103, 104, 105])
        self.assertEqual([e.kind for e in events], ["commit", "commit", "identity", "commit", "commit"])
        # Exhausted sources keep reporting end of stream
        self.assertIsNone(await sub.receive())

    async def test_resumes_after_persisted_position(self):
        store = MemoryIndexStore()
        await store.set_position(SERVICE, 103)
        events = await drain(JsonLinesSubscription(store, SERVICE, FIXTURE))
        self.assertEqual([e.seq for e in events], [104, 105])

    async def test_replay_end_to_end(self):
        store = MemoryIndexStore()
        stats = await StreamIngestor(store).run(JsonLinesSubscription(store, SERVICE, FIXTURE))
        self.assertEqual(stats.indexed, 2)
        self.assertEqual(await store.get_position(SERVICE), 105)
        self.assertEqual(store.get("at://did:plc:alice/app.bsky.feed.post/a1").like_count, 1)
        self.assertIsNone(store.get("at://did:plc:bob/app.bsky.feed.post/b1"))
        self.assertIsNotNone(store.get("at://did:plc:carol/app.bsky.feed.post/c1"))

        # Restarting against the same store replays nothing
        again = await StreamIngestor(store).run(JsonLinesSubscription(store, SERVICE, FIXTURE))
        self.assertEqual(again.events, 0)
        self.assertEqual(store.get("at://did:plc:alice/app.bsky.feed.post/a1").like_count, 1)


if __name__ == "__main__":
    unittest.main()
