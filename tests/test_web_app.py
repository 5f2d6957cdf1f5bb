import asyncio
import unittest
from datetime import datetime, timedelta, timezone

from skafeed.config import Settings
from skafeed.storage.errors import IndexStoreError
from skafeed.storage.index_store import IndexedItem
from skafeed.storage.memory_index import MemoryIndexStore
from web_app import create_app, parse_limit

PUBLISHER = "did:plc:publisher"
FEED = f"at://{PUBLISHER}/app.bsky.feed.generator/blueska"


class UnavailableStore(MemoryIndexStore):
    async def query_recent(self, since, offset, limit):
        raise IndexStoreError("connection refused")


def make_settings():
    return Settings(
        index_backend="memory",
        hostname="feed.example.com",
        service_did="did:web:feed.example.com",
        publisher_did=PUBLISHER,
    )


class TestWebApp(unittest.TestCase):
    def setUp(self):
        self.store = MemoryIndexStore()
        now = datetime.now(timezone.utc)
        items = [
            IndexedItem(uri=f"at://did:plc:a/app.bsky.feed.post/{i}", cid=f"c{i}", indexed_at=now - timedelta(minutes=i))
            for i in range(1, 4)
        ]
        asyncio.run(self.store.insert_if_absent(items))
        self.client = create_app(make_settings(), self.store).test_client()

    def test_feed_skeleton_pages(self):
        r = self.client.get("/xrpc/app.bsky.feed.getFeedSkeleton", query_string={"feed": FEED, "limit": 2})
        self.assertEqual(r.status_code, 200)
        data = r.get_json()
        self.assertEqual([f["post"] for f in data["feed"]], [
            "at://did:plc:a/app.bsky.feed.post/1",
            "at://did:plc:a/app.bsky.feed.post/2",
        ])
        self.assertEqual(data["cursor"], "2:0")

        r = self.client.get(
            "/xrpc/app.bsky.feed.getFeedSkeleton",
            query_string={"feed": FEED, "limit": 2, "cursor": data["cursor"]},
        )
        data = r.get_json()
        self.assertEqual([f["post"] for f in data["feed"]], ["at://did:plc:a/app.bsky.feed.post/3"])

        r = self.client.get(
            "/xrpc/app.bsky.feed.getFeedSkeleton",
            query_string={"feed": FEED, "limit": 2, "cursor": data["cursor"]},
        )
        self.assertEqual(r.get_json(), {"feed": []})

    def test_malformed_cursor_is_not_an_error(self):
        r = self.client.get("/xrpc/app.bsky.feed.getFeedSkeleton", query_string={"feed": FEED, "cursor": "abc:xyz"})
        self.assertEqual(r.status_code, 200)
        self.assertEqual(len(r.get_json()["feed"]), 3)

    def test_missing_feed_param(self):
        r = self.client.get("/xrpc/app.bsky.feed.getFeedSkeleton")
        self.assertEqual(r.status_code, 400)
        self.assertEqual(r.get_json()["error"], "InvalidRequest")

    def test_unsupported_algorithm(self):
        for feed in (
            f"at://{PUBLISHER}/app.bsky.feed.generator/unknown",
            "at://did:plc:someone-else/app.bsky.feed.generator/blueska",
            f"at://{PUBLISHER}/app.bsky.feed.post/blueska",
            "not-a-uri",
        ):
            with self.subTest(feed=feed):
                r = self.client.get("/xrpc/app.bsky.feed.getFeedSkeleton", query_string={"feed": feed})
                self.assertEqual(r.status_code, 400)
                self.assertEqual(r.get_json()["error"], "UnsupportedAlgorithm")

    def test_store_failure_is_retryable(self):
        client = create_app(make_settings(), UnavailableStore()).test_client()
        r = client.get("/xrpc/app.bsky.feed.getFeedSkeleton", query_string={"feed": FEED})
        self.assertEqual(r.status_code, 503)
        self.assertTrue(r.get_json()["retry"])

    def test_describe_feed_generator(self):
        data = self.client.get("/xrpc/app.bsky.feed.describeFeedGenerator").get_json()
        self.assertEqual(data["did"], "did:web:feed.example.com")
        self.assertEqual(data["feeds"], [{"uri": FEED}])

    def test_did_document(self):
        data = self.client.get("/.well-known/did.json").get_json()
        self.assertEqual(data["id"], "did:web:feed.example.com")
        self.assertEqual(data["service"][0]["serviceEndpoint"], "https://feed.example.com")

    def test_health(self):
        data = self.client.get("/health").get_json()
        self.assertEqual(data["status"], "healthy")
        self.assertEqual(data["index_backend"], "memory")

    def test_unknown_route(self):
        self.assertEqual(self.client.get("/nope").status_code, 404)


class TestParseLimit(unittest.TestCase):
    def test_defaults_and_clamps(self):
        self.assertEqual(parse_limit(None), 50)
        self.assertEqual(parse_limit("abc"), 50)
        self.assertEqual(parse_limit("0"), 1)
        self.assertEqual(parse_limit("1000"), 100)
        self.assertEqual(parse_limit("25"), 25)


if __name__ == "__main__":
    unittest.main()
