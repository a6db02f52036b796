import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock

from feedstream.adapters.social import SocialSearchAdapter, decode_post, decode_posts, placeholder_items
from feedstream.errors import UpstreamRateLimited, UpstreamUnreachable
from feedstream.http_client import HttpClient
from feedstream.models import Engagement, SourceKind

NOW = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

SAMPLE_POST = {
    "uri": "at://did:plc:abc123/app.bsky.feed.post/3kxyz",
    "cid": "bafy",
    "author": {
        "did": "did:plc:abc123",
        "handle": "alice.bsky.social",
        "displayName": "Alice",
        "avatar": "https://cdn.example/alice.jpg",
    },
    "record": {"text": "Breaking AI news today", "createdAt": "2025-03-01T11:30:00.123Z"},
    "likeCount": 10,
    "repostCount": 2,
}


def _http_returning(payload=None, error=None):
    http = MagicMock(spec=HttpClient)
    if error is not None:
        http.get.side_effect = error
    else:
        response = MagicMock()
        response.json.return_value = payload
        http.get.return_value = response
    return http


class DecodePostTests(unittest.TestCase):
    def test_maps_post_fields(self):
        decoded = decode_post(SAMPLE_POST, now=NOW)
        self.assertTrue(decoded.ok)
        item = decoded.item
        self.assertEqual(item.id, SAMPLE_POST["uri"])
        self.assertEqual(item.source, SourceKind.SOCIAL)
        self.assertEqual(item.author, "Alice")
        self.assertEqual(item.author_handle, "alice.bsky.social")
        self.assertEqual(item.author_avatar, "https://cdn.example/alice.jpg")
        self.assertEqual(item.content, "Breaking AI news today")
        self.assertEqual(item.timestamp, "2025-03-01T11:30:00.123Z")
        self.assertEqual(item.url, "https://bsky.app/profile/alice.bsky.social/post/3kxyz")
        self.assertEqual(item.engagement, Engagement(likes=10, reposts=2, replies=0))
        self.assertIsNone(item.title)

    def test_author_fallback_chain(self):
        no_display = dict(SAMPLE_POST, author={"handle": "bob.bsky.social"})
        self.assertEqual(decode_post(no_display, now=NOW).item.author, "bob.bsky.social")

        anonymous = dict(SAMPLE_POST, author={})
        self.assertEqual(decode_post(anonymous, now=NOW).item.author, "Unknown")

    def test_long_text_is_not_truncated(self):
        text = "word " * 100
        post = dict(SAMPLE_POST, record={"text": text, "createdAt": "2025-03-01T11:30:00Z"})
        self.assertEqual(decode_post(post, now=NOW).item.content, text)

    def test_missing_created_at_uses_now(self):
        post = dict(SAMPLE_POST, record={"text": "hello"})
        self.assertEqual(decode_post(post, now=NOW).item.timestamp, "2025-03-01T12:00:00.000Z")

    def test_invalid_records_are_tagged_errors(self):
        self.assertFalse(decode_post({"record": {"text": "no uri"}}, now=NOW).ok)
        self.assertFalse(decode_post(dict(SAMPLE_POST, record={"text": "   "}), now=NOW).ok)
        self.assertFalse(decode_post(["positional", "array"], now=NOW).ok)
        self.assertIsNotNone(decode_post("garbage", now=NOW).error)

    def test_decode_posts_skips_and_counts(self):
        payload = {"posts": [SAMPLE_POST, {"uri": ""}, 42, dict(SAMPLE_POST, uri="at://x/app.bsky.feed.post/2")]}
        items, skipped = decode_posts(payload, now=NOW)
        self.assertEqual(len(items), 2)
        self.assertEqual(skipped, 2)

    def test_decode_posts_without_posts_key(self):
        self.assertEqual(decode_posts({}, now=NOW), ([], 0))
        self.assertEqual(decode_posts(None, now=NOW), ([], 0))


class SocialSearchAdapterTests(unittest.TestCase):
    def test_success_returns_items(self):
        http = _http_returning({"posts": [SAMPLE_POST]})
        adapter = SocialSearchAdapter(http, api_base="https://api.example/")
        endpoint = adapter.endpoint("ai", 10)

        outcome = adapter.fetch(endpoint, now=NOW)

        self.assertTrue(outcome.ok)
        self.assertFalse(outcome.is_mock)
        self.assertEqual(len(outcome.items), 1)
        self.assertEqual(outcome.fetched_at, NOW)
        http.get.assert_called_once_with(
            "https://api.example/xrpc/app.bsky.feed.searchPosts",
            params={"q": "ai", "sort": "latest", "limit": "10"},
            accept="application/json",
        )

    def test_rate_limit_is_flagged_not_raised(self):
        url = "https://api.example/xrpc/app.bsky.feed.searchPosts"
        adapter = SocialSearchAdapter(_http_returning(error=UpstreamRateLimited(url, status_code=429)))

        outcome = adapter.fetch(adapter.endpoint("ai", 5), now=NOW)

        self.assertTrue(outcome.degraded)
        self.assertFalse(outcome.is_mock)
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.items, ())

    def test_outage_serves_placeholders(self):
        url = "https://api.example/xrpc/app.bsky.feed.searchPosts"
        adapter = SocialSearchAdapter(_http_returning(error=UpstreamUnreachable(url, status_code=503)))

        outcome = adapter.fetch(adapter.endpoint("ai", 5), now=NOW)

        self.assertTrue(outcome.is_mock)
        self.assertEqual([item.id for item in outcome.items], ["mock-1", "mock-2", "mock-3"])
        self.assertEqual(outcome.items[0].timestamp, "2025-03-01T11:55:00.000Z")

    def test_bad_json_serves_placeholders(self):
        http = MagicMock(spec=HttpClient)
        response = MagicMock()
        response.json.side_effect = ValueError("Expecting value")
        http.get.return_value = response
        adapter = SocialSearchAdapter(http)

        outcome = adapter.fetch(adapter.endpoint("ai", 5), now=NOW)

        self.assertTrue(outcome.is_mock)
        self.assertEqual(len(outcome.items), 3)

    def test_placeholders_satisfy_item_invariants(self):
        for item in placeholder_items(NOW):
            self.assertEqual(item.source, SourceKind.SOCIAL)
            for value in (item.id, item.author, item.content, item.timestamp, item.url):
                self.assertTrue(value)


if __name__ == "__main__":
    unittest.main()
