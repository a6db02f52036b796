import unittest
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import requests

from feedstream.adapters.rss import FEED_ACCEPT, RssAdapter
from feedstream.errors import UpstreamRateLimited, UpstreamUnreachable
from feedstream.http_client import HttpClient
from feedstream.models import FeedEndpoint, SourceKind

NOW = datetime(2025, 1, 1, tzinfo=timezone.utc)

SAMPLE_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Tech Wire</title>
    <item>
      <title>Chips get faster</title>
      <link>https://example.com/chips</link>
      <pubDate>Mon, 25 Nov 2024 12:00:00 GMT</pubDate>
      <description>New silicon announced.</description>
    </item>
  </channel>
</rss>
"""


class RssAdapterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.http = MagicMock(spec=HttpClient)
        self.adapter = RssAdapter(self.http)
        self.endpoint = FeedEndpoint(url=" https://example.com/feed ", kind=SourceKind.RSS)

    def test_fetch_returns_items(self):
        response = MagicMock()
        response.text = SAMPLE_FEED
        self.http.get.return_value = response

        outcome = self.adapter.fetch(self.endpoint, now=NOW)

        self.http.get.assert_called_once_with("https://example.com/feed", accept=FEED_ACCEPT)
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.fetched_at, NOW)
        self.assertEqual(len(outcome.items), 1)
        self.assertEqual(outcome.items[0].author, "Tech Wire")
        self.assertEqual(outcome.items[0].feed_url, "https://example.com/feed")

    def test_network_failure_is_swallowed(self):
        self.http.get.side_effect = UpstreamUnreachable("https://example.com/feed", reason="timed out")

        with self.assertLogs("feedstream.adapters.rss", level="WARNING"):
            outcome = self.adapter.fetch(self.endpoint, now=NOW)

        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.items, ())
        self.assertIn("timed out", outcome.error)

    def test_rate_limit_is_treated_like_any_failure(self):
        self.http.get.side_effect = UpstreamRateLimited("https://example.com/feed", status_code=429)
        outcome = self.adapter.fetch(self.endpoint, now=NOW)
        self.assertEqual(outcome.items, ())
        self.assertFalse(outcome.degraded)

    def test_unparseable_body_yields_empty_outcome(self):
        response = MagicMock()
        response.text = "<html>maintenance</html>"
        self.http.get.return_value = response

        outcome = self.adapter.fetch(self.endpoint, now=NOW)

        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.items, ())
        self.assertEqual(outcome.error, "no items")


class HttpClientTests(unittest.TestCase):
    def _response(self, status_code: int) -> MagicMock:
        response = MagicMock()
        response.status_code = status_code
        response.text = "body"
        return response

    def test_success_returns_response(self):
        client = HttpClient(timeout=3)
        with patch.object(client.session, "get", return_value=self._response(200)) as mock_get:
            response = client.get("https://example.com/x", params={"a": "1"}, accept="text/xml")
        self.assertEqual(response.status_code, 200)
        mock_get.assert_called_once_with(
            "https://example.com/x", params={"a": "1"}, headers={"Accept": "text/xml"}, timeout=3
        )

    def test_429_raises_rate_limited(self):
        client = HttpClient()
        with patch.object(client.session, "get", return_value=self._response(429)):
            with self.assertRaises(UpstreamRateLimited) as ctx:
                client.get("https://example.com/x")
        self.assertEqual(ctx.exception.status_code, 429)

    def test_other_statuses_raise_unreachable(self):
        client = HttpClient()
        for status in (404, 500, 503):
            with patch.object(client.session, "get", return_value=self._response(status)):
                with self.assertRaises(UpstreamUnreachable) as ctx:
                    client.get("https://example.com/x")
            self.assertNotIsInstance(ctx.exception, UpstreamRateLimited)
            self.assertEqual(ctx.exception.status_code, status)

    def test_transport_errors_raise_unreachable(self):
        client = HttpClient()
        with patch.object(client.session, "get", side_effect=requests.ConnectionError("refused")):
            with self.assertRaises(UpstreamUnreachable) as ctx:
                client.get("https://example.com/x")
        self.assertIsNone(ctx.exception.status_code)


if __name__ == "__main__":
    unittest.main()
