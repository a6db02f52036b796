"""
Adapter that fetches RSS/Atom endpoints and runs them through the lenient scanner.
"""
from __future__ import annotations

import logging
from datetime import datetime

from feedstream.errors import FeedError
from feedstream.http_client import HttpClient
from feedstream.markup import parse_feed
from feedstream.models import FeedEndpoint, FetchOutcome, SourceKind

logger = logging.getLogger(__name__)

FEED_ACCEPT = "application/rss+xml, application/xml, text/xml, application/atom+xml"


class RssAdapter:
    kind = SourceKind.RSS

    def __init__(self, http: HttpClient) -> None:
        self.http = http

    def fetch(self, endpoint: FeedEndpoint, *, now: datetime) -> FetchOutcome:
        url = endpoint.url.strip()
        try:
            response = self.http.get(url, accept=FEED_ACCEPT)
        except FeedError as exc:
            logger.warning("Failed to fetch feed %s: %s", url, exc)
            return FetchOutcome(endpoint=endpoint, error=str(exc))

        items = tuple(parse_feed(response.text, url, now=now))
        if not items:
            # Malformed and legitimately empty feeds look the same from here.
            logger.info("Feed %s yielded no items", url)
            return FetchOutcome(endpoint=endpoint, error="no items")
        return FetchOutcome(endpoint=endpoint, items=items, ok=True, fetched_at=now)
