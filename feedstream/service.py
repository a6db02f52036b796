"""
Wires settings, cache, transport, adapters, fetcher and aggregator together.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Sequence

from feedstream.adapters.base import AdapterRegistry
from feedstream.adapters.rss import RssAdapter
from feedstream.adapters.social import SocialSearchAdapter
from feedstream.aggregator import FeedAggregator, sort_by_recency
from feedstream.cache import FeedCache
from feedstream.dates import utcnow
from feedstream.fetcher import FeedFetcher
from feedstream.http_client import HttpClient
from feedstream.models import (
    AggregationQuery,
    AggregationResult,
    FeedEndpoint,
    NormalizedItem,
    RssFeedResult,
    SocialSearchResult,
    SourceKind,
)
from feedstream.settings import FeedSettings
from feedstream.status import build_status

logger = logging.getLogger(__name__)


class FeedService:
    def __init__(self, settings: FeedSettings, http: Optional[HttpClient] = None) -> None:
        self.settings = settings
        self.http = http or HttpClient(timeout=settings.http_timeout_seconds, user_agent=settings.user_agent)
        self.cache = FeedCache(
            ttl_seconds=settings.rss_cache_ttl_seconds,
            max_entries=settings.cache_max_entries,
        )
        self.social_adapter = SocialSearchAdapter(self.http, api_base=settings.social_api_base)
        self.registry = AdapterRegistry()
        self.registry.register(RssAdapter(self.http))
        self.registry.register(self.social_adapter)
        self.fetcher = FeedFetcher(
            self.registry,
            self.cache,
            max_workers=settings.max_workers,
            ttl_by_kind={
                SourceKind.RSS: settings.rss_cache_ttl_seconds,
                SourceKind.SOCIAL: settings.social_cache_ttl_seconds,
            },
        )
        self.aggregator = FeedAggregator(self.fetcher, settings, self.social_adapter.search_url)

    def rss_feed(self, feeds: Optional[Sequence[str]] = None, limit: Optional[int] = None) -> RssFeedResult:
        feed_urls = [feed.strip() for feed in (feeds or self.settings.default_feeds) if feed.strip()]
        resolved_limit = limit if limit is not None else self.settings.rss_limit
        endpoints = [FeedEndpoint(url=url, kind=SourceKind.RSS) for url in feed_urls]
        outcomes = self.fetcher.fetch_all(endpoints)

        items: List[NormalizedItem] = []
        for outcome in outcomes:
            items.extend(outcome.items)
        logger.info("RSS aggregation: %d items from %d feeds", len(items), len(feed_urls))
        return RssFeedResult(
            items=sort_by_recency(items)[: max(resolved_limit, 0)],
            feeds=feed_urls,
            generated_at=utcnow(),
        )

    def social_search(self, query: Optional[str] = None, limit: Optional[int] = None) -> SocialSearchResult:
        resolved_query = query or self.settings.social_query
        resolved_limit = limit if limit is not None else self.settings.social_limit
        endpoint = self.social_adapter.endpoint(resolved_query, resolved_limit)
        (outcome,) = self.fetcher.fetch_all([endpoint])
        return SocialSearchResult(
            items=list(outcome.items),
            query=resolved_query,
            generated_at=utcnow(),
            is_mock=outcome.is_mock,
            degraded=outcome.degraded,
            skipped_records=outcome.skipped_records,
        )

    def aggregate(self, query: AggregationQuery, *, cancel: Optional[threading.Event] = None) -> AggregationResult:
        return self.aggregator.run(query, cancel=cancel)

    def aggregate_snapshot(self, query: AggregationQuery) -> AggregationResult:
        """Kick a background refresh and return whatever has completed so far."""
        self.aggregator.start(query)
        return self.aggregator.snapshot(query)

    def status(self) -> Dict[str, Any]:
        return build_status(self.fetcher, self.cache, self.settings)

    def close(self) -> None:
        self.aggregator.close()
        self.http.close()
