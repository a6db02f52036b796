"""
Public API for the feed ingestion pipeline.
"""
from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Sequence

from feedstream.models import (
    AggregationQuery,
    AggregationResult,
    NormalizedItem,
    RssFeedResult,
    SocialSearchResult,
    SourceKind,
)
from feedstream.service import FeedService
from feedstream.settings import FeedSettings, load_settings

SETTINGS: FeedSettings = load_settings()
_service: Optional[FeedService] = None
_service_lock = threading.Lock()


def get_service() -> FeedService:
    global _service
    with _service_lock:
        if _service is None:
            _service = FeedService(SETTINGS)
        return _service


def get_rss_feed(feeds: Optional[Sequence[str]] = None, limit: Optional[int] = None) -> RssFeedResult:
    return get_service().rss_feed(feeds, limit)


def search_social(query: Optional[str] = None, limit: Optional[int] = None) -> SocialSearchResult:
    return get_service().social_search(query, limit)


def aggregate(query: AggregationQuery) -> AggregationResult:
    return get_service().aggregate(query)


def get_pipeline_status() -> Dict[str, Any]:
    """Expose a structured status payload for health dashboards."""
    return get_service().status()


__all__ = [
    "AggregationQuery",
    "AggregationResult",
    "FeedService",
    "FeedSettings",
    "NormalizedItem",
    "SETTINGS",
    "SourceKind",
    "aggregate",
    "get_pipeline_status",
    "get_rss_feed",
    "get_service",
    "search_social",
]
