"""
Status/health helpers for the feed pipeline.

The output is designed for API/UI consumption and never includes item payloads.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from feedstream.cache import FeedCache
from feedstream.fetcher import FeedFetcher
from feedstream.settings import FeedSettings
from feedstream.wire import health_to_dict


def build_status(fetcher: FeedFetcher, cache: FeedCache, settings: FeedSettings) -> Dict[str, Any]:
    health = [health_to_dict(entry) for entry in fetcher.get_health()]
    return {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "pipeline": {
            "health": health,
            "endpoint_count": len(health),
            "healthy_endpoints": sum(1 for entry in health if entry["healthy"]),
            "default_feeds": list(settings.default_feeds),
            "default_social_query": settings.social_query,
        },
        "cache": cache.snapshot(),
        "config": {
            "rss_cache_ttl_seconds": settings.rss_cache_ttl_seconds,
            "social_cache_ttl_seconds": settings.social_cache_ttl_seconds,
            "cache_max_entries": settings.cache_max_entries,
            "http_timeout_seconds": settings.http_timeout_seconds,
            "max_workers": settings.max_workers,
        },
    }
