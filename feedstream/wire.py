"""
JSON wire shapes shared by the HTTP routes and the CLI.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, Optional

from feedstream.dates import format_timestamp
from feedstream.models import AggregationResult, HealthStatus, NormalizedItem, SourceSnapshot


def item_to_dict(item: NormalizedItem) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "id": item.id,
        "source": item.source.value,
        "author": item.author,
        "content": item.content,
        "timestamp": item.timestamp,
        "url": item.url,
    }
    if item.author_handle is not None:
        payload["authorHandle"] = item.author_handle
    if item.author_avatar is not None:
        payload["authorAvatar"] = item.author_avatar
    if item.title is not None:
        payload["title"] = item.title
    if item.engagement is not None:
        payload["engagement"] = {
            "likes": item.engagement.likes,
            "reposts": item.engagement.reposts,
            "replies": item.engagement.replies,
        }
    if item.feed_url is not None:
        payload["feedUrl"] = item.feed_url
    return payload


def _iso(value: Optional[datetime]) -> Optional[str]:
    return format_timestamp(value) if value else None


def source_to_dict(snapshot: SourceSnapshot) -> Dict[str, Any]:
    return {
        "count": len(snapshot.items),
        "lastSuccess": _iso(snapshot.last_success),
        "pending": snapshot.pending,
        "isMock": snapshot.is_mock,
        "degraded": snapshot.degraded,
        "errors": list(snapshot.errors),
    }


def aggregation_to_dict(result: AggregationResult) -> Dict[str, Any]:
    return {
        "items": [item_to_dict(item) for item in result.items],
        "count": len(result.items),
        "lastUpdated": _iso(result.last_updated),
        "isLoading": result.is_loading,
        "sources": {kind.value: source_to_dict(snapshot) for kind, snapshot in result.sources.items()},
        "timestamp": format_timestamp(result.generated_at),
    }


def health_to_dict(status: HealthStatus) -> Dict[str, Any]:
    return {
        "name": status.name,
        "healthy": status.healthy,
        "last_error": status.last_error,
        "last_success": status.last_success.isoformat() if status.last_success else None,
        "items_last_fetch": status.items_last_fetch,
        "latency_ms": status.latency_ms,
        "extra": status.extra,
    }
