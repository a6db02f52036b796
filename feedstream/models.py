"""
Core data structures shared by the feed ingestion pipeline.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple


class SourceKind(str, Enum):
    SOCIAL = "social"
    RSS = "rss"


@dataclass(frozen=True)
class Engagement:
    likes: int = 0
    reposts: int = 0
    replies: int = 0


@dataclass(frozen=True)
class NormalizedItem:
    """
    Normalized representation of a post/article across all upstream sources.
    """

    id: str
    source: SourceKind
    author: str
    content: str
    timestamp: str
    url: str
    title: Optional[str] = None
    author_handle: Optional[str] = None
    author_avatar: Optional[str] = None
    engagement: Optional[Engagement] = None
    feed_url: Optional[str] = None


@dataclass(frozen=True)
class FeedEndpoint:
    url: str
    kind: SourceKind
    query: Optional[str] = None
    limit: Optional[int] = None

    @property
    def cache_key(self) -> str:
        if self.query is None and self.limit is None:
            return f"{self.kind.value}:{self.url}"
        return f"{self.kind.value}:{self.url}:{self.query or ''}:{self.limit or ''}"


@dataclass(frozen=True)
class AggregationQuery:
    """
    Per-call aggregation request. Empty ``rss_feeds`` / missing ``social_query``
    fall back to the configured defaults.
    """

    enabled_sources: FrozenSet[SourceKind] = frozenset({SourceKind.SOCIAL, SourceKind.RSS})
    keywords: Tuple[str, ...] = ()
    limit: int = 25
    rss_feeds: Tuple[str, ...] = ()
    social_query: Optional[str] = None


@dataclass(frozen=True)
class CacheEntry:
    key: str
    value: Tuple[NormalizedItem, ...]
    fetched_at: datetime
    ttl_seconds: float

    def is_fresh(self, now: datetime) -> bool:
        return now - self.fetched_at < timedelta(seconds=self.ttl_seconds)


@dataclass(frozen=True)
class FetchOutcome:
    endpoint: FeedEndpoint
    items: Tuple[NormalizedItem, ...] = ()
    ok: bool = False
    fetched_at: Optional[datetime] = None
    from_cache: bool = False
    is_mock: bool = False
    degraded: bool = False
    error: Optional[str] = None
    skipped_records: int = 0


@dataclass
class HealthStatus:
    name: str
    healthy: bool
    last_error: Optional[str] = None
    last_success: Optional[datetime] = None
    items_last_fetch: int = 0
    latency_ms: Optional[float] = None
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class SourceSnapshot:
    kind: SourceKind
    items: List[NormalizedItem] = field(default_factory=list)
    last_success: Optional[datetime] = None
    pending: bool = False
    is_mock: bool = False
    degraded: bool = False
    errors: List[str] = field(default_factory=list)


@dataclass
class RssFeedResult:
    items: List[NormalizedItem]
    feeds: List[str]
    generated_at: datetime


@dataclass
class SocialSearchResult:
    items: List[NormalizedItem]
    query: str
    generated_at: datetime
    is_mock: bool = False
    degraded: bool = False
    skipped_records: int = 0


@dataclass
class AggregationResult:
    items: List[NormalizedItem]
    generated_at: datetime
    last_updated: Optional[datetime] = None
    is_loading: bool = False
    sources: Dict[SourceKind, SourceSnapshot] = field(default_factory=dict)
