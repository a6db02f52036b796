"""
High-level orchestration: fan out per source, then merge, filter, sort and truncate.
"""
from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from feedstream.dates import utcnow
from feedstream.fetcher import FeedFetcher
from feedstream.models import (
    AggregationQuery,
    AggregationResult,
    FeedEndpoint,
    NormalizedItem,
    SourceKind,
    SourceSnapshot,
)
from feedstream.settings import FeedSettings

logger = logging.getLogger(__name__)

# Merge order for equal timestamps: social items first, then RSS.
SOURCE_ORDER: Tuple[SourceKind, ...] = (SourceKind.SOCIAL, SourceKind.RSS)
MAX_TRACKED_QUERIES = 32


def filter_by_keywords(items: Iterable[NormalizedItem], keywords: Sequence[str]) -> List[NormalizedItem]:
    """Keep items mentioning any keyword (case-insensitive) in content, title or author."""
    lowered = [keyword.strip().lower() for keyword in keywords if keyword and keyword.strip()]
    if not lowered:
        return list(items)
    kept = []
    for item in items:
        text = f"{item.content} {item.title or ''} {item.author}".lower()
        if any(keyword in text for keyword in lowered):
            kept.append(item)
    return kept


def sort_by_recency(items: Iterable[NormalizedItem]) -> List[NormalizedItem]:
    # Timestamps share one UTC format, so string order is time order; sort is stable.
    return sorted(items, key=lambda item: item.timestamp, reverse=True)


class FeedAggregator:
    def __init__(self, fetcher: FeedFetcher, settings: FeedSettings, social_search_url: str) -> None:
        self.fetcher = fetcher
        self.settings = settings
        self.social_search_url = social_search_url
        self._lock = threading.Lock()
        self._states: "OrderedDict[AggregationQuery, Dict[SourceKind, SourceSnapshot]]" = OrderedDict()
        self._inflight: Dict[Tuple[AggregationQuery, SourceKind], object] = {}
        self._background: Optional[ThreadPoolExecutor] = None

    def endpoints_for(self, kind: SourceKind, query: AggregationQuery) -> List[FeedEndpoint]:
        if kind is SourceKind.RSS:
            feeds = query.rss_feeds or self.settings.default_feeds
            return [FeedEndpoint(url=url, kind=SourceKind.RSS) for url in feeds]
        return [
            FeedEndpoint(
                url=self.social_search_url,
                kind=SourceKind.SOCIAL,
                query=query.social_query or self.settings.social_query,
                limit=query.limit,
            )
        ]

    def run(self, query: AggregationQuery, *, cancel: Optional[threading.Event] = None) -> AggregationResult:
        """Fetch every enabled source concurrently, wait for all, then merge.

        Blocking, so the result is never loading; use ``start``/``snapshot`` for
        the progressive view.
        """
        kinds = _enabled_kinds(query)
        snapshots: Dict[SourceKind, SourceSnapshot] = {}
        if kinds:
            with ThreadPoolExecutor(max_workers=len(kinds)) as executor:
                futures = {kind: executor.submit(self._fetch_source, kind, query, cancel) for kind in kinds}
                for kind, future in futures.items():
                    try:
                        snapshots[kind] = future.result()
                    except Exception as exc:  # pragma: no cover - safety net
                        logger.error("Source %s failed: %s", kind.value, exc, exc_info=True)
                        snapshots[kind] = SourceSnapshot(kind=kind, errors=[str(exc)])
        return self._merge(query, snapshots)

    def start(self, query: AggregationQuery) -> None:
        """Schedule a background refresh of every enabled source for ``query``."""
        with self._lock:
            states = self._states.get(query)
            if states is None:
                states = {kind: SourceSnapshot(kind=kind, pending=True) for kind in _enabled_kinds(query)}
                self._states[query] = states
                self._evict_old_queries()
            if self._background is None:
                self._background = ThreadPoolExecutor(
                    max_workers=self.settings.max_workers,
                    thread_name_prefix="feedstream-refresh",
                )
            for kind in states:
                key = (query, kind)
                if key in self._inflight:
                    continue
                self._inflight[key] = self._background.submit(self._refresh_source, query, kind)

    def snapshot(self, query: AggregationQuery) -> AggregationResult:
        """Merge whatever has completed so far; unseen queries are started first."""
        with self._lock:
            known = query in self._states
        if not known:
            self.start(query)
        with self._lock:
            states = dict(self._states.get(query, {}))
        return self._merge(query, states)

    def close(self) -> None:
        with self._lock:
            background, self._background = self._background, None
        if background is not None:
            background.shutdown(wait=False, cancel_futures=True)

    def _refresh_source(self, query: AggregationQuery, kind: SourceKind) -> None:
        try:
            result = self._fetch_source(kind, query, None)
        except Exception as exc:  # pragma: no cover - safety net
            logger.error("Background refresh of %s failed: %s", kind.value, exc, exc_info=True)
            result = SourceSnapshot(kind=kind, errors=[str(exc)])
        with self._lock:
            self._inflight.pop((query, kind), None)
            states = self._states.get(query)
            if states is None:
                return
            previous = states.get(kind)
            if previous is not None and result.last_success is None and previous.last_success is not None:
                # Keep the last good data when a refresh fails.
                result = SourceSnapshot(
                    kind=kind,
                    items=previous.items,
                    last_success=previous.last_success,
                    is_mock=result.is_mock,
                    degraded=result.degraded,
                    errors=result.errors,
                )
            states[kind] = result

    def _fetch_source(
        self,
        kind: SourceKind,
        query: AggregationQuery,
        cancel: Optional[threading.Event],
    ) -> SourceSnapshot:
        outcomes = self.fetcher.fetch_all(self.endpoints_for(kind, query), cancel=cancel)
        snapshot = SourceSnapshot(kind=kind)
        for outcome in outcomes:
            snapshot.items.extend(outcome.items)
            snapshot.is_mock = snapshot.is_mock or outcome.is_mock
            snapshot.degraded = snapshot.degraded or outcome.degraded
            if outcome.error:
                snapshot.errors.append(f"{outcome.endpoint.url}: {outcome.error}")
            if outcome.ok and outcome.fetched_at is not None:
                if snapshot.last_success is None or outcome.fetched_at > snapshot.last_success:
                    snapshot.last_success = outcome.fetched_at
        logger.debug("Source %s produced %d items", kind.value, len(snapshot.items))
        return snapshot

    def _merge(self, query: AggregationQuery, snapshots: Dict[SourceKind, SourceSnapshot]) -> AggregationResult:
        combined: List[NormalizedItem] = []
        for kind in SOURCE_ORDER:
            if kind in snapshots:
                combined.extend(snapshots[kind].items)
        filtered = filter_by_keywords(combined, query.keywords)
        ordered = sort_by_recency(filtered)[: max(query.limit, 0)]

        successes = [s.last_success for s in snapshots.values() if s.last_success is not None]
        return AggregationResult(
            items=ordered,
            generated_at=utcnow(),
            last_updated=max(successes) if successes else None,
            is_loading=any(s.pending for s in snapshots.values()),
            sources=snapshots,
        )

    def _evict_old_queries(self) -> None:
        while len(self._states) > MAX_TRACKED_QUERIES:
            old_query, _ = self._states.popitem(last=False)
            logger.debug("Dropping tracked aggregation query %s", old_query)


def _enabled_kinds(query: AggregationQuery) -> List[SourceKind]:
    return [kind for kind in SOURCE_ORDER if kind in query.enabled_sources]
