"""
Concurrent per-endpoint fetching with cache short-circuit and failure isolation.
"""
from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

from feedstream.adapters.base import AdapterRegistry
from feedstream.cache import FeedCache
from feedstream.dates import utcnow
from feedstream.models import FeedEndpoint, FetchOutcome, HealthStatus, SourceKind

logger = logging.getLogger(__name__)


class FeedFetcher:
    def __init__(
        self,
        registry: AdapterRegistry,
        cache: FeedCache,
        *,
        max_workers: int = 8,
        ttl_by_kind: Optional[Mapping[SourceKind, float]] = None,
    ) -> None:
        self.registry = registry
        self.cache = cache
        self.max_workers = max_workers
        self.ttl_by_kind = dict(ttl_by_kind or {})
        self._health: Dict[str, HealthStatus] = {}
        self._health_lock = threading.Lock()

    def fetch_all(
        self,
        endpoints: Sequence[FeedEndpoint],
        *,
        now: Optional[datetime] = None,
        cancel: Optional[threading.Event] = None,
    ) -> List[FetchOutcome]:
        """
        Fetch every endpoint concurrently and return one outcome per endpoint,
        in input order. A failing endpoint yields an empty outcome and never
        affects its siblings.
        """
        now = now or utcnow()
        outcomes: List[Optional[FetchOutcome]] = [None] * len(endpoints)
        pending: Dict[int, FeedEndpoint] = {}

        for index, endpoint in enumerate(endpoints):
            cached = self.cache.get(endpoint.cache_key, now)
            if cached is not None:
                logger.debug("Cache hit for %s", endpoint.cache_key)
                outcomes[index] = FetchOutcome(
                    endpoint=endpoint,
                    items=cached.value,
                    ok=True,
                    fetched_at=cached.fetched_at,
                    from_cache=True,
                )
            else:
                pending[index] = endpoint

        if pending:
            workers = max(1, min(self.max_workers, len(pending)))
            logger.debug("Using %d workers for %d endpoints", workers, len(pending))
            executor = ThreadPoolExecutor(max_workers=workers)
            try:
                futures: Dict[int, Future] = {
                    index: executor.submit(self._fetch_one, endpoint, now, cancel)
                    for index, endpoint in pending.items()
                }
                for index, future in futures.items():
                    outcomes[index] = self._resolve(pending[index], future, cancel)
            finally:
                executor.shutdown(wait=not _is_set(cancel), cancel_futures=True)

        return [outcome for outcome in outcomes if outcome is not None]

    def _resolve(
        self,
        endpoint: FeedEndpoint,
        future: Future,
        cancel: Optional[threading.Event],
    ) -> FetchOutcome:
        if cancel is not None:
            # Wake up periodically so an abandoned request stops waiting.
            while not future.done():
                if cancel.wait(0.05):
                    future.cancel()
                    return FetchOutcome(endpoint=endpoint, error="cancelled")
        try:
            return future.result()
        except Exception as exc:  # pragma: no cover - safety net
            logger.error("Fetch task for %s failed: %s", endpoint.url, exc, exc_info=True)
            return FetchOutcome(endpoint=endpoint, error=str(exc))

    def _fetch_one(
        self,
        endpoint: FeedEndpoint,
        now: datetime,
        cancel: Optional[threading.Event],
    ) -> FetchOutcome:
        if _is_set(cancel):
            return FetchOutcome(endpoint=endpoint, error="cancelled")

        start = time.time()
        try:
            adapter = self.registry.get(endpoint.kind)
            outcome = adapter.fetch(endpoint, now=now)
        except Exception as exc:
            logger.warning("Endpoint %s failed: %s", endpoint.url, exc)
            outcome = FetchOutcome(endpoint=endpoint, error=str(exc))

        if outcome.ok and outcome.items and not (outcome.is_mock or outcome.degraded):
            self.cache.put(
                endpoint.cache_key,
                outcome.items,
                ttl_seconds=self.ttl_by_kind.get(endpoint.kind),
                now=outcome.fetched_at or now,
            )
        self._record_health(endpoint, outcome, (time.time() - start) * 1000)
        return outcome

    def _record_health(self, endpoint: FeedEndpoint, outcome: FetchOutcome, latency_ms: float) -> None:
        extra: Dict[str, str] = {"kind": endpoint.kind.value}
        if outcome.is_mock:
            extra["mock"] = "true"
        if outcome.degraded:
            extra["degraded"] = "true"
        if outcome.skipped_records:
            extra["skipped_records"] = str(outcome.skipped_records)
        with self._health_lock:
            previous = self._health.get(endpoint.cache_key)
            self._health[endpoint.cache_key] = HealthStatus(
                name=endpoint.cache_key,
                healthy=outcome.ok,
                last_error=outcome.error,
                last_success=outcome.fetched_at if outcome.ok else (previous.last_success if previous else None),
                items_last_fetch=len(outcome.items),
                latency_ms=latency_ms,
                extra=extra,
            )

    def get_health(self) -> List[HealthStatus]:
        with self._health_lock:
            return list(self._health.values())


def _is_set(event: Optional[threading.Event]) -> bool:
    return event is not None and event.is_set()
