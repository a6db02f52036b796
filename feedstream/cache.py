"""
TTL-bounded in-memory cache for per-endpoint fetch results.

Entries are immutable and replaced wholesale on revalidation, so a reader sees
either the previous entry or the new one, never a partial update. Only writers
take the lock. Nothing is persisted to disk.
"""
from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Dict, Iterable, Optional

from feedstream.dates import utcnow
from feedstream.models import CacheEntry, NormalizedItem

logger = logging.getLogger(__name__)


class FeedCache:
    def __init__(self, ttl_seconds: float = 60, max_entries: int = 64) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._lock = threading.Lock()
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str, now: Optional[datetime] = None) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_fresh(now or utcnow()):
            return entry
        with self._lock:
            # Another writer may already have revalidated the slot.
            if self._entries.get(key) is entry:
                del self._entries[key]
        return None

    def put(
        self,
        key: str,
        items: Iterable[NormalizedItem],
        *,
        ttl_seconds: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> CacheEntry:
        entry = CacheEntry(
            key=key,
            value=tuple(items),
            fetched_at=now or utcnow(),
            ttl_seconds=self.ttl_seconds if ttl_seconds is None else ttl_seconds,
        )
        with self._lock:
            self._entries[key] = entry
            self._prune(entry.fetched_at)
        return entry

    def snapshot(self, now: Optional[datetime] = None) -> Dict[str, object]:
        """Return a lightweight view for health endpoints without exposing payload content."""
        now = now or utcnow()
        entries = []
        for key, entry in list(self._entries.items()):
            if not entry.is_fresh(now):
                continue
            entries.append(
                {
                    "key": key,
                    "age_seconds": round((now - entry.fetched_at).total_seconds(), 2),
                    "ttl_seconds": entry.ttl_seconds,
                    "items": len(entry.value),
                }
            )
        return {
            "ttl_seconds": self.ttl_seconds,
            "max_entries": self.max_entries,
            "entries": entries,
        }

    def _prune(self, now: datetime) -> None:
        valid = {key: entry for key, entry in self._entries.items() if entry.is_fresh(now)}
        if len(valid) > self.max_entries:
            newest = sorted(valid.items(), key=lambda kv: kv[1].fetched_at, reverse=True)
            valid = dict(newest[: self.max_entries])
            logger.debug("Feed cache pruned to %d entries", len(valid))
        self._entries = valid
