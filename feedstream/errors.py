"""
Exceptions raised inside adapters. None of them crosses the adapter/fetcher
boundary: adapters turn them into ``FetchOutcome`` data.
"""
from __future__ import annotations

from typing import Optional


class FeedError(Exception):
    pass


class UpstreamUnreachable(FeedError):
    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        detail = f"HTTP {status_code}" if status_code is not None else (reason or "request failed")
        super().__init__(f"{url}: {detail}")


class UpstreamRateLimited(UpstreamUnreachable):
    """Upstream answered with a rate-limit class status (429)."""


class RecordDecodeError(FeedError):
    pass
