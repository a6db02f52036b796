"""
Adapter for the Bluesky public post-search API.

Records are decoded through explicit pydantic schemas; a record that fails
validation is skipped and counted instead of poisoning the whole batch.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from feedstream.dates import format_timestamp, normalize_timestamp
from feedstream.errors import FeedError, RecordDecodeError, UpstreamRateLimited
from feedstream.http_client import HttpClient
from feedstream.models import Engagement, FeedEndpoint, FetchOutcome, NormalizedItem, SourceKind

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://public.api.bsky.app"
SEARCH_PATH = "/xrpc/app.bsky.feed.searchPosts"
POST_URL_TEMPLATE = "https://bsky.app/profile/{handle}/post/{post_id}"


class PostAuthor(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    did: Optional[str] = None
    handle: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    avatar: Optional[str] = None


class PostRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    text: str
    created_at: Optional[str] = Field(default=None, alias="createdAt")

    @field_validator("text")
    @classmethod
    def _require_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("post text is empty")
        return value


class SearchPost(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    uri: str = Field(min_length=1)
    author: PostAuthor = Field(default_factory=PostAuthor)
    record: PostRecord
    like_count: Optional[int] = Field(default=None, alias="likeCount")
    repost_count: Optional[int] = Field(default=None, alias="repostCount")
    reply_count: Optional[int] = Field(default=None, alias="replyCount")


@dataclass(frozen=True)
class DecodedPost:
    item: Optional[NormalizedItem] = None
    error: Optional[RecordDecodeError] = None

    @property
    def ok(self) -> bool:
        return self.item is not None


def decode_post(raw: Any, *, now: datetime) -> DecodedPost:
    try:
        post = SearchPost.model_validate(raw)
    except ValidationError as exc:
        return DecodedPost(error=RecordDecodeError(f"invalid post record: {exc.error_count()} error(s)"))
    return DecodedPost(item=_post_to_item(post, now))


def decode_posts(payload: Any, *, now: datetime) -> Tuple[List[NormalizedItem], int]:
    """Return the decoded items and the number of skipped records."""
    raw_posts = payload.get("posts") if isinstance(payload, dict) else None
    if not isinstance(raw_posts, list):
        return [], 0
    items: List[NormalizedItem] = []
    skipped = 0
    for raw in raw_posts:
        decoded = decode_post(raw, now=now)
        if decoded.ok:
            items.append(decoded.item)
        else:
            skipped += 1
            logger.debug("Skipping social record: %s", decoded.error)
    return items, skipped


def _post_to_item(post: SearchPost, now: datetime) -> NormalizedItem:
    author = post.author
    handle = author.handle or author.did or "unknown"
    return NormalizedItem(
        id=post.uri,
        source=SourceKind.SOCIAL,
        author=author.display_name or author.handle or "Unknown",
        author_handle=author.handle,
        author_avatar=author.avatar,
        content=post.record.text,
        timestamp=normalize_timestamp(post.record.created_at, now),
        url=POST_URL_TEMPLATE.format(handle=handle, post_id=post.uri.rstrip("/").split("/")[-1]),
        engagement=Engagement(
            likes=post.like_count or 0,
            reposts=post.repost_count or 0,
            replies=post.reply_count or 0,
        ),
    )


_PLACEHOLDERS = (
    (
        "mock-1",
        "TechNews",
        "technews.bsky.social",
        "Breaking: Major developments in AI technology as companies race to build more efficient models.",
        5,
        Engagement(likes=234, reposts=45, replies=12),
    ),
    (
        "mock-2",
        "MarketWatch",
        "markets.bsky.social",
        "Markets update: S&P 500 reaches new highs as tech sector leads gains.",
        12,
        Engagement(likes=156, reposts=28, replies=8),
    ),
    (
        "mock-3",
        "WorldNews",
        "worldnews.bsky.social",
        "Global leaders gather for climate summit, major announcements expected.",
        20,
        Engagement(likes=89, reposts=34, replies=15),
    ),
)


def placeholder_items(now: datetime) -> Tuple[NormalizedItem, ...]:
    """Fixed synthetic posts served when the upstream cannot be reached."""
    return tuple(
        NormalizedItem(
            id=post_id,
            source=SourceKind.SOCIAL,
            author=author,
            author_handle=handle,
            content=content,
            timestamp=format_timestamp(now - timedelta(minutes=minutes_ago)),
            url="https://bsky.app",
            engagement=engagement,
        )
        for post_id, author, handle, content, minutes_ago, engagement in _PLACEHOLDERS
    )


class SocialSearchAdapter:
    kind = SourceKind.SOCIAL

    def __init__(self, http: HttpClient, api_base: str = DEFAULT_API_BASE) -> None:
        self.http = http
        self.api_base = api_base.rstrip("/")

    @property
    def search_url(self) -> str:
        return f"{self.api_base}{SEARCH_PATH}"

    def endpoint(self, query: str, limit: int) -> FeedEndpoint:
        return FeedEndpoint(url=self.search_url, kind=self.kind, query=query, limit=limit)

    def fetch(self, endpoint: FeedEndpoint, *, now: datetime) -> FetchOutcome:
        params = {"q": endpoint.query or "", "sort": "latest"}
        if endpoint.limit is not None:
            params["limit"] = str(endpoint.limit)
        try:
            response = self.http.get(endpoint.url, params=params, accept="application/json")
            payload = response.json()
        except UpstreamRateLimited as exc:
            logger.warning("Social search rate limited: %s", exc)
            return FetchOutcome(endpoint=endpoint, degraded=True, error=str(exc))
        except (FeedError, ValueError) as exc:
            # ValueError covers undecodable JSON bodies.
            logger.warning("Social search failed, serving placeholders: %s", exc)
            return FetchOutcome(
                endpoint=endpoint,
                items=placeholder_items(now),
                is_mock=True,
                error=str(exc),
            )

        items, skipped = decode_posts(payload, now=now)
        if skipped:
            logger.info("Skipped %d invalid social records for query %r", skipped, endpoint.query)
        return FetchOutcome(
            endpoint=endpoint,
            items=tuple(items),
            ok=True,
            fetched_at=now,
            skipped_records=skipped,
        )
