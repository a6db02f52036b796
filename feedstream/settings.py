"""
Centralised settings for the feed pipeline (env-first, code-light).

An optional YAML sources file (``FEEDSTREAM_SOURCES_PATH``) can replace the
default feed list and social query; environment variables win over both.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from feedstream.adapters.social import DEFAULT_API_BASE
from feedstream.config_loader import load_sources_config

logger = logging.getLogger(__name__)

DEFAULT_FEEDS: Tuple[str, ...] = (
    "https://feeds.arstechnica.com/arstechnica/index",
    "https://www.theverge.com/rss/index.xml",
    "https://techcrunch.com/feed/",
)
DEFAULT_SOCIAL_QUERY = "technology OR news"


@dataclass(frozen=True)
class FeedSettings:
    default_feeds: Tuple[str, ...]
    rss_limit: int
    social_limit: int
    social_query: str
    social_api_base: str
    rss_cache_ttl_seconds: int
    social_cache_ttl_seconds: int
    cache_max_entries: int
    http_timeout_seconds: int
    max_workers: int
    user_agent: str


def _int_from_env(key: str, default: int) -> int:
    raw = os.getenv(key)
    if raw is None or str(raw).strip() == "":
        return default
    try:
        value = int(raw)
        return value if value > 0 else default
    except ValueError:
        logger.warning("Invalid int value for %s=%s; using default %s", key, raw, default)
        return default


def parse_feed_list(raw: Optional[str]) -> Tuple[str, ...]:
    if not raw:
        return ()
    return tuple(token.strip() for token in raw.split(",") if token.strip())


def _feeds_from_config(config: Dict[str, Any]) -> Tuple[str, ...]:
    feeds = config.get("rss_feeds") or []
    if isinstance(feeds, str):
        feeds = [feeds]
    return tuple(feed.strip() for feed in feeds if isinstance(feed, str) and feed.strip())


def load_settings(config: Optional[Dict[str, Any]] = None) -> FeedSettings:
    if config is None:
        config = load_sources_config(os.getenv("FEEDSTREAM_SOURCES_PATH"))
    social_cfg = config.get("social") if isinstance(config.get("social"), dict) else {}

    default_feeds = (
        parse_feed_list(os.getenv("FEEDSTREAM_DEFAULT_FEEDS"))
        or _feeds_from_config(config)
        or DEFAULT_FEEDS
    )
    social_query = (
        os.getenv("FEEDSTREAM_SOCIAL_QUERY")
        or (social_cfg.get("query") if isinstance(social_cfg.get("query"), str) else None)
        or DEFAULT_SOCIAL_QUERY
    )
    return FeedSettings(
        default_feeds=default_feeds,
        rss_limit=_int_from_env("FEEDSTREAM_RSS_LIMIT", 20),
        social_limit=_int_from_env("FEEDSTREAM_SOCIAL_LIMIT", 25),
        social_query=social_query,
        social_api_base=os.getenv("FEEDSTREAM_SOCIAL_API") or social_cfg.get("api_base") or DEFAULT_API_BASE,
        rss_cache_ttl_seconds=_int_from_env("FEEDSTREAM_RSS_CACHE_TTL", 60),
        social_cache_ttl_seconds=_int_from_env("FEEDSTREAM_SOCIAL_CACHE_TTL", 30),
        cache_max_entries=_int_from_env("FEEDSTREAM_CACHE_MAX_ENTRIES", 64),
        http_timeout_seconds=_int_from_env("FEEDSTREAM_HTTP_TIMEOUT", 15),
        max_workers=_int_from_env("FEEDSTREAM_MAX_WORKERS", 8),
        user_agent=os.getenv("FEEDSTREAM_USER_AGENT") or "feedstream/1.0",
    )
