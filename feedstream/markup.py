"""
Lenient RSS 2.0 / Atom scanning.

This is a regex scanner, not an XML parser:
- only the first occurrence of a tag inside a block is used;
- repeated or nested same-name tags are not handled;
- namespaces are matched as literal prefixes (``dc:``, ``content:``);
- nothing is validated against a schema.

Malformed feeds therefore degrade to "fewer items" instead of failing.
"""
from __future__ import annotations

import re
from datetime import datetime
from functools import lru_cache
from typing import Iterator, Optional, Pattern
from urllib.parse import urlsplit

from feedstream.dates import normalize_timestamp, utcnow
from feedstream.models import NormalizedItem, SourceKind
from feedstream.sanitize import clean_text, truncate

_FEED_TITLE_RE = re.compile(r"<title[^>]*>(?:<!\[CDATA\[)?(.*?)(?:\]\]>)?</title>", re.IGNORECASE)
_RSS_ITEM_RE = re.compile(r"<item[^>]*>([\s\S]*?)</item>", re.IGNORECASE)
_ATOM_ENTRY_RE = re.compile(r"<entry[^>]*>([\s\S]*?)</entry>", re.IGNORECASE)
_LINK_HREF_RE = re.compile(r"""<link[^>]*href=["']([^"']+)["'][^>]*/?>""", re.IGNORECASE)


@lru_cache(maxsize=64)
def _tag_pattern(tag_name: str) -> Pattern[str]:
    name = re.escape(tag_name)
    return re.compile(
        rf"<{name}[^>]*>(?:<!\[CDATA\[)?([\s\S]*?)(?:\]\]>)?</{name}>",
        re.IGNORECASE,
    )


def extract_tag(document: str, tag_name: str) -> Optional[str]:
    """Return the stripped body of the first ``<tag_name>`` element, or None."""
    match = _tag_pattern(tag_name).search(document)
    return match.group(1).strip() if match else None


def extract_link_href(block: str) -> Optional[str]:
    match = _LINK_HREF_RE.search(block)
    return match.group(1) if match else None


def feed_title(document: str, feed_url: str) -> str:
    match = _FEED_TITLE_RE.search(document)
    title = clean_text(match.group(1)) if match else ""
    if title:
        return title
    return urlsplit(feed_url).hostname or feed_url


def parse_feed(document: str, feed_url: str, *, now: Optional[datetime] = None) -> Iterator[NormalizedItem]:
    """
    Yield normalized items from an RSS 2.0 document, or from Atom entries when
    the RSS pass finds nothing. The two passes are never combined.
    """
    fetched_at = now or utcnow()
    default_author = feed_title(document, feed_url)

    rss_items = list(_scan_rss(document, feed_url, default_author, fetched_at))
    if rss_items:
        yield from rss_items
        return
    yield from _scan_atom(document, feed_url, default_author, fetched_at)


def _scan_rss(document: str, feed_url: str, default_author: str, now: datetime) -> Iterator[NormalizedItem]:
    for match in _RSS_ITEM_RE.finditer(document):
        block = match.group(1)
        title = extract_tag(block, "title")
        link = extract_tag(block, "link") or extract_tag(block, "guid")
        if not title or not link:
            continue
        item = _build_item(
            title=title,
            link=link,
            body=extract_tag(block, "description") or extract_tag(block, "content:encoded"),
            raw_date=extract_tag(block, "pubDate") or extract_tag(block, "dc:date"),
            author=extract_tag(block, "author") or extract_tag(block, "dc:creator"),
            default_author=default_author,
            feed_url=feed_url,
            now=now,
        )
        if item is not None:
            yield item


def _scan_atom(document: str, feed_url: str, default_author: str, now: datetime) -> Iterator[NormalizedItem]:
    for match in _ATOM_ENTRY_RE.finditer(document):
        block = match.group(1)
        title = extract_tag(block, "title")
        link = extract_link_href(block)
        if not title or not link:
            continue
        item = _build_item(
            title=title,
            link=link,
            body=extract_tag(block, "summary") or extract_tag(block, "content"),
            raw_date=extract_tag(block, "updated") or extract_tag(block, "published"),
            author=extract_tag(block, "name"),
            default_author=default_author,
            feed_url=feed_url,
            now=now,
        )
        if item is not None:
            yield item


def _build_item(
    *,
    title: str,
    link: str,
    body: Optional[str],
    raw_date: Optional[str],
    author: Optional[str],
    default_author: str,
    feed_url: str,
    now: datetime,
) -> Optional[NormalizedItem]:
    clean_title = clean_text(title)
    content = truncate(clean_text(body or title))
    # Markup-only titles/bodies sanitize to nothing.
    if not clean_title or not content:
        return None
    return NormalizedItem(
        id=link,
        source=SourceKind.RSS,
        author=clean_text(author) or default_author,
        content=content,
        timestamp=normalize_timestamp(raw_date, now),
        url=link,
        title=clean_title,
        feed_url=feed_url,
    )
