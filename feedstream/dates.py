"""
Timestamp parsing/formatting helpers.

Every timestamp leaving the pipeline uses the same UTC millisecond format, so
plain string comparison orders items chronologically.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

from dateutil import parser as date_parser

logger = logging.getLogger(__name__)

HOUR = 3600
# RFC 822 North American zone names allowed in RSS 2.0 pubDate values.
RFC822_TZINFOS: Dict[str, int] = {
    "EST": -5 * HOUR,
    "EDT": -4 * HOUR,
    "CST": -6 * HOUR,
    "CDT": -5 * HOUR,
    "MST": -7 * HOUR,
    "MDT": -6 * HOUR,
    "PST": -8 * HOUR,
    "PDT": -7 * HOUR,
}


def parse_timestamp(raw: Optional[str]) -> Optional[datetime]:
    if not raw or not raw.strip():
        return None
    try:
        parsed = date_parser.parse(raw.strip(), tzinfos=RFC822_TZINFOS)
    except (ValueError, OverflowError) as exc:
        logger.debug("Unparseable timestamp %r: %s", raw, exc)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    # Four-digit year keeps string order equal to time order.
    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}T"
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}.{value.microsecond // 1000:03d}Z"
    )


def normalize_timestamp(raw: Optional[str], now: datetime) -> str:
    """Format ``raw``; missing or unparseable dates become ``now``."""
    parsed = parse_timestamp(raw)
    return format_timestamp(parsed if parsed is not None else now)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)
