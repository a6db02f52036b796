"""Utility functions for the feedstream web app."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional

from feedstream.dates import format_timestamp

logger = logging.getLogger("feedstream")


def parse_int_arg(raw: Optional[str], default: int) -> int:
    """Parse a positive integer query argument.

    Args:
        raw: Raw query string value.
        default: Value used when the argument is missing or invalid.

    Returns:
        The parsed integer or the default.
    """
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid integer argument %r; using default %s", raw, default)
        return default
    return value if value > 0 else default


def parse_csv_arg(raw: Optional[str]) -> List[str]:
    """Split a comma-separated query argument, dropping blank tokens."""
    if not raw:
        return []
    return [token.strip() for token in raw.split(",") if token.strip()]


def get_current_timestamp() -> str:
    """Get current UTC timestamp in the pipeline's ISO format."""
    return format_timestamp(datetime.now(timezone.utc))
