"""
Display-text cleanup for upstream markup.
"""
from __future__ import annotations

import re
from typing import Optional

MAX_CONTENT_LENGTH = 280

_TAG_RE = re.compile(r"<[^>]+>")
_WHITESPACE_RE = re.compile(r"\s+")

# Order matters: "&amp;" first, so "&amp;lt;" decodes to "&lt;" and no further.
_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&nbsp;", " "),
)


def clean_text(text: Optional[str]) -> str:
    """Strip tags, unescape the six common entities and collapse whitespace."""
    if not text:
        return ""
    cleaned = _TAG_RE.sub("", text)
    for entity, replacement in _ENTITIES:
        cleaned = cleaned.replace(entity, replacement)
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def truncate(text: str, limit: int = MAX_CONTENT_LENGTH) -> str:
    return text[:limit]
