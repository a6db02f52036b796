"""
Load the optional feed sources YAML file with ``${ENV}`` expansion.

Expected shape::

    rss_feeds:
      - https://example.com/feed.xml
    social:
      query: "technology OR news"
      api_base: https://public.api.bsky.app
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


def load_sources_config(path: Optional[str | Path] = None) -> Dict[str, Any]:
    if not path:
        return {}
    config_path = Path(path)
    if not config_path.exists():
        logger.warning("Feed sources file not found at %s", config_path)
        return {}
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        logger.error("Invalid feed sources file %s: %s", config_path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("Feed sources file %s is not a mapping; ignoring.", config_path)
        return {}
    return _expand_env(data)


def _expand_env(data: Dict[str, Any]) -> Dict[str, Any]:
    def replace(value: Any) -> Any:
        if isinstance(value, str) and value.startswith("${") and value.endswith("}"):
            env_key = value[2:-1]
            return os.getenv(env_key, "")
        if isinstance(value, dict):
            return {k: replace(v) for k, v in value.items()}
        if isinstance(value, list):
            return [replace(item) for item in value]
        return value

    return replace(data)  # type: ignore[return-value]
