"""API routes for feedstream."""
from __future__ import annotations

import logging
from typing import Optional

from flask import jsonify, request

from app_utils import get_current_timestamp, parse_csv_arg, parse_int_arg
from feedstream.adapters.social import placeholder_items
from feedstream.dates import utcnow
from feedstream.models import AggregationQuery, SourceKind
from feedstream.service import FeedService
from feedstream.wire import aggregation_to_dict, item_to_dict

logger = logging.getLogger("feedstream")


def _parse_sources(raw: Optional[str]):
    kinds = set()
    for token in parse_csv_arg(raw):
        try:
            kinds.add(SourceKind(token.lower()))
        except ValueError:
            logger.warning("Unknown source '%s' in request; skipping.", token)
    return frozenset(kinds) or frozenset(SourceKind)


def register_routes(app, service: FeedService):
    """Register all API routes with the Flask app.

    Args:
        app: Flask app instance.
        service: FeedService handling fetching and aggregation.
    """
    settings = service.settings

    @app.route("/api/social/rss")
    def api_rss_feed():
        """Merged RSS/Atom items from the requested (or default) feeds."""
        feeds = parse_csv_arg(request.args.get("feeds")) or None
        limit = parse_int_arg(request.args.get("limit"), settings.rss_limit)
        try:
            result = service.rss_feed(feeds, limit)
            items = [item_to_dict(item) for item in result.items]
            return jsonify(
                {
                    "items": items,
                    "count": len(items),
                    "feeds": result.feeds,
                    "timestamp": get_current_timestamp(),
                }
            )
        except Exception as exc:
            logger.error("RSS aggregation failed: %s", exc, exc_info=True)
            return jsonify({"error": "Failed to fetch RSS feeds", "items": []}), 500

    @app.route("/api/social/bluesky")
    def api_social_search():
        """Social search; upstream trouble is reported in the payload, never as a 5xx."""
        query = request.args.get("q") or settings.social_query
        limit = parse_int_arg(request.args.get("limit"), settings.social_limit)
        try:
            result = service.social_search(query, limit)
            items = [item_to_dict(item) for item in result.items]
            payload = {
                "items": items,
                "count": len(items),
                "query": result.query,
                "timestamp": get_current_timestamp(),
                "isMock": result.is_mock,
            }
            if result.degraded:
                payload["degraded"] = True
            return jsonify(payload)
        except Exception as exc:
            logger.error("Social search failed: %s", exc, exc_info=True)
            items = [item_to_dict(item) for item in placeholder_items(utcnow())]
            return jsonify(
                {
                    "items": items,
                    "count": len(items),
                    "query": query,
                    "timestamp": get_current_timestamp(),
                    "isMock": True,
                }
            )

    @app.route("/api/social/feed")
    def api_combined_feed():
        """Merged, keyword-filtered stream across every enabled source."""
        query = AggregationQuery(
            enabled_sources=_parse_sources(request.args.get("sources")),
            keywords=tuple(parse_csv_arg(request.args.get("keywords"))),
            limit=parse_int_arg(request.args.get("limit"), settings.social_limit),
            rss_feeds=tuple(parse_csv_arg(request.args.get("feeds"))),
            social_query=request.args.get("q") or None,
        )
        logger.info(
            "Aggregating %s with %d keyword(s)",
            ",".join(sorted(kind.value for kind in query.enabled_sources)),
            len(query.keywords),
        )
        background = (request.args.get("background") or "").lower() in ("1", "true", "yes")
        try:
            result = service.aggregate_snapshot(query) if background else service.aggregate(query)
            return jsonify(aggregation_to_dict(result))
        except Exception as exc:
            logger.error("Feed aggregation failed: %s", exc, exc_info=True)
            return jsonify({"error": "Failed to aggregate feeds", "items": []}), 500

    @app.route("/api/system-health")
    def api_system_health():
        """Per-endpoint health and cache state."""
        try:
            return jsonify({"status": "ok", "pipeline_status": service.status(), "timestamp": get_current_timestamp()})
        except Exception as exc:
            logger.error("System health check failed: %s", exc, exc_info=True)
            return jsonify(
                {
                    "status": "error",
                    "error": "Failed to retrieve system health status",
                    "timestamp": get_current_timestamp(),
                }
            ), 500
