"""
Simple CLI to run the feed pipeline once from a terminal.
"""
from __future__ import annotations

import json
from typing import Tuple

import click

from feedstream.models import AggregationQuery, SourceKind
from feedstream.wire import aggregation_to_dict, item_to_dict


def _service():
    from feedstream import get_service

    return get_service()


@click.group()
def cli():
    pass


@cli.command()
@click.option("--feed", "feeds", multiple=True, help="Feed URL; repeat for several. Defaults to the configured feeds.")
@click.option("--limit", type=int, default=None)
def rss(feeds: Tuple[str, ...], limit):
    result = _service().rss_feed(list(feeds) or None, limit)
    for item in result.items:
        click.echo(json.dumps(item_to_dict(item), ensure_ascii=False))


@cli.command()
@click.option("--query", "-q", default=None)
@click.option("--limit", type=int, default=None)
def social(query, limit):
    result = _service().social_search(query, limit)
    if result.is_mock:
        click.echo("upstream unavailable; showing placeholder posts", err=True)
    if result.degraded:
        click.echo("upstream rate limited", err=True)
    for item in result.items:
        click.echo(json.dumps(item_to_dict(item), ensure_ascii=False))


@cli.command()
@click.option(
    "--source",
    "sources",
    multiple=True,
    type=click.Choice([kind.value for kind in SourceKind]),
    help="Enable a source; defaults to all.",
)
@click.option("--keyword", "keywords", multiple=True)
@click.option("--feed", "feeds", multiple=True)
@click.option("--query", "-q", default=None)
@click.option("--limit", type=int, default=25, show_default=True)
def aggregate(sources, keywords, feeds, query, limit):
    enabled = frozenset(SourceKind(value) for value in sources) or frozenset(SourceKind)
    result = _service().aggregate(
        AggregationQuery(
            enabled_sources=enabled,
            keywords=tuple(keywords),
            limit=limit,
            rss_feeds=tuple(feeds),
            social_query=query,
        )
    )
    click.echo(json.dumps(aggregation_to_dict(result), ensure_ascii=False, indent=2))


if __name__ == "__main__":  # pragma: no cover
    cli()
