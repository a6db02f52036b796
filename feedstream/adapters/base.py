"""
Adapter protocol + registry for pluggable feed sources.
"""
from __future__ import annotations

from datetime import datetime
from typing import Dict, Protocol

from feedstream.models import FeedEndpoint, FetchOutcome, SourceKind


class SourceAdapter(Protocol):
    kind: SourceKind

    def fetch(self, endpoint: FeedEndpoint, *, now: datetime) -> FetchOutcome:
        ...


class AdapterRegistry:
    """
    Maps each source kind to the adapter that understands its wire format.
    """

    def __init__(self) -> None:
        self._adapters: Dict[SourceKind, SourceAdapter] = {}

    def register(self, adapter: SourceAdapter) -> None:
        if adapter.kind in self._adapters:
            raise ValueError(f"Adapter for '{adapter.kind.value}' already registered")
        self._adapters[adapter.kind] = adapter

    def get(self, kind: SourceKind) -> SourceAdapter:
        try:
            return self._adapters[kind]
        except KeyError:
            raise KeyError(f"No adapter registered for '{kind.value}'") from None
