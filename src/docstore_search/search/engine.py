"""Query execution against the inverted index."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any

from docstore_search.errors import MalformedCursorError
from docstore_search.observability.metrics import SEARCH_HITS, SEARCH_LATENCY, track_latency
from docstore_search.observability.tracing import create_span
from docstore_search.search.counter import ShardedCounter
from docstore_search.search.cursor import Cursor, CursorBuilder, parse_cursor
from docstore_search.search.fields import FieldKind
from docstore_search.search.layout import REF_KEY, SCORE_KEY, TYPE_KEY, WORD_KEY, IndexLayout
from docstore_search.search.query import FieldFilter, SearchQuery, parse_datetime, parse_query
from docstore_search.search.tokenizer import tokenize
from docstore_search.store.base import ASCENDING, DESCENDING, DOCUMENT_ID


if TYPE_CHECKING:
    from docstore_search.config import Settings
    from docstore_search.store.base import DocumentReference, DocumentStore, Query


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResult:
    """One page of hits.

    ``total`` is an upper-bound estimate: the sum of the document counts of
    the searched words, so documents matching several words count once per
    word. ``cursor`` is set only when the page is full.
    """

    hits: list[DocumentReference] = field(default_factory=list)
    total: int = 0
    cursor: Cursor | None = None


def _coerce_number(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    for convert in (int, float):
        try:
            return convert(value)
        except ValueError:
            continue
    return value


def _coerce_date(value: Any) -> Any:
    if isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is not None:
            return parsed
    return value


class SearchEngine:
    """Executes keyword queries with typed field filters and cursor paging."""

    def __init__(
        self,
        store: DocumentStore,
        layout: IndexLayout,
        settings: Settings,
        *,
        shard_count: int,
    ) -> None:
        self._store = store
        self._layout = layout
        self._settings = settings
        self._shard_count = shard_count

    async def search(
        self,
        language: str,
        query: str | SearchQuery,
        *,
        limit: int | None = None,
        cursor: Cursor | None = None,
    ) -> SearchResult:
        """Return the page of documents matching ``query``.

        Without field filters hits are ordered by score, highest first. The
        document id always breaks ties, so paging is stable.

        Raises:
            MalformedCursorError: If ``cursor`` cannot be decoded or belongs to another ordering
            UnsupportedLanguageError: If ``language`` has no tokenizer
        """
        layout = self._layout
        attributes = {"index": layout.index_path, "lang": language}
        with (
            create_span("fulltext.search", attributes=attributes) as span,
            track_latency(SEARCH_LATENCY, index=layout.index_path),
        ):
            search_query = parse_query(query) if isinstance(query, str) else query
            page_size = self._settings.clamp_limit(limit)
            filters = await self._resolve_filters(search_query.fields or [])

            words = list(
                dict.fromkeys(
                    token.normalized_word
                    for keyword in search_query.keywords
                    for token in tokenize(language, keyword)
                    if token.normalized_word
                )
            )
            counts = await asyncio.gather(
                *(ShardedCounter(layout.word(word), self._shard_count).read() for word in words)
            )
            matched = [word for word, count in zip(words, counts) if count > 0]
            total = sum(count for count in counts if count > 0)
            span.set_attribute("search.word_count", len(matched))
            if not matched:
                span.set_attribute("search.result_count", 0)
                return SearchResult(hits=[], total=0)

            if len(matched) == 1:
                store_query: Query = layout.word_docs.where(WORD_KEY, "==", matched[0])
            else:
                store_query = layout.word_docs.where(WORD_KEY, "in", matched)
            for search_filter, kind in filters:
                store_query = _apply_filter(store_query, search_filter, kind)

            orders: list[tuple[str, str]] = []
            if not filters:
                orders.append((SCORE_KEY, DESCENDING))
            orders.append((DOCUMENT_ID, DESCENDING if orders else ASCENDING))
            for name, direction in orders:
                store_query = store_query.order_by(name, direction)

            if cursor is not None:
                info = parse_cursor(cursor)
                expected = [name for name, _ in orders]
                if info.fields != expected:
                    raise MalformedCursorError(f"Cursor fields {info.fields} do not match query ordering {expected}")
                store_query = store_query.start_after(info.values)

            snapshots = await store_query.limit(page_size).get()
            hits = [snapshot.get(REF_KEY) for snapshot in snapshots]

            next_cursor = None
            if snapshots and len(snapshots) == page_size:
                builder = CursorBuilder()
                for name, _ in orders:
                    builder.add(name, snapshots[-1].get(name))
                next_cursor = builder.build()
                logger.debug("Page of %d hits is full; issued cursor", page_size)

            span.set_attribute("search.result_count", len(hits))
            SEARCH_HITS.labels(index=layout.index_path).inc(len(hits))
            return SearchResult(hits=hits, total=total, cursor=next_cursor)

    async def _resolve_filters(self, filters: Sequence[FieldFilter]) -> list[tuple[FieldFilter, FieldKind]]:
        """Pair each filter with the recorded type of its field, dropping untyped fields."""
        if not filters:
            return []
        snapshots = await self._store.get_all([self._layout.field_type(flt.name) for flt in filters])
        resolved = []
        for search_filter, snapshot in zip(filters, snapshots):
            try:
                kind = FieldKind(snapshot.get(TYPE_KEY))
            except ValueError:
                logger.debug("Dropping filter on untyped field %s", search_filter.name)
                continue
            resolved.append((search_filter, kind))
        return resolved


def _apply_filter(query: Query, search_filter: FieldFilter, kind: FieldKind) -> Query:
    name, operator, value = search_filter.name, search_filter.operator, search_filter.value
    if kind is FieldKind.ARRAY:
        # Arrays are stored sorted and compared as whole sets
        if operator == "==":
            return query.where(name, "in", [[value]])
        if operator == "!=":
            return query.where(name, "not-in", [[value]])
        logger.debug("Dropping %s filter on array field %s", operator, name)
        return query
    if kind is FieldKind.NUMBER:
        value = _coerce_number(value)
    elif kind is FieldKind.DATE:
        value = _coerce_date(value)
    return query.where(name, operator, value)
