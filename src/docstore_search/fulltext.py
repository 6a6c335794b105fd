"""Public entry point: full-text search over documents in a document store.

Example::

    store = MemoryStore()
    index = FullTextSearch(store, "index")
    await index.set("en", store.document("animals/corgi"), data={"description": "..."})
    result = await index.search("en", 'dog label:"welsh corgi"', limit=20)
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import logging
import random
from typing import TYPE_CHECKING, Any

from docstore_search.config import Settings
from docstore_search.observability.context import bind_fields
from docstore_search.search.engine import SearchEngine, SearchResult
from docstore_search.search.indexer import Indexer
from docstore_search.search.layout import IndexLayout


if TYPE_CHECKING:
    from docstore_search.search.cursor import Cursor
    from docstore_search.search.query import SearchQuery
    from docstore_search.store.base import DocumentReference, DocumentStore, WriteBatch


logger = logging.getLogger(__name__)


class FullTextSearch:
    """Inverted index stored under ``index_path`` in ``store``.

    The indexed documents may live anywhere in the store; the index only keeps
    references to them. ``shard_count`` must stay the same for the lifetime of
    an index.
    """

    def __init__(
        self,
        store: DocumentStore,
        index_path: str,
        *,
        settings: Settings | None = None,
        shard_count: int | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.shard_count = shard_count if shard_count is not None else self.settings.index_shard_count
        if self.shard_count < 1:
            raise ValueError("shard_count must be at least 1")
        self.layout = IndexLayout(store, index_path)
        self._indexer = Indexer(store, self.layout, self.settings, shard_count=self.shard_count, rng=rng)
        self._engine = SearchEngine(store, self.layout, self.settings, shard_count=self.shard_count)
        logger.debug("Opened index %s with %d counter shards", self.layout.index_path, self.shard_count)

    @property
    def index_path(self) -> str:
        return self.layout.index_path

    def _bind_log_context(self) -> None:
        bind_fields(index=self.layout.index_path)

    async def set(
        self,
        language: str,
        doc: DocumentReference,
        *,
        data: Mapping[str, Any] | None = None,
        batch: WriteBatch | None = None,
        index_mask: Iterable[str] | None = None,
        fields: Iterable[str] | None = None,
    ) -> None:
        """Index ``doc``.

        Args:
            language: Tokenizer language (``en``, ``ja``)
            doc: Reference stored in the index entries and returned by search
            data: Document fields; fetched from ``doc`` when omitted
            batch: Caller batch to add the writes to; the caller commits it
                when everything fits in one batch
            index_mask: Only index these string fields
            fields: Extra fields copied into the index entries for filtering
        """
        self._bind_log_context()
        await self._indexer.set(language, doc, data=data, batch=batch, index_mask=index_mask, fields=fields)

    async def delete(
        self,
        language: str,
        doc: DocumentReference,
        *,
        data: Mapping[str, Any] | None = None,
        batch: WriteBatch | None = None,
        index_mask: Iterable[str] | None = None,
    ) -> None:
        """Remove ``doc`` from the index; ``data`` must hold the indexed text."""
        self._bind_log_context()
        await self._indexer.delete(language, doc, data=data, batch=batch, index_mask=index_mask)

    async def search(
        self,
        language: str,
        query: str | SearchQuery,
        *,
        limit: int | None = None,
        cursor: Cursor | None = None,
    ) -> SearchResult:
        """Search the index with a query string or a parsed query."""
        self._bind_log_context()
        return await self._engine.search(language, query, limit=limit, cursor=cursor)
