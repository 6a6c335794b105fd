"""Adds documents to and removes them from the inverted index."""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
import logging
import random
from typing import TYPE_CHECKING, Any

from docstore_search.errors import DocumentNotFoundError, EmptyDocumentError
from docstore_search.observability.metrics import DOCUMENT_WRITE_COUNT, DOCUMENT_WRITE_TOKEN_COUNT
from docstore_search.observability.tracing import create_span
from docstore_search.search.batch import BatchedWriter
from docstore_search.search.counter import ShardedCounter
from docstore_search.search.fields import project_fields
from docstore_search.search.layout import (
    FIELDS_KEY,
    POSITIONS_KEY,
    REF_KEY,
    RELATED_KEY,
    SCORE_KEY,
    TYPE_KEY,
    WORD_KEY,
    IndexLayout,
    pack_positions,
)
from docstore_search.search.stats import calc_score
from docstore_search.search.tokenizer import Token, tokenize


if TYPE_CHECKING:
    from docstore_search.config import Settings
    from docstore_search.store.base import DocumentReference, DocumentStore, WriteBatch


logger = logging.getLogger(__name__)


class Indexer:
    """Writes index entries, word entries and counters for one index."""

    def __init__(
        self,
        store: DocumentStore,
        layout: IndexLayout,
        settings: Settings,
        *,
        shard_count: int,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._layout = layout
        self._settings = settings
        self._shard_count = shard_count
        self._rng = rng or random.Random()

    def _counter(self, ref: DocumentReference) -> ShardedCounter:
        return ShardedCounter(ref, self._shard_count, rng=self._rng)

    def _writer(self, batch: WriteBatch | None) -> BatchedWriter:
        return BatchedWriter(self._store, batch=batch, max_writes=self._settings.batch_write_limit)

    async def _resolve_data(self, doc: DocumentReference, data: Mapping[str, Any] | None) -> Mapping[str, Any]:
        if data is None:
            snapshot = await doc.get()
            if not snapshot.exists:
                raise DocumentNotFoundError(doc.path)
            data = snapshot.to_dict() or {}
        if not data:
            raise EmptyDocumentError(doc.path)
        return data

    def _target_fields(self, data: Mapping[str, Any], index_mask: Iterable[str] | None) -> list[str]:
        allowed = set(index_mask) if index_mask is not None else None
        prefix = self._settings.reserved_field_prefix
        return [
            name
            for name, value in data.items()
            if isinstance(value, str)
            and not name.startswith(prefix)
            and (allowed is None or name in allowed)
        ]

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
        """Index the string fields of ``doc``.

        Scores use corpus counts that already include this document, so a
        word's first occurrence is scored as if it had been counted.

        Raises:
            DocumentNotFoundError: If ``data`` is omitted and ``doc`` does not exist
            EmptyDocumentError: If the document has no fields
            UnsupportedFieldTypeError: If a field named in ``fields`` cannot be filtered on
            UnsupportedLanguageError: If ``language`` has no tokenizer
        """
        layout = self._layout
        attributes = {"index": layout.index_path, "doc": doc.path, "lang": language}
        with create_span("fulltext.set", attributes=attributes) as span:
            source = await self._resolve_data(doc, data)
            target_fields = self._target_fields(source, index_mask)
            projection = project_fields(source, fields)
            tokens_by_field = {name: tokenize(language, source[name]) for name in target_fields}

            writer = self._writer(batch)
            total_docs = await self._counter(layout.root).read()

            # Discovery: which (word, field) pairings does this document add?
            pairings = [
                (word, field_name)
                for field_name, tokens in tokens_by_field.items()
                for word in _distinct_words(tokens)
            ]
            existing = await self._store.get_all(
                [layout.word_field_entry(word, doc.id, field_name) for word, field_name in pairings]
            )
            new_words = dict.fromkeys(word for (word, _), snapshot in zip(pairings, existing) if not snapshot.exists)
            new_doc = 1 if new_words else 0

            surfaces: dict[str, list[str]] = {}
            for tokens in tokens_by_field.values():
                for token in tokens:
                    if not token.normalized_word:
                        continue
                    forms = surfaces.setdefault(token.normalized_word, [])
                    if token.word not in forms:
                        forms.append(token.word)
            words = list(surfaces)
            word_snapshots = await self._store.get_all([layout.word(word) for word in words])
            word_counts = await asyncio.gather(*(self._counter(layout.word(word)).read() for word in words))
            doc_counts = dict(zip(words, word_counts))

            for word, snapshot in zip(words, word_snapshots):
                related = list(snapshot.get(RELATED_KEY) or []) if snapshot.exists else []
                related.extend(form for form in surfaces[word] if form not in related)
                writer.set(layout.word(word), {RELATED_KEY: related}, merge=True)

            extra = {name: value for name, (_, value) in projection.items()}
            for name, (kind, _) in projection.items():
                writer.set(layout.field_type(name), {TYPE_KEY: kind.value})

            corpus_size = total_docs + new_doc
            entries_written = 0
            token_count = 0
            for field_name, tokens in tokens_by_field.items():
                token_count += len(tokens)
                for token in _distinct_tokens(tokens):
                    word = token.normalized_word
                    entry = {
                        WORD_KEY: word,
                        FIELDS_KEY: list(target_fields),
                        POSITIONS_KEY: pack_positions(token.positions),
                        SCORE_KEY: calc_score(
                            len(token.positions),
                            len(tokens),
                            doc_counts[word] + (1 if word in new_words else 0),
                            corpus_size,
                        ),
                        REF_KEY: doc,
                        **extra,
                    }
                    writer.set(layout.word_field_entry(word, doc.id, field_name), entry)
                    writer.set(layout.word_doc_entry(word, doc.id), entry)
                    entries_written += 1

            for word in new_words:
                await self._counter(layout.word(word)).increment(1, writer)
            await self._counter(layout.root).increment(new_doc, writer)
            await writer.commit()

            span.set_attribute("fulltext.entries_written", entries_written)
            span.set_attribute("fulltext.new_words", len(new_words))
            DOCUMENT_WRITE_COUNT.labels(index=layout.index_path, lang=language).inc(entries_written)
            DOCUMENT_WRITE_TOKEN_COUNT.labels(index=layout.index_path, lang=language).inc(token_count)
            logger.debug(
                "Indexed %s: %d fields, %d entries, %d new words",
                doc.path,
                len(target_fields),
                entries_written,
                len(new_words),
            )

    async def delete(
        self,
        language: str,
        doc: DocumentReference,
        *,
        data: Mapping[str, Any] | None = None,
        batch: WriteBatch | None = None,
        index_mask: Iterable[str] | None = None,
    ) -> None:
        """Remove the index entries of ``doc`` and decrement the counters.

        Scores of other documents are left as they are.

        Raises:
            DocumentNotFoundError: If ``data`` is omitted and ``doc`` does not exist
            EmptyDocumentError: If the document has no fields
            UnsupportedLanguageError: If ``language`` has no tokenizer
        """
        layout = self._layout
        attributes = {"index": layout.index_path, "doc": doc.path, "lang": language}
        with create_span("fulltext.delete", attributes=attributes) as span:
            source = await self._resolve_data(doc, data)
            writer = self._writer(batch)

            removed_words: dict[str, None] = {}
            for field_name in self._target_fields(source, index_mask):
                for word in _distinct_words(tokenize(language, source[field_name])):
                    writer.delete(layout.word_field_entry(word, doc.id, field_name))
                    writer.delete(layout.word_doc_entry(word, doc.id))
                    removed_words.setdefault(word)

            for word in removed_words:
                await self._counter(layout.word(word)).increment(-1, writer)
            await self._counter(layout.root).increment(-1 if removed_words else 0, writer)
            await writer.commit()

            span.set_attribute("fulltext.removed_words", len(removed_words))
            logger.debug("Removed %s from index: %d words", doc.path, len(removed_words))


def _distinct_tokens(tokens: Iterable[Token]) -> list[Token]:
    seen: dict[str, Token] = {}
    for token in tokens:
        if token.normalized_word and token.normalized_word not in seen:
            seen[token.normalized_word] = token
    return list(seen.values())


def _distinct_words(tokens: Iterable[Token]) -> list[str]:
    return [token.normalized_word for token in _distinct_tokens(tokens)]
