"""Store paths of an index.

Everything lives under ``<index_path>/v1``::

    v1/count/<shard>                          total-document counter
    v1/words/<word>                           {related: [...]}
    v1/words/<word>/count/<shard>             per-word counter
    v1/words/<word>/docs/<doc>.<field>        entry per (word, document, field)
    v1/word_docs/<word>.<doc>                 entry per (word, document), searched
    v1/fields/<name>                          {type: ...}
"""

from __future__ import annotations

from array import array
from collections.abc import Iterable
import sys
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from docstore_search.store.base import CollectionReference, DocumentReference, DocumentStore


VERSION = "v1"

WORDS = "words"
WORD_DOCS = "word_docs"
DOCS = "docs"
FIELDS = "fields"

# Index entry keys
WORD_KEY = "__word"
FIELDS_KEY = "__fields"
POSITIONS_KEY = "__positions"
SCORE_KEY = "__score"
REF_KEY = "__ref"

RELATED_KEY = "related"
TYPE_KEY = "type"


def escape_id(value: str) -> str:
    """Make ``value`` usable as a single path segment."""
    return value.replace("%", "%25").replace("/", "%2F")


def pack_positions(positions: Iterable[int]) -> bytes:
    """Pack word positions as unsigned 32-bit little-endian integers."""
    packed = array("I", positions)
    if sys.byteorder == "big":
        packed.byteswap()
    return packed.tobytes()


def unpack_positions(data: bytes) -> list[int]:
    unpacked = array("I")
    unpacked.frombytes(data)
    if sys.byteorder == "big":
        unpacked.byteswap()
    return unpacked.tolist()


class IndexLayout:
    """Resolves the documents and collections of one index."""

    def __init__(self, store: DocumentStore, index_path: str) -> None:
        self.index_path = index_path.strip("/")
        self.root: DocumentReference = store.collection(self.index_path).document(VERSION)

    @property
    def words(self) -> CollectionReference:
        return self.root.collection(WORDS)

    @property
    def word_docs(self) -> CollectionReference:
        return self.root.collection(WORD_DOCS)

    @property
    def fields(self) -> CollectionReference:
        return self.root.collection(FIELDS)

    def word(self, word: str) -> DocumentReference:
        return self.words.document(escape_id(word))

    def word_field_entry(self, word: str, doc_id: str, field: str) -> DocumentReference:
        return self.word(word).collection(DOCS).document(f"{escape_id(doc_id)}.{escape_id(field)}")

    def word_doc_entry(self, word: str, doc_id: str) -> DocumentReference:
        return self.word_docs.document(f"{escape_id(word)}.{escape_id(doc_id)}")

    def field_type(self, name: str) -> DocumentReference:
        return self.fields.document(escape_id(name))
