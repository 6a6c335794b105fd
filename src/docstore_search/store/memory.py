"""In-memory implementation of the backing store contract.

``MemoryStore`` keeps documents in a dict keyed by their slash-separated path.
It follows the semantics the engine relies on from a transactional document
store:

* batches are applied all-or-nothing and reject more than
  ``max_batch_writes`` operations,
* merge writes update top-level fields and resolve ``Increment`` and
  ``SERVER_TIMESTAMP`` transforms,
* queries filter, order (documents missing an ordered field are excluded,
  the document id breaks ties), resume with ``start_after`` and ``limit``.

Values are deep-copied on the way in and out so callers never share mutable
state with the store.
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
import functools
import logging
from typing import Any, Literal

from docstore_search.store.base import (
    ASCENDING,
    DESCENDING,
    DOCUMENT_ID,
    MAX_BATCH_WRITES,
    SERVER_TIMESTAMP,
    BatchLimitExceededError,
    DocumentExistsError,
    DocumentSnapshot,
    Increment,
    StoreError,
    WriteResult,
)


logger = logging.getLogger(__name__)

_MISSING = object()
_FILTER_OPS = frozenset({"==", "!=", "<", "<=", ">", ">=", "in", "not-in", "array-contains"})
_RANGE_OPS = frozenset({"<", "<=", ">", ">="})


def _split_path(path: str) -> list[str]:
    segments = [segment for segment in path.strip("/").split("/") if segment]
    if not segments:
        raise ValueError("Path must not be empty")
    return segments


class MemoryStore:
    """Dict-backed document store with Firestore-like batch and query semantics."""

    def __init__(self, *, max_batch_writes: int = MAX_BATCH_WRITES) -> None:
        self.max_batch_writes = max_batch_writes
        self.commit_sizes: list[int] = []
        self._documents: dict[str, dict[str, Any]] = {}

    def collection(self, collection_path: str) -> MemoryCollectionReference:
        segments = _split_path(collection_path)
        if len(segments) % 2 != 1:
            raise ValueError(f"Collection path must have an odd number of segments: {collection_path!r}")
        return MemoryCollectionReference(store=self, collection_path="/".join(segments))

    def document(self, document_path: str) -> MemoryDocumentReference:
        segments = _split_path(document_path)
        if len(segments) % 2 != 0:
            raise ValueError(f"Document path must have an even number of segments: {document_path!r}")
        return MemoryDocumentReference(self, "/".join(segments))

    def batch(self) -> MemoryWriteBatch:
        return MemoryWriteBatch(self)

    async def get_all(self, references: Sequence[MemoryDocumentReference]) -> list[DocumentSnapshot]:
        await asyncio.sleep(0)
        return [self._snapshot(reference) for reference in references]

    @property
    def document_paths(self) -> list[str]:
        """Paths of every stored document, sorted."""
        return sorted(self._documents)

    def _snapshot(self, reference: MemoryDocumentReference) -> DocumentSnapshot:
        data = self._documents.get(reference.path)
        return DocumentSnapshot(reference, copy.deepcopy(data) if data is not None else None)

    def _commit(self, writes: Sequence[_Write], *, record: bool = True) -> list[WriteResult]:
        for write in writes:
            if write.kind == "create" and write.reference.path in self._documents:
                raise DocumentExistsError(f"Document already exists: {write.reference.path}")

        now = datetime.now(timezone.utc)
        results: list[WriteResult] = []
        for write in writes:
            path = write.reference.path
            if write.kind == "delete":
                self._documents.pop(path, None)
            else:
                current = self._documents.get(path, {}) if write.merge else {}
                updated = dict(current)
                for key, value in write.data.items():
                    updated[key] = _resolve_value(value, current.get(key, _MISSING), now)
                self._documents[path] = updated
            results.append(WriteResult(path=path, update_time=now))

        if record:
            self.commit_sizes.append(len(writes))
        return results

    def _run_query(self, query: MemoryQuery) -> list[DocumentSnapshot]:
        prefix = query.collection_path + "/"
        candidates: list[tuple[str, dict[str, Any]]] = []
        for path, data in self._documents.items():
            if not path.startswith(prefix):
                continue
            doc_id = path[len(prefix) :]
            if "/" in doc_id:
                continue
            if all(_matches(doc_id, data, flt) for flt in query.filters):
                candidates.append((doc_id, data))

        orders = list(query.orders)
        candidates = [
            candidate
            for candidate in candidates
            if all(_field_value(candidate, name) is not _MISSING for name, _ in orders)
        ]
        if all(name != DOCUMENT_ID for name, _ in orders):
            orders.append((DOCUMENT_ID, orders[-1][1] if orders else ASCENDING))

        candidates.sort(key=functools.cmp_to_key(lambda left, right: _compare_documents(left, right, orders)))

        if query.cursor is not None:
            candidates = [candidate for candidate in candidates if _is_after(candidate, query.cursor, orders)]

        if query.limit_count is not None:
            candidates = candidates[: query.limit_count]

        return [
            DocumentSnapshot(MemoryDocumentReference(self, prefix + doc_id), copy.deepcopy(data))
            for doc_id, data in candidates
        ]


class MemoryDocumentReference:
    """Reference to one document in a ``MemoryStore``."""

    __slots__ = ("_path", "_store")

    def __init__(self, store: MemoryStore, path: str) -> None:
        self._store = store
        self._path = path

    @property
    def id(self) -> str:
        return self._path.rsplit("/", 1)[-1]

    @property
    def path(self) -> str:
        return self._path

    @property
    def parent(self) -> MemoryCollectionReference:
        return MemoryCollectionReference(store=self._store, collection_path=self._path.rsplit("/", 1)[0])

    def collection(self, collection_id: str) -> MemoryCollectionReference:
        return self._store.collection(f"{self._path}/{collection_id}")

    async def get(self) -> DocumentSnapshot:
        await asyncio.sleep(0)
        return self._store._snapshot(self)

    async def set(self, document_data: Mapping[str, Any], merge: bool = False) -> WriteResult:
        await asyncio.sleep(0)
        return self._store._commit([_Write("set", self, dict(document_data), merge)], record=False)[0]

    async def create(self, document_data: Mapping[str, Any]) -> WriteResult:
        await asyncio.sleep(0)
        return self._store._commit([_Write("create", self, dict(document_data))], record=False)[0]

    async def delete(self) -> WriteResult:
        await asyncio.sleep(0)
        return self._store._commit([_Write("delete", self)], record=False)[0]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MemoryDocumentReference):
            return NotImplemented
        return self._store is other._store and self._path == other._path

    def __hash__(self) -> int:
        return hash(self._path)

    def __repr__(self) -> str:
        return f"MemoryDocumentReference({self._path!r})"

    def __deepcopy__(self, memo: dict) -> MemoryDocumentReference:
        return self


@dataclass(frozen=True, slots=True)
class _Filter:
    field_path: str
    op: str
    value: Any


@dataclass(frozen=True, eq=False)
class MemoryQuery:
    """Immutable query over the direct children of one collection."""

    store: MemoryStore
    collection_path: str
    filters: tuple[_Filter, ...] = ()
    orders: tuple[tuple[str, str], ...] = ()
    cursor: Mapping[str, Any] | None = None
    limit_count: int | None = None

    def _derive(self, **changes: Any) -> MemoryQuery:
        state = {
            "store": self.store,
            "collection_path": self.collection_path,
            "filters": self.filters,
            "orders": self.orders,
            "cursor": self.cursor,
            "limit_count": self.limit_count,
        }
        state.update(changes)
        return MemoryQuery(**state)

    def where(self, field_path: str, op_string: str, value: Any) -> MemoryQuery:
        if op_string not in _FILTER_OPS:
            raise ValueError(f"Unsupported filter operator: {op_string!r}")
        if op_string in ("in", "not-in") and not isinstance(value, (list, tuple)):
            raise ValueError(f"Operator {op_string!r} requires a list value")
        return self._derive(filters=(*self.filters, _Filter(field_path, op_string, copy.deepcopy(value))))

    def order_by(self, field_path: str, direction: Literal["ASCENDING", "DESCENDING"] = ASCENDING) -> MemoryQuery:
        if direction not in (ASCENDING, DESCENDING):
            raise ValueError(f"Unsupported direction: {direction!r}")
        return self._derive(orders=(*self.orders, (field_path, direction)))

    def start_after(self, values: Mapping[str, Any]) -> MemoryQuery:
        return self._derive(cursor=dict(values))

    def limit(self, count: int) -> MemoryQuery:
        if count < 0:
            raise ValueError("Limit must not be negative")
        return self._derive(limit_count=count)

    async def get(self) -> list[DocumentSnapshot]:
        await asyncio.sleep(0)
        return self.store._run_query(self)


@dataclass(frozen=True, eq=False)
class MemoryCollectionReference(MemoryQuery):
    """A collection in a ``MemoryStore``; querying it returns its direct children."""

    @property
    def id(self) -> str:
        return self.collection_path.rsplit("/", 1)[-1]

    @property
    def path(self) -> str:
        return self.collection_path

    def document(self, document_id: str) -> MemoryDocumentReference:
        if not document_id or "/" in document_id:
            raise ValueError(f"Invalid document id: {document_id!r}")
        return MemoryDocumentReference(self.store, f"{self.collection_path}/{document_id}")


@dataclass(slots=True)
class _Write:
    kind: Literal["create", "set", "delete"]
    reference: MemoryDocumentReference
    data: dict[str, Any] = field(default_factory=dict)
    merge: bool = False


class MemoryWriteBatch:
    """Write batch applied atomically by ``commit``."""

    def __init__(self, store: MemoryStore) -> None:
        self._store = store
        self._writes: list[_Write] = []
        self._committed = False

    def create(self, reference: MemoryDocumentReference, document_data: Mapping[str, Any]) -> None:
        self._writes.append(_Write("create", reference, dict(document_data)))

    def set(
        self,
        reference: MemoryDocumentReference,
        document_data: Mapping[str, Any],
        merge: bool = False,
    ) -> None:
        self._writes.append(_Write("set", reference, dict(document_data), merge))

    def delete(self, reference: MemoryDocumentReference) -> None:
        self._writes.append(_Write("delete", reference))

    def __len__(self) -> int:
        return len(self._writes)

    async def commit(self) -> list[WriteResult]:
        if self._committed:
            raise StoreError("Batch already committed")
        self._committed = True
        if len(self._writes) > self._store.max_batch_writes:
            raise BatchLimitExceededError(
                f"Batch holds {len(self._writes)} writes; limit is {self._store.max_batch_writes}"
            )
        await asyncio.sleep(0)
        results = self._store._commit(self._writes)
        logger.debug("Committed batch with %d writes", len(results))
        return results


def _resolve_value(value: Any, existing: Any, now: datetime) -> Any:
    if isinstance(value, Increment):
        base = existing if _is_number(existing) else 0
        return base + value.amount
    if value is SERVER_TIMESTAMP:
        return now
    if isinstance(value, Mapping):
        return {key: _resolve_value(item, _MISSING, now) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_resolve_value(item, _MISSING, now) for item in value]
    return copy.deepcopy(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _type_rank(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 2
    if isinstance(value, datetime):
        return 3
    if isinstance(value, str):
        return 4
    if isinstance(value, (bytes, bytearray)):
        return 5
    if isinstance(value, MemoryDocumentReference):
        return 6
    if isinstance(value, (list, tuple)):
        return 7
    if isinstance(value, Mapping):
        return 8
    return 9


def _compare_values(left: Any, right: Any) -> int:
    left_rank, right_rank = _type_rank(left), _type_rank(right)
    if left_rank != right_rank:
        return (left_rank > right_rank) - (left_rank < right_rank)
    if left_rank == 6:
        left, right = left.path, right.path
    elif left_rank == 7:
        for left_item, right_item in zip(left, right):
            result = _compare_values(left_item, right_item)
            if result:
                return result
        return (len(left) > len(right)) - (len(left) < len(right))
    elif left_rank == 8:
        return _compare_values(sorted(left.items()), sorted(right.items()))
    elif left_rank in (0, 9):
        return 0
    return (left > right) - (left < right)


def _values_equal(left: Any, right: Any) -> bool:
    return _type_rank(left) == _type_rank(right) and _compare_values(left, right) == 0


def _field_value(candidate: tuple[str, Mapping[str, Any]], field_path: str) -> Any:
    doc_id, data = candidate
    if field_path == DOCUMENT_ID:
        return doc_id
    return data.get(field_path, _MISSING)


def _matches(doc_id: str, data: Mapping[str, Any], flt: _Filter) -> bool:
    value = _field_value((doc_id, data), flt.field_path)
    if value is _MISSING:
        return False
    if flt.op == "==":
        return _values_equal(value, flt.value)
    if flt.op == "!=":
        return not _values_equal(value, flt.value)
    if flt.op in _RANGE_OPS:
        if _type_rank(value) != _type_rank(flt.value):
            return False
        result = _compare_values(value, flt.value)
        return {"<": result < 0, "<=": result <= 0, ">": result > 0, ">=": result >= 0}[flt.op]
    if flt.op == "in":
        return any(_values_equal(value, candidate) for candidate in flt.value)
    if flt.op == "not-in":
        return not any(_values_equal(value, candidate) for candidate in flt.value)
    # array-contains
    return isinstance(value, list) and any(_values_equal(item, flt.value) for item in value)


def _compare_documents(
    left: tuple[str, Mapping[str, Any]],
    right: tuple[str, Mapping[str, Any]],
    orders: Sequence[tuple[str, str]],
) -> int:
    for field_path, direction in orders:
        result = _compare_values(_field_value(left, field_path), _field_value(right, field_path))
        if result:
            return -result if direction == DESCENDING else result
    return 0


def _is_after(
    candidate: tuple[str, Mapping[str, Any]],
    cursor: Mapping[str, Any],
    orders: Sequence[tuple[str, str]],
) -> bool:
    for field_path, direction in orders:
        if field_path not in cursor:
            return False
        result = _compare_values(_field_value(candidate, field_path), cursor[field_path])
        if direction == DESCENDING:
            result = -result
        if result:
            return result > 0
    return False
