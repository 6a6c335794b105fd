"""Backing document store contract.

The engine never talks to a concrete database. It needs a small, async,
Firestore-shaped surface: path-addressed documents, write batches with a hard
operation cap, merge writes with numeric increments, and collection queries
with equality/range/membership filters, ordering, ``start_after`` and
``limit``. The protocols below name exactly that surface; ``MemoryStore``
implements it for tests and local use.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal, Protocol, runtime_checkable


# Hard cap on operations per committed batch
MAX_BATCH_WRITES = 500

# Pseudo field naming the document id in filters, orderings and cursors
DOCUMENT_ID = "__name__"

ASCENDING = "ASCENDING"
DESCENDING = "DESCENDING"

Direction = Literal["ASCENDING", "DESCENDING"]
FilterOp = Literal["==", "!=", "<", "<=", ">", ">=", "in", "not-in", "array-contains"]


class StoreError(RuntimeError):
    """Base class for backing store failures."""


class BatchLimitExceededError(StoreError):
    """Raised when a batch holds more operations than the store accepts."""


class DocumentExistsError(StoreError):
    """Raised when ``create`` targets a document that already exists."""


@dataclass(frozen=True, slots=True)
class Increment:
    """Merge transform adding ``amount`` to the stored number (0 when absent)."""

    amount: int | float


class _ServerTimestamp:
    """Sentinel replaced by the commit time when a write is applied."""

    _instance: _ServerTimestamp | None = None

    def __new__(cls) -> _ServerTimestamp:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"

    def __deepcopy__(self, memo: dict) -> _ServerTimestamp:
        return self


SERVER_TIMESTAMP = _ServerTimestamp()


@dataclass(frozen=True, slots=True)
class WriteResult:
    """Outcome of one applied write."""

    path: str
    update_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True, slots=True)
class DocumentSnapshot:
    """Point-in-time read of a document; ``data`` is None when it does not exist."""

    reference: DocumentReference
    data: Mapping[str, Any] | None

    @property
    def id(self) -> str:
        return self.reference.id

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict[str, Any] | None:
        return dict(self.data) if self.data is not None else None

    def get(self, field_path: str, default: Any = None) -> Any:
        if field_path == DOCUMENT_ID:
            return self.id
        if self.data is None:
            return default
        return self.data.get(field_path, default)


@runtime_checkable
class Query(Protocol):
    """Immutable query builder over one collection."""

    def where(self, field_path: str, op_string: FilterOp, value: Any) -> Query:  # pragma: no cover - interface definition
        ...

    def order_by(self, field_path: str, direction: Direction = ASCENDING) -> Query:  # pragma: no cover
        ...

    def start_after(self, values: Mapping[str, Any]) -> Query:  # pragma: no cover - interface definition
        ...

    def limit(self, count: int) -> Query:  # pragma: no cover - interface definition
        ...

    async def get(self) -> list[DocumentSnapshot]:  # pragma: no cover - interface definition
        ...


@runtime_checkable
class CollectionReference(Query, Protocol):
    """A collection; also the unfiltered query over its documents."""

    @property
    def id(self) -> str:  # pragma: no cover - interface definition
        ...

    @property
    def path(self) -> str:  # pragma: no cover - interface definition
        ...

    def document(self, document_id: str) -> DocumentReference:  # pragma: no cover - interface definition
        ...


@runtime_checkable
class DocumentReference(Protocol):
    """Address of one document."""

    @property
    def id(self) -> str:  # pragma: no cover - interface definition
        ...

    @property
    def path(self) -> str:  # pragma: no cover - interface definition
        ...

    def collection(self, collection_id: str) -> CollectionReference:  # pragma: no cover - interface definition
        ...

    async def get(self) -> DocumentSnapshot:  # pragma: no cover - interface definition
        ...

    async def set(self, document_data: Mapping[str, Any], merge: bool = False) -> WriteResult:  # pragma: no cover
        ...

    async def delete(self) -> WriteResult:  # pragma: no cover - interface definition
        ...


@runtime_checkable
class WriteBatch(Protocol):
    """Group of writes applied atomically by ``commit``."""

    def create(self, reference: DocumentReference, document_data: Mapping[str, Any]) -> None:  # pragma: no cover
        ...

    def set(
        self,
        reference: DocumentReference,
        document_data: Mapping[str, Any],
        merge: bool = False,
    ) -> None:  # pragma: no cover - interface definition
        ...

    def delete(self, reference: DocumentReference) -> None:  # pragma: no cover - interface definition
        ...

    def __len__(self) -> int:  # pragma: no cover - interface definition
        ...

    async def commit(self) -> list[WriteResult]:  # pragma: no cover - interface definition
        ...


@runtime_checkable
class DocumentStore(Protocol):
    """Entry point of a backing store."""

    def collection(self, collection_path: str) -> CollectionReference:  # pragma: no cover - interface definition
        ...

    def document(self, document_path: str) -> DocumentReference:  # pragma: no cover - interface definition
        ...

    def batch(self) -> WriteBatch:  # pragma: no cover - interface definition
        ...

    async def get_all(self, references: Sequence[DocumentReference]) -> list[DocumentSnapshot]:  # pragma: no cover
        ...
