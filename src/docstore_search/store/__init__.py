"""Backing document store contract and the in-memory implementation."""

from docstore_search.store.base import (
    ASCENDING,
    DESCENDING,
    DOCUMENT_ID,
    MAX_BATCH_WRITES,
    SERVER_TIMESTAMP,
    BatchLimitExceededError,
    CollectionReference,
    DocumentExistsError,
    DocumentReference,
    DocumentSnapshot,
    DocumentStore,
    Increment,
    Query,
    StoreError,
    WriteBatch,
    WriteResult,
)
from docstore_search.store.memory import MemoryStore


__all__ = [
    "ASCENDING",
    "DESCENDING",
    "DOCUMENT_ID",
    "MAX_BATCH_WRITES",
    "SERVER_TIMESTAMP",
    "BatchLimitExceededError",
    "CollectionReference",
    "DocumentExistsError",
    "DocumentReference",
    "DocumentSnapshot",
    "DocumentStore",
    "Increment",
    "MemoryStore",
    "Query",
    "StoreError",
    "WriteBatch",
    "WriteResult",
]
