"""Write batching across the store's per-commit operation limit."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass, field
import logging
from typing import TYPE_CHECKING, Any, Literal

from docstore_search.errors import AlreadyCommittedError
from docstore_search.store.base import MAX_BATCH_WRITES


if TYPE_CHECKING:
    from docstore_search.store.base import DocumentReference, DocumentStore, WriteBatch, WriteResult


logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _PendingWrite:
    kind: Literal["create", "set", "delete"]
    reference: DocumentReference
    data: Mapping[str, Any] = field(default_factory=dict)
    merge: bool = False

    def apply(self, batch: WriteBatch) -> None:
        if self.kind == "create":
            batch.create(self.reference, self.data)
        elif self.kind == "set":
            batch.set(self.reference, self.data, merge=self.merge)
        else:
            batch.delete(self.reference)


class BatchedWriter:
    """Collects writes and commits them in groups of at most ``max_writes``.

    Only the latest write per document path is kept. When the caller passes
    its own ``batch`` and every write fits in one group, the writes are added
    to that batch and left for the caller to commit. Otherwise each group is
    committed in a batch of its own, concurrently.
    """

    def __init__(
        self,
        store: DocumentStore,
        *,
        batch: WriteBatch | None = None,
        max_writes: int = MAX_BATCH_WRITES,
    ) -> None:
        if max_writes < 1:
            raise ValueError("max_writes must be at least 1")
        self._store = store
        self._external_batch = batch
        self._max_writes = max_writes
        self._pending: dict[str, _PendingWrite] = {}
        self._committed = False

    def create(self, reference: DocumentReference, data: Mapping[str, Any]) -> BatchedWriter:
        self._pending[reference.path] = _PendingWrite("create", reference, data)
        return self

    def set(self, reference: DocumentReference, data: Mapping[str, Any], *, merge: bool = False) -> BatchedWriter:
        self._pending[reference.path] = _PendingWrite("set", reference, data, merge)
        return self

    def delete(self, reference: DocumentReference) -> BatchedWriter:
        self._pending[reference.path] = _PendingWrite("delete", reference)
        return self

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def committed(self) -> bool:
        return self._committed

    async def commit(self) -> list[WriteResult]:
        """Commit every pending write.

        Returns:
            Write results of the batches committed here, in submission order.
            Empty when everything was folded into the caller's batch.

        Raises:
            AlreadyCommittedError: If called a second time
        """
        if self._committed:
            raise AlreadyCommittedError("BatchedWriter has already been committed")
        self._committed = True

        writes = list(self._pending.values())
        groups = [writes[start : start + self._max_writes] for start in range(0, len(writes), self._max_writes)]

        if self._external_batch is not None and len(groups) <= 1:
            for write in writes:
                write.apply(self._external_batch)
            logger.debug("Folded %d writes into caller batch", len(writes))
            return []

        batches = []
        for group in groups:
            batch = self._store.batch()
            for write in group:
                write.apply(batch)
            batches.append(batch)

        if len(batches) > 1:
            logger.debug("Committing %d writes in %d batches", len(writes), len(batches))
        results = await asyncio.gather(*(batch.commit() for batch in batches))
        return [result for batch_results in results for result in batch_results]
