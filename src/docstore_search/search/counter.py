"""Sharded counters.

A counter is a set of shard documents under ``<ref>/count/<n>``. Writers add
to a random shard so concurrent indexers rarely touch the same document;
readers sum every shard. Reads and writes are not mutually atomic, so a read
may miss increments that are still being applied.
"""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from docstore_search.store.base import Increment


if TYPE_CHECKING:
    from docstore_search.search.batch import BatchedWriter
    from docstore_search.store.base import DocumentReference


logger = logging.getLogger(__name__)

COUNT_COLLECTION = "count"
COUNT_FIELD = "count"
DEFAULT_SHARD_COUNT = 3


class ShardedCounter:
    """Approximate counter spread over ``shard_count`` shard documents."""

    def __init__(
        self,
        ref: DocumentReference,
        shard_count: int = DEFAULT_SHARD_COUNT,
        rng: random.Random | None = None,
    ) -> None:
        if shard_count < 1:
            raise ValueError("shard_count must be at least 1")
        self.ref = ref
        self.shard_count = shard_count
        self._rng = rng or random.Random()

    def shard(self, shard_id: int) -> DocumentReference:
        return self.ref.collection(COUNT_COLLECTION).document(str(shard_id))

    async def increment(self, delta: int, writer: BatchedWriter | None = None) -> None:
        """Add ``delta`` to a random shard.

        With a ``writer`` the increment is queued and applied when the writer
        commits; otherwise it is written immediately.
        """
        if delta == 0:
            return
        shard_ref = self.shard(self._rng.randrange(self.shard_count))
        data = {COUNT_FIELD: Increment(delta)}
        if writer is not None:
            writer.set(shard_ref, data, merge=True)
            return
        await shard_ref.set(data, merge=True)

    async def read(self) -> int:
        """Return the sum of all shards; missing shards count as zero."""
        snapshots = await self.ref.collection(COUNT_COLLECTION).get()
        total = 0
        for snapshot in snapshots:
            value = snapshot.get(COUNT_FIELD, 0)
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                total += value
        return int(total)
