"""Unit tests for sharded counters."""

import random

import pytest

from docstore_search.search.batch import BatchedWriter
from docstore_search.search.counter import ShardedCounter


pytestmark = pytest.mark.unit


def _shard_ids(store, counter_path):
    prefix = f"{counter_path}/count/"
    return {path[len(prefix) :] for path in store.document_paths if path.startswith(prefix)}


@pytest.mark.asyncio
async def test_increment_and_read(store):
    counter = ShardedCounter(store.document("index/v1"), shard_count=3, rng=random.Random(1))

    for _ in range(5):
        await counter.increment(1)
    await counter.increment(-2)

    assert await counter.read() == 3
    assert _shard_ids(store, "index/v1") <= {"0", "1", "2"}


@pytest.mark.asyncio
async def test_increments_spread_over_shards(store):
    counter = ShardedCounter(store.document("index/v1"), shard_count=3, rng=random.Random(0))

    for _ in range(30):
        await counter.increment(1)

    assert len(_shard_ids(store, "index/v1")) > 1
    assert await counter.read() == 30


@pytest.mark.asyncio
async def test_missing_counter_reads_zero(store):
    counter = ShardedCounter(store.document("index/v1/words/absent"))

    assert await counter.read() == 0


@pytest.mark.asyncio
async def test_zero_increment_writes_nothing(store):
    counter = ShardedCounter(store.document("index/v1"))

    await counter.increment(0)

    assert store.document_paths == []


@pytest.mark.asyncio
async def test_increment_through_writer_waits_for_commit(store):
    counter = ShardedCounter(store.document("index/v1"), rng=random.Random(3))
    writer = BatchedWriter(store)

    await counter.increment(4, writer)

    assert await counter.read() == 0
    await writer.commit()
    assert await counter.read() == 4
    assert store.commit_sizes == [1]


@pytest.mark.asyncio
async def test_counter_may_go_negative(store):
    counter = ShardedCounter(store.document("index/v1"), shard_count=1)

    await counter.increment(-1)

    assert await counter.read() == -1


def test_shard_count_must_be_positive(store):
    with pytest.raises(ValueError):
        ShardedCounter(store.document("index/v1"), shard_count=0)
