"""Unit tests for indexing and removing documents."""

import random

import pytest

from docstore_search.config import Settings
from docstore_search.errors import DocumentNotFoundError, EmptyDocumentError, UnsupportedFieldTypeError
from docstore_search.fulltext import FullTextSearch
from docstore_search.search.counter import ShardedCounter
from docstore_search.search.layout import unpack_positions


pytestmark = pytest.mark.unit


async def _count(index, word=None):
    ref = index.layout.root if word is None else index.layout.word(word)
    return await ShardedCounter(ref, index.shard_count).read()


@pytest.mark.asyncio
async def test_set_then_search_then_delete(store, index):
    doc = store.document("posts/p1")
    data = {"title": "search engines", "body": "full text search"}

    await index.set("en", doc, data=data)
    result = await index.search("en", "search")

    assert result.hits == [doc]
    assert result.total == 1
    assert result.cursor is None

    await index.delete("en", doc, data=data)
    result = await index.search("en", "search")

    assert result.hits == []
    assert result.total == 0
    assert await _count(index) == 0
    assert await _count(index, "search") == 0


@pytest.mark.asyncio
async def test_index_entries_layout(store, index):
    doc = store.document("posts/p1")
    await index.set("en", doc, data={"title": "Dogs chase dogs", "views": 10})

    snapshot = await index.layout.word_field_entry("dog", "p1", "title").get()
    copy = await index.layout.word_doc_entry("dog", "p1").get()

    assert snapshot.exists
    assert snapshot.get("__word") == "dog"
    assert snapshot.get("__fields") == ["title"]
    assert unpack_positions(snapshot.get("__positions")) == [0, 2]
    assert snapshot.get("__ref") == doc
    # tf = 2 of 3 words; the word is in every document so idf falls back to 1
    assert snapshot.get("__score") == pytest.approx(2 / 3)
    assert copy.to_dict() == snapshot.to_dict()
    assert not (await index.layout.word("views").get()).exists


@pytest.mark.asyncio
async def test_set_fetches_document_when_data_is_omitted(store, index):
    doc = store.document("posts/p1")
    await doc.set({"title": "welsh corgi"})

    await index.set("en", doc)

    assert (await index.search("en", "corgi")).hits == [doc]


@pytest.mark.asyncio
async def test_set_missing_document_raises(store, index):
    with pytest.raises(DocumentNotFoundError) as exc_info:
        await index.set("en", store.document("posts/missing"))

    assert exc_info.value.path == "posts/missing"


@pytest.mark.asyncio
async def test_set_empty_document_raises(store, index):
    doc = store.document("posts/empty")
    await doc.set({})

    with pytest.raises(EmptyDocumentError):
        await index.set("en", doc)
    with pytest.raises(EmptyDocumentError):
        await index.delete("en", doc, data={})


@pytest.mark.asyncio
async def test_delete_missing_document_raises(store, index):
    with pytest.raises(DocumentNotFoundError):
        await index.delete("en", store.document("posts/missing"))


@pytest.mark.asyncio
async def test_counters_count_new_pairings_once(store, index):
    doc = store.document("posts/p1")
    data = {"title": "search search", "body": "search"}

    await index.set("en", doc, data=data)
    await index.set("en", doc, data=data)

    assert await _count(index) == 1
    assert await _count(index, "search") == 1

    await index.set("en", store.document("posts/p2"), data={"body": "search"})

    assert await _count(index) == 2
    assert await _count(index, "search") == 2


@pytest.mark.asyncio
async def test_related_surface_forms_accumulate(store, index):
    await index.set("en", store.document("posts/p1"), data={"body": "Running runs"})
    await index.set("en", store.document("posts/p2"), data={"body": "run running"})

    word = await index.layout.word("run").get()

    # Each text contributes the first spelling it uses for the word
    assert word.get("related") == ["Running", "run"]


@pytest.mark.asyncio
async def test_index_mask_and_reserved_fields(store, index):
    doc = store.document("posts/p1")
    data = {"title": "alpha", "body": "beta", "__secret": "gamma", "count": 3}

    await index.set("en", doc, data=data, index_mask=["title", "__secret"])

    assert (await index.search("en", "alpha")).hits == [doc]
    assert (await index.search("en", "beta")).hits == []
    assert (await index.search("en", "gamma")).hits == []


@pytest.mark.asyncio
async def test_unsupported_extra_field_writes_nothing(store, index):
    doc = store.document("posts/p1")

    with pytest.raises(UnsupportedFieldTypeError):
        await index.set("en", doc, data={"title": "alpha", "meta": {"a": 1}}, fields=["meta"])

    assert store.document_paths == []


@pytest.mark.asyncio
async def test_extra_fields_record_types(store, index):
    doc = store.document("posts/p1")
    data = {"title": "alpha", "label": "x", "tags": ["b", "a"], "views": 3}

    await index.set("en", doc, data=data, fields=["label", "tags", "views", "missing"])

    types = await store.get_all([index.layout.field_type(name) for name in ["label", "tags", "views", "missing"]])
    entry = await index.layout.word_doc_entry("alpha", "p1").get()
    assert [snapshot.get("type") for snapshot in types] == ["string", "array", "number", None]
    assert entry.get("tags") == ["a", "b"]
    assert entry.get("views") == 3


@pytest.mark.asyncio
async def test_caller_batch_is_left_uncommitted(store, index):
    doc = store.document("posts/p1")
    outer = store.batch()

    await index.set("en", doc, data={"title": "alpha"}, batch=outer)

    assert store.commit_sizes == []
    assert (await index.search("en", "alpha")).hits == []

    await outer.commit()

    assert (await index.search("en", "alpha")).hits == [doc]


@pytest.mark.asyncio
async def test_large_document_is_committed_in_several_batches(store):
    index = FullTextSearch(store, "index", settings=Settings(batch_write_limit=50), rng=random.Random(1))
    words = [f"k{a}{b}" for a in "bcdfg" for b in "hjklmn"]
    doc = store.document("posts/big")

    await index.set("en", doc, data={"body": " ".join(words)})

    assert len(store.commit_sizes) >= 3
    assert all(size <= 50 for size in store.commit_sizes)
    assert (await index.search("en", words[-1])).hits == [doc]


@pytest.mark.asyncio
async def test_delete_leaves_word_entries(store, index):
    doc = store.document("posts/p1")
    data = {"title": "alpha"}
    await index.set("en", doc, data=data)

    await index.delete("en", doc, data=data)

    assert (await index.layout.word("alpha").get()).get("related") == ["alpha"]
    assert not (await index.layout.word_doc_entry("alpha", "p1").get()).exists
    assert not (await index.layout.word_field_entry("alpha", "p1", "title").get()).exists


def test_shard_count_defaults_to_settings(store):
    assert FullTextSearch(store, "index").shard_count == 3
    assert FullTextSearch(store, "index", settings=Settings(index_shard_count=5)).shard_count == 5
    assert FullTextSearch(store, "index", shard_count=1).shard_count == 1
    with pytest.raises(ValueError):
        FullTextSearch(store, "index", shard_count=0)
