"""Shared test fixtures and configuration."""

import os
import random

import pytest

from docstore_search.fulltext import FullTextSearch
from docstore_search.store.memory import MemoryStore


# Test environment overriding every configurable value
TEST_ENV = {
    "INDEX_SHARD_COUNT": "3",
    "RESERVED_FIELD_PREFIX": "__",
    "SEARCH_DEFAULT_LIMIT": "100",
    "SEARCH_MAX_LIMIT": "500",
    "BATCH_WRITE_LIMIT": "500",
    "LOG_LEVEL": "info",
    "LOG_JSON": "true",
    "SERVICE_NAME": "docstore-search-tests",
}


# Set environment variables immediately when conftest.py is loaded
for key, value in TEST_ENV.items():
    os.environ[key] = value


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Reset configuration environment variables before each test."""
    for key, value in TEST_ENV.items():
        monkeypatch.setenv(key, value)


@pytest.fixture
def store():
    """Empty in-memory document store."""
    return MemoryStore()


@pytest.fixture
def index(store):
    """Full-text index rooted at ``index`` with a seeded shard picker."""
    return FullTextSearch(store, "index", rng=random.Random(7))
