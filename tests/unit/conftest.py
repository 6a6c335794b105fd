"""Conftest for unit tests - mark everything collected here as a unit test."""

import pytest


def pytest_collection_modifyitems(config, items):
    """Add the ``unit`` marker to every test under tests/unit."""
    for item in items:
        if "unit" in item.path.parts:
            item.add_marker(pytest.mark.unit)
