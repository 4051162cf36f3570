"""Shared fixtures for SmallBiz BookKeeping tests."""

import pytest

from smallbiz.services.storage import MemoryStorage


@pytest.fixture
def storage():
    """Fresh in-memory storage."""
    return MemoryStorage()


@pytest.fixture
def fixed_clock():
    """A clock that never moves, so every id starts from the same millisecond."""
    return lambda: 1_700_000_000.0
