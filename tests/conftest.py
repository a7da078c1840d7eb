"""
Shared pytest fixtures for keyspace tests.
"""

import pytest

from keyspace import Keyspace, MemoryStore


class PlainStore:
    """
    Store exposing point operations and range scans only.

    No batch primitive, no change feed, no close: exercises the
    capability-dependent code paths.
    """

    def __init__(self) -> None:
        self.inner = MemoryStore()

    async def get(self, key):
        return await self.inner.get(key)

    async def put(self, key, value):
        await self.inner.put(key, value)

    async def delete(self, key):
        await self.inner.delete(key)

    def iterator(self, **kwargs):
        return self.inner.iterator(**kwargs)


class FailingBatchStore(MemoryStore):
    """MemoryStore whose batch primitive always fails."""

    def __init__(self) -> None:
        super().__init__()
        self.batch_calls = 0

    async def batch(self, ops):
        self.batch_calls += 1
        raise RuntimeError("disk full")


class RecordingStore(MemoryStore):
    """MemoryStore that records every batch it receives."""

    def __init__(self) -> None:
        super().__init__()
        self.batches = []

    async def batch(self, ops):
        self.batches.append(list(ops))
        await super().batch(ops)


@pytest.fixture
def store():
    """Provide a fresh in-memory store."""
    return RecordingStore()


@pytest.fixture
def db(store):
    """Provide a top-level handle on the "root" namespace."""
    return Keyspace(store, "root")


@pytest.fixture
def users(store):
    """Provide the "users" namespace handle."""
    return Keyspace(store, "users")


@pytest.fixture
def by_email(users):
    """Provide the "users/by-email" sublevel handle."""
    return users.sublevel("by-email")


@pytest.fixture
def plain_store():
    return PlainStore()


@pytest.fixture
def failing_store():
    return FailingBatchStore()
