"""
MemoryStore - In-memory ordered store backed by a sorted container.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable

from keyspace.interfaces.capabilities import Capabilities
from keyspace.interfaces.sorted_container import SortedContainer
from keyspace.interfaces.store import Listener, Store, StoreOp
from keyspace.models.exceptions import StoreClosedError
from keyspace.models.hooks import HookRegistry
from keyspace.models.prefix import to_bytes
from keyspace.models.sortedcontainers import RedBlackTree

logger = logging.getLogger(__name__)


class MemoryStore(Store):
    """
    Byte-ordered key-value store held in memory.

    Supports:
    - O(log N) get, put, delete
    - Atomic batches (validated up front, applied under a write lock)
    - Snapshot range iteration in both directions
    - A change feed notifying subscribers after every committed write
    """

    capabilities = Capabilities(
        get=True,
        put=True,
        delete=True,
        batch=True,
        range_scan=True,
        live_scan=True,
        close=True,
    )

    def __init__(self, sorted_container: SortedContainer | None = None) -> None:
        """
        Initialize MemoryStore.

        Args:
            sorted_container: The backing sorted data structure.
        """
        self._container = sorted_container if sorted_container is not None else RedBlackTree()
        self._subscribers = HookRegistry()
        self._closed = False

        # Created on first write, inside the running loop
        self._write_lock: asyncio.Lock | None = None

    @property
    def is_closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise StoreClosedError("Store is closed")

    def _lock(self) -> asyncio.Lock:
        if self._write_lock is None:
            self._write_lock = asyncio.Lock()
        return self._write_lock

    async def get(self, key: bytes) -> bytes | None:
        self._check_open()
        return self._container.get(to_bytes(key))

    async def put(self, key: bytes, value: bytes) -> None:
        await self.batch([StoreOp("put", key, value)])

    async def delete(self, key: bytes) -> None:
        await self.batch([StoreOp("del", key)])

    async def batch(self, ops: list[StoreOp]) -> None:
        """
        Apply writes atomically.

        Every operation is validated before the first one is applied, so a
        malformed entry leaves the store untouched.

        Raises:
            ValueError: If an operation type is unknown.
            TypeError: If a key or put value is not bytes-like.
        """
        self._check_open()
        prepared = [self._prepare(op) for op in ops]

        async with self._lock():
            self._check_open()
            for op in prepared:
                if op.type == "put":
                    self._container.put(op.key, op.value)
                else:
                    self._container.delete(op.key)

        if prepared:
            self._notify(prepared)

    @staticmethod
    def _prepare(op: StoreOp) -> StoreOp:
        op = StoreOp(*op)
        if op.type == "put":
            return StoreOp("put", to_bytes(op.key), to_bytes(op.value))
        if op.type == "del":
            return StoreOp("del", to_bytes(op.key))
        raise ValueError(f"Unknown operation type: {op.type!r}")

    def iterator(
        self,
        gt: bytes | None = None,
        gte: bytes | None = None,
        lt: bytes | None = None,
        lte: bytes | None = None,
        reverse: bool = False,
        limit: int | None = None,
    ) -> AsyncIterator[tuple[bytes, bytes]]:
        """
        Iterate over a snapshot of the range taken when the iterator is created.
        """
        self._check_open()
        entries = []
        for entry in self._container.iterator(gt, gte, lt, lte, reverse):
            if limit is not None and len(entries) >= limit:
                break
            entries.append(entry)
        return _SnapshotIterator(entries)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change-feed listener.

        The listener receives the list of committed StoreOps after every
        successful write.

        Returns:
            Callable that removes the subscription.
        """
        return self._subscribers.add(listener)

    def _notify(self, ops: list[StoreOp]) -> None:
        for listener in self._subscribers:
            try:
                listener(list(ops))
            except Exception:
                logger.exception("Change feed listener failed")

    def size(self) -> int:
        return self._container.size()

    async def close(self) -> None:
        self._closed = True
        self._subscribers.clear()


class _SnapshotIterator(AsyncIterator[tuple[bytes, bytes]]):
    """Async iterator over a pre-collected list of entries."""

    def __init__(self, entries: list[tuple[bytes, bytes]]) -> None:
        self._entries = entries
        self._pos = 0

    def __aiter__(self) -> "_SnapshotIterator":
        return self

    async def __anext__(self) -> tuple[bytes, bytes]:
        if self._pos >= len(self._entries):
            raise StopAsyncIteration
        entry = self._entries[self._pos]
        self._pos += 1
        return entry
