"""
Store protocol: the ordered key-value store the namespacing layer sits on.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable
from typing import NamedTuple


class StoreOp(NamedTuple):
    """An encoded write as handed to Store.batch()."""

    type: str  # "put" or "del"
    key: bytes
    value: bytes | None = None


Listener = Callable[[list[StoreOp]], None]


class Store(ABC):
    """
    Abstract byte-keyed, lexicographically ordered key-value store.

    Implementations must:
    - compare keys as unsigned byte strings;
    - apply batch() atomically (all operations or none);
    - iterate in ascending key order, or descending when reverse is set.

    The change feed (subscribe) and close() are optional; the namespacing
    layer records which of them a store provides in its Capabilities.
    """

    @abstractmethod
    async def get(self, key: bytes) -> bytes | None:
        """
        Retrieve the value stored at key.

        Returns:
            The value, or None if the key is absent. Stores may instead
            raise an error flagged as not-found.
        """
        pass

    @abstractmethod
    async def put(self, key: bytes, value: bytes) -> None:
        pass

    @abstractmethod
    async def delete(self, key: bytes) -> None:
        pass

    @abstractmethod
    async def batch(self, ops: list[StoreOp]) -> None:
        """
        Apply a list of writes atomically.

        Args:
            ops: Encoded put/del operations, applied in order.
        """
        pass

    @abstractmethod
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
        Iterate over (key, value) pairs inside the given bounds.

        Args:
            gt/gte: Exclusive/inclusive lower bound. gt wins if both are set.
            lt/lte: Exclusive/inclusive upper bound. lt wins if both are set.
            reverse: Iterate from the upper bound down.
            limit: Maximum number of pairs; None for no limit.

        Returns:
            AsyncIterator yielding (key, value) tuples.
        """
        pass
