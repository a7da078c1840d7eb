"""
RangeIterable protocol for data structures that support range iteration.
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Iterator
from typing import Any


class RangeIterable(ABC):
    """
    Protocol for data structures that support iteration over a range of keys.

    Implementations must support:
    - Full iteration via __iter__
    - Bounded iteration in either direction via iterator(...)
    - Async iteration via __aiter__ and async_iterator(...)
    """

    @abstractmethod
    def __iter__(self) -> Iterator[tuple[bytes, Any]]:
        """Return an iterator over all key-value pairs in ascending order."""
        pass

    @abstractmethod
    def iterator(
        self,
        gt: bytes | None = None,
        gte: bytes | None = None,
        lt: bytes | None = None,
        lte: bytes | None = None,
        reverse: bool = False,
    ) -> Iterator[tuple[bytes, Any]]:
        """
        Return an iterator over key-value pairs in the specified range.

        Args:
            gt: Exclusive lower bound. Takes precedence over gte.
            gte: Inclusive lower bound.
            lt: Exclusive upper bound. Takes precedence over lte.
            lte: Inclusive upper bound.
            reverse: Iterate from the upper bound down.

        Returns:
            Iterator yielding (key, value) tuples.
        """
        pass

    @abstractmethod
    def __aiter__(self) -> AsyncIterator[tuple[bytes, Any]]:
        """Return an async iterator over all key-value pairs in ascending order."""
        pass

    @abstractmethod
    def async_iterator(
        self,
        gt: bytes | None = None,
        gte: bytes | None = None,
        lt: bytes | None = None,
        lte: bytes | None = None,
        reverse: bool = False,
    ) -> AsyncIterator[tuple[bytes, Any]]:
        """Async counterpart of iterator()."""
        pass
