"""
SortedContainer abstract base class for sorted key-value data structures.
"""

from abc import abstractmethod
from typing import Any

from keyspace.interfaces.range_iterable import RangeIterable


class SortedContainer(RangeIterable):
    """
    Abstract base class for byte-keyed sorted containers.

    Provides O(log N) operations for put, get, and delete.
    Inherits range iteration capabilities from RangeIterable.
    """

    @abstractmethod
    def put(self, key: bytes, value: Any) -> None:
        """
        Insert or update a key-value pair.

        Time complexity: O(log N)
        """
        pass

    @abstractmethod
    def get(self, key: bytes) -> Any | None:
        """
        Retrieve the value for a given key.

        Returns:
            The value if found, None otherwise.

        Time complexity: O(log N)
        """
        pass

    @abstractmethod
    def delete(self, key: bytes) -> bool:
        """
        Remove a key-value pair.

        Returns:
            True if the key was found and removed, False otherwise.

        Time complexity: O(log N)
        """
        pass

    @abstractmethod
    def has(self, key: bytes) -> bool:
        pass

    @abstractmethod
    def size(self) -> int:
        """Return the number of key-value pairs."""
        pass
