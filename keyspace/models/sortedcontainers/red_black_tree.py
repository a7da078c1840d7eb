"""
Red-Black Tree implementation for byte-keyed sorted storage.

Keys are compared as byte strings, which is the order the namespacing
layer relies on.
"""

from collections.abc import AsyncIterator, Iterator
from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from keyspace.interfaces.sorted_container import SortedContainer


class Color(IntEnum):
    """Node color for Red-Black Tree."""

    RED = 0
    BLACK = 1


@dataclass
class Node:
    """Node in the Red-Black Tree."""

    key: bytes
    value: Any
    color: Color = Color.RED
    left: "Node | None" = None
    right: "Node | None" = None
    parent: "Node | None" = None


def _is_black(node: Node | None) -> bool:
    return node is None or node.color == Color.BLACK


class RedBlackTree(SortedContainer):
    """
    Red-Black Tree implementation of SortedContainer.

    Properties maintained:
    1. Every node is either red or black
    2. Root is always black
    3. Red nodes cannot have red children
    4. Every path from root to leaf has same number of black nodes
    """

    def __init__(self) -> None:
        self._root: Node | None = None
        self._size: int = 0

    def put(self, key: bytes, value: Any) -> None:
        """Insert or update a key-value pair. O(log N)"""
        parent = None
        current = self._root

        while current is not None:
            parent = current
            if key < current.key:
                current = current.left
            elif key > current.key:
                current = current.right
            else:
                current.value = value
                return

        node = Node(key=key, value=value, parent=parent)
        if parent is None:
            self._root = node
        elif key < parent.key:
            parent.left = node
        else:
            parent.right = node

        self._size += 1
        self._fix_insert(node)

    def get(self, key: bytes) -> Any | None:
        """Retrieve value by key. O(log N)"""
        node = self._find_node(key)
        return node.value if node else None

    def delete(self, key: bytes) -> bool:
        """Remove a key-value pair. O(log N)"""
        node = self._find_node(key)
        if node is None:
            return False

        self._delete_node(node)
        self._size -= 1
        return True

    def has(self, key: bytes) -> bool:
        return self._find_node(key) is not None

    def size(self) -> int:
        return self._size

    def __len__(self) -> int:
        return self._size

    def __iter__(self) -> Iterator[tuple[bytes, Any]]:
        return self.iterator()

    def iterator(
        self,
        gt: bytes | None = None,
        gte: bytes | None = None,
        lt: bytes | None = None,
        lte: bytes | None = None,
        reverse: bool = False,
    ) -> Iterator[tuple[bytes, Any]]:
        return _RangeIterator(self._root, gt, gte, lt, lte, reverse)

    def __aiter__(self) -> AsyncIterator[tuple[bytes, Any]]:
        return self.async_iterator()

    def async_iterator(
        self,
        gt: bytes | None = None,
        gte: bytes | None = None,
        lt: bytes | None = None,
        lte: bytes | None = None,
        reverse: bool = False,
    ) -> AsyncIterator[tuple[bytes, Any]]:
        return _AsyncRangeIterator(self.iterator(gt, gte, lt, lte, reverse))

    def _find_node(self, key: bytes) -> Node | None:
        current = self._root
        while current is not None:
            if key < current.key:
                current = current.left
            elif key > current.key:
                current = current.right
            else:
                return current
        return None

    def _fix_insert(self, node: Node) -> None:
        """Fix Red-Black Tree properties after insert."""
        while node.parent is not None and node.parent.color == Color.RED:
            parent = node.parent
            # A red parent is never the root, so the grandparent exists
            grandparent = parent.parent
            on_left = parent is grandparent.left
            uncle = grandparent.right if on_left else grandparent.left

            if uncle is not None and uncle.color == Color.RED:
                # Case 1: recolor and continue from the grandparent
                parent.color = Color.BLACK
                uncle.color = Color.BLACK
                grandparent.color = Color.RED
                node = grandparent
                continue

            if node is (parent.right if on_left else parent.left):
                # Case 2: inner child, rotate it to the outside
                node = parent
                if on_left:
                    self._rotate_left(node)
                else:
                    self._rotate_right(node)
                parent = node.parent

            # Case 3: outer child
            parent.color = Color.BLACK
            grandparent.color = Color.RED
            if on_left:
                self._rotate_right(grandparent)
            else:
                self._rotate_left(grandparent)

        self._root.color = Color.BLACK

    def _rotate_left(self, node: Node) -> None:
        right_child = node.right
        node.right = right_child.left
        if right_child.left:
            right_child.left.parent = node

        right_child.parent = node.parent
        if node.parent is None:
            self._root = right_child
        elif node is node.parent.left:
            node.parent.left = right_child
        else:
            node.parent.right = right_child

        right_child.left = node
        node.parent = right_child

    def _rotate_right(self, node: Node) -> None:
        left_child = node.left
        node.left = left_child.right
        if left_child.right:
            left_child.right.parent = node

        left_child.parent = node.parent
        if node.parent is None:
            self._root = left_child
        elif node is node.parent.right:
            node.parent.right = left_child
        else:
            node.parent.left = left_child

        left_child.right = node
        node.parent = left_child

    def _delete_node(self, node: Node) -> None:
        """Unlink a node, rebalancing first if it leaves a black hole."""
        if node.left is not None and node.right is not None:
            successor = node.right
            while successor.left is not None:
                successor = successor.left
            node.key, node.value = successor.key, successor.value
            node = successor

        # At most one child from here on
        child = node.left if node.left is not None else node.right

        if node.color == Color.BLACK:
            if child is not None:
                # A lone child of a black node is red
                child.color = Color.BLACK
            else:
                self._fix_delete(node)

        self._replace_node(node, child)

    def _replace_node(self, node: Node, child: Node | None) -> None:
        if node.parent is None:
            self._root = child
        elif node is node.parent.left:
            node.parent.left = child
        else:
            node.parent.right = child

        if child is not None:
            child.parent = node.parent

    def _fix_delete(self, node: Node) -> None:
        """
        Restore black heights around a black leaf that is about to be removed.

        Runs while the leaf is still linked, so it can stand in for the
        missing (None) child during rebalancing.
        """
        while node is not self._root and node.color == Color.BLACK:
            parent = node.parent
            on_left = node is parent.left
            sibling = parent.right if on_left else parent.left

            if sibling.color == Color.RED:
                sibling.color = Color.BLACK
                parent.color = Color.RED
                if on_left:
                    self._rotate_left(parent)
                else:
                    self._rotate_right(parent)
                sibling = parent.right if on_left else parent.left

            near = sibling.left if on_left else sibling.right
            far = sibling.right if on_left else sibling.left

            if _is_black(near) and _is_black(far):
                sibling.color = Color.RED
                node = parent
                continue

            if _is_black(far):
                near.color = Color.BLACK
                sibling.color = Color.RED
                if on_left:
                    self._rotate_right(sibling)
                else:
                    self._rotate_left(sibling)
                sibling = parent.right if on_left else parent.left
                far = sibling.right if on_left else sibling.left

            sibling.color = parent.color
            parent.color = Color.BLACK
            far.color = Color.BLACK
            if on_left:
                self._rotate_left(parent)
            else:
                self._rotate_right(parent)
            node = self._root

        node.color = Color.BLACK


class _RangeIterator(Iterator[tuple[bytes, Any]]):
    """In-order iterator over a bounded range, in either direction."""

    def __init__(
        self,
        root: Node | None,
        gt: bytes | None,
        gte: bytes | None,
        lt: bytes | None,
        lte: bytes | None,
        reverse: bool,
    ) -> None:
        self._stack: list[Node] = []
        self._reverse = reverse
        # Exclusive bounds take precedence over inclusive ones
        self._lower = gt if gt is not None else gte
        self._lower_inclusive = gt is None
        self._upper = lt if lt is not None else lte
        self._upper_inclusive = lt is None

        self._push_path(root, bounded=True)

    def _below_lower(self, key: bytes) -> bool:
        if self._lower is None:
            return False
        return key < self._lower or (key == self._lower and not self._lower_inclusive)

    def _above_upper(self, key: bytes) -> bool:
        if self._upper is None:
            return False
        return key > self._upper or (key == self._upper and not self._upper_inclusive)

    def _push_path(self, node: Node | None, bounded: bool) -> None:
        """Push the path toward the first key in iteration order."""
        while node:
            if not self._reverse:
                if bounded and self._below_lower(node.key):
                    node = node.right
                else:
                    self._stack.append(node)
                    node = node.left
            else:
                if bounded and self._above_upper(node.key):
                    node = node.left
                else:
                    self._stack.append(node)
                    node = node.right

    def __iter__(self) -> Iterator[tuple[bytes, Any]]:
        return self

    def __next__(self) -> tuple[bytes, Any]:
        if not self._stack:
            raise StopIteration

        node = self._stack.pop()

        # Check the far bound
        if self._above_upper(node.key) if not self._reverse else self._below_lower(node.key):
            self._stack.clear()
            raise StopIteration

        result = (node.key, node.value)
        self._push_path(node.left if self._reverse else node.right, bounded=False)
        return result


class _AsyncRangeIterator(AsyncIterator[tuple[bytes, Any]]):
    """Async wrapper over a range iterator (in-memory, no I/O)."""

    def __init__(self, iterator: Iterator[tuple[bytes, Any]]) -> None:
        self._iterator = iterator

    def __aiter__(self) -> "_AsyncRangeIterator":
        return self

    async def __anext__(self) -> tuple[bytes, Any]:
        try:
            return next(self._iterator)
        except StopIteration:
            raise StopAsyncIteration from None
