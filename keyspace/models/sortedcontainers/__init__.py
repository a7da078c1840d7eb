"""
Sorted container implementations for in-memory stores.
"""

from keyspace.models.sortedcontainers.red_black_tree import RedBlackTree

__all__ = ["RedBlackTree"]
