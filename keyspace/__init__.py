"""
Hierarchical namespaces over a flat, byte-ordered key-value store.

This package provides:
- Keyspace(store, segment) - a handle on one isolated namespace
- sublevel(segment) - nested namespaces sharing the same store
- pre/post commit hooks per namespace, run around one atomic batch
- Range scans (read/key/value/live streams) confined to a namespace block
- An order-preserving key codec (keyspace.models.bytecodec)
"""

from keyspace.models import (
    BatchClosedError,
    EncodingError,
    Event,
    HookError,
    KeyspaceError,
    MemoryStore,
    Namespace,
    NotFoundError,
    Operation,
    OpType,
    Options,
    StoreClosedError,
    UnknownPrefixError,
    UnsupportedOperationError,
    UnsupportedRangeCombinationError,
)
from keyspace.interfaces import Capabilities, Store, StoreOp
from keyspace.engine import Batch, Change, Keyspace, open_keyspace

__all__ = [
    "Batch",
    "BatchClosedError",
    "Capabilities",
    "Change",
    "EncodingError",
    "Event",
    "HookError",
    "Keyspace",
    "KeyspaceError",
    "MemoryStore",
    "Namespace",
    "NotFoundError",
    "OpType",
    "Operation",
    "Options",
    "Store",
    "StoreClosedError",
    "StoreOp",
    "UnknownPrefixError",
    "UnsupportedOperationError",
    "UnsupportedRangeCombinationError",
    "open_keyspace",
]
