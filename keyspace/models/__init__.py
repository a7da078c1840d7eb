"""
Data models for the namespacing layer.
"""

from keyspace.models.exceptions import (
    BatchClosedError,
    EncodingError,
    HookError,
    KeyspaceError,
    NotFoundError,
    StoreClosedError,
    UnknownPrefixError,
    UnsupportedOperationError,
    UnsupportedRangeCombinationError,
)
from keyspace.models.options import Options, ReadOptions
from keyspace.models.hooks import HookHandle, HookRegistry
from keyspace.models.events import Event, EventBus
from keyspace.models.operation import Operation, OpType
from keyspace.models.namespace import Namespace
from keyspace.models.memory_store import MemoryStore

__all__ = [
    "BatchClosedError",
    "EncodingError",
    "Event",
    "EventBus",
    "HookError",
    "HookHandle",
    "HookRegistry",
    "KeyspaceError",
    "MemoryStore",
    "Namespace",
    "NotFoundError",
    "OpType",
    "Operation",
    "Options",
    "ReadOptions",
    "StoreClosedError",
    "UnknownPrefixError",
    "UnsupportedOperationError",
    "UnsupportedRangeCombinationError",
]
