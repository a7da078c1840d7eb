"""
Abstract base classes and protocols for the namespacing layer.
"""

from keyspace.interfaces.capabilities import Capabilities
from keyspace.interfaces.range_iterable import RangeIterable
from keyspace.interfaces.sorted_container import SortedContainer
from keyspace.interfaces.store import Listener, Store, StoreOp

__all__ = ["Capabilities", "Listener", "RangeIterable", "SortedContainer", "Store", "StoreOp"]
