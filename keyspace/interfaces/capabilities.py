"""
Capability descriptor for underlying stores.
"""

from dataclasses import dataclass, fields
from typing import Any

from keyspace.models.exceptions import UnsupportedOperationError

# capability flag -> store method that provides it
_PROBES = {
    "get": "get",
    "put": "put",
    "delete": "delete",
    "batch": "batch",
    "range_scan": "iterator",
    "live_scan": "subscribe",
    "close": "close",
}


@dataclass(frozen=True)
class Capabilities:
    """
    What an underlying store supports, computed once per handle.

    A store may publish its own descriptor as a ``capabilities`` attribute;
    otherwise the store's methods are probed a single time at construction.
    """

    get: bool = False
    put: bool = False
    delete: bool = False
    batch: bool = False
    range_scan: bool = False
    live_scan: bool = False
    close: bool = False

    @classmethod
    def of(cls, store: Any) -> "Capabilities":
        declared = getattr(store, "capabilities", None)
        if isinstance(declared, Capabilities):
            return declared
        return cls(
            **{flag: callable(getattr(store, method, None)) for flag, method in _PROBES.items()}
        )

    def require(self, flag: str, operation: str) -> None:
        """
        Raises:
            UnsupportedOperationError: If the store lacks the capability.
        """
        if not getattr(self, flag):
            raise UnsupportedOperationError(operation, flag)

    def supported(self) -> list[str]:
        return [f.name for f in fields(self) if getattr(self, f.name)]
