"""
Custom exceptions for the namespacing layer.
"""

import re
from typing import Any

_NOT_FOUND_PATTERN = re.compile(r"not\s*found", re.IGNORECASE)


class KeyspaceError(Exception):
    """Base class for every error raised by keyspace."""


class NotFoundError(KeyspaceError, KeyError):
    """
    Raised when a requested key is absent.

    Whatever shape the underlying store uses to signal a missing key
    (a None result, a KeyError, a flagged or "not found" error), callers
    only ever see this one condition. The store's own error, if any, is
    kept as ``cause`` and chained as ``__cause__``.
    """

    def __init__(self, key: Any, cause: BaseException | None = None):
        """
        Initialize not-found error.

        Args:
            key: The user-level key that was looked up.
            cause: The store error that signalled the miss, if any.
        """
        self.key = key
        self.cause = cause
        super().__init__(f"Key not found in database [{key!r}]")

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return self.args[0]

    @staticmethod
    def is_not_found(error: BaseException) -> bool:
        """Check whether a store error signals a missing key."""
        if isinstance(error, (NotFoundError, KeyError)):
            return True
        if getattr(error, "not_found", False) or getattr(error, "notFound", False):
            return True
        return bool(_NOT_FOUND_PATTERN.search(str(error)))


class EncodingError(KeyspaceError, ValueError):
    """Raised when a key, value or bound cannot be encoded or decoded."""


class UnknownPrefixError(KeyspaceError):
    """
    Raised when a batch operation references something that is not a Namespace.

    The whole batch is rejected before any key is encoded or the store
    is touched.
    """

    def __init__(self, prefix: Any, index: int | None = None):
        self.prefix = prefix
        self.index = index
        where = f" (operation {index})" if index is not None else ""
        super().__init__(f"Unknown prefix{where}: {prefix!r}")


class HookError(KeyspaceError):
    """
    Raised when a pre- or post-commit hook fails.

    Attributes:
        phase: "pre" or "post".
        hook: The hook callable that raised.
        committed: True when the store write already succeeded (post hooks).
    """

    def __init__(self, phase: str, hook: Any, committed: bool = False):
        self.phase = phase
        self.hook = hook
        self.committed = committed
        name = getattr(hook, "__qualname__", None) or repr(hook)
        state = "after commit" if committed else "before commit"
        super().__init__(f"{phase}-hook {name} failed {state}")


class UnsupportedRangeCombinationError(KeyspaceError, ValueError):
    """Raised when start/end are mixed with gt/gte/lt/lte in one range query."""

    def __init__(self, relative: list[str], absolute: list[str]):
        self.relative = relative
        self.absolute = absolute
        super().__init__(
            f"Cannot combine {', '.join(relative)} with {', '.join(absolute)} "
            f"in one range query"
        )


class UnsupportedOperationError(KeyspaceError):
    """Raised when the underlying store lacks the capability an operation needs."""

    def __init__(self, operation: str, capability: str):
        self.operation = operation
        self.capability = capability
        super().__init__(
            f"{operation} requires the '{capability}' capability, "
            f"which the underlying store does not provide"
        )


class BatchClosedError(KeyspaceError):
    """Raised when a deferred batch is modified after it was written."""


class StoreClosedError(KeyspaceError):
    """Raised when a closed store or handle is used."""
