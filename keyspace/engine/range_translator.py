"""
Range translation: user range options -> namespace-prefixed store bounds.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any

from keyspace.models.codecs import decode_with, get_codec
from keyspace.models.exceptions import UnsupportedRangeCombinationError
from keyspace.models.namespace import Namespace
from keyspace.models.options import ReadOptions
from keyspace.models.prefix import LOWER_BOUND, UPPER_BOUND

RELATIVE_KEYS = ("start", "end")
ABSOLUTE_KEYS = ("gt", "gte", "lt", "lte")

# Ends of the namespace block; prefixed verbatim, never passed to the key codec
_LOWEST = object()
_HIGHEST = object()


@dataclass(frozen=True)
class TranslatedRange:
    """
    Concrete store bounds for one range query.

    Exactly one of gt/gte and one of lt/lte is set, and every bound carries
    the namespace prefix, so iteration cannot leave the namespace block.
    """

    gt: bytes | None = None
    gte: bytes | None = None
    lt: bytes | None = None
    lte: bytes | None = None
    reverse: bool = False
    limit: int | None = None

    def store_kwargs(self) -> dict[str, Any]:
        return {
            "gt": self.gt,
            "gte": self.gte,
            "lt": self.lt,
            "lte": self.lte,
            "reverse": self.reverse,
            "limit": self.limit,
        }

    def contains(self, key: bytes) -> bool:
        """True if key falls inside the bounds."""
        if self.gt is not None and key <= self.gt:
            return False
        if self.gte is not None and key < self.gte:
            return False
        if self.lt is not None and key >= self.lt:
            return False
        if self.lte is not None and key > self.lte:
            return False
        return True


def translate(namespace: Namespace, options: ReadOptions) -> TranslatedRange:
    """
    Resolve range options to encoded store bounds.

    1. start/end are direction-relative: forward they become gte/lte,
       reversed they swap. A missing side defaults to the block sentinel.
    2. gt wins over gte, lt wins over lte.
    3. A missing lower bound becomes an exclusive bound on the bare prefix,
       a missing upper bound an exclusive bound on prefix + 0xFF.

    Args:
        namespace: Namespace issuing the query.
        options: Normalized read options.

    Returns:
        TranslatedRange ready for Store.iterator().

    Raises:
        UnsupportedRangeCombinationError: If start/end are mixed with
            gt/gte/lt/lte.
        EncodingError: If a bound cannot be encoded.
    """
    bounds = dict(options.bounds)
    relative = [k for k in RELATIVE_KEYS if k in bounds]
    absolute = [k for k in ABSOLUTE_KEYS if k in bounds]

    if relative and absolute:
        raise UnsupportedRangeCombinationError(relative, absolute)

    if relative:
        start = bounds.pop("start", None)
        end = bounds.pop("end", None)
        if not options.reverse:
            bounds["gte"] = start if start is not None else _LOWEST
            bounds["lte"] = end if end is not None else _HIGHEST
        else:
            bounds["gte"] = end if end is not None else _LOWEST
            bounds["lte"] = start if start is not None else _HIGHEST

    def encode(value: Any) -> bytes:
        if value is _LOWEST:
            return namespace.raw_key(LOWER_BOUND)
        if value is _HIGHEST:
            return namespace.raw_key(UPPER_BOUND)
        return namespace.encode(value, options.key_encoding)

    resolved: dict[str, bytes] = {}

    if "gt" in bounds:
        resolved["gt"] = encode(bounds["gt"])
    elif "gte" in bounds:
        resolved["gte"] = encode(bounds["gte"])
    else:
        resolved["gt"] = encode(_LOWEST)

    if "lt" in bounds:
        resolved["lt"] = encode(bounds["lt"])
    elif "lte" in bounds:
        resolved["lte"] = encode(bounds["lte"])
    else:
        resolved["lt"] = encode(_HIGHEST)

    return TranslatedRange(reverse=options.reverse, limit=options.limit, **resolved)


class DecodingIterator(AsyncIterator[Any]):
    """
    Wraps a store iterator, decoding every entry relative to a namespace.

    Yields (key, value) tuples, or only keys / only values when the read
    options project one side away. Store errors propagate unchanged.
    """

    def __init__(
        self,
        source: AsyncIterator[tuple[bytes, bytes]],
        namespace: Namespace,
        options: ReadOptions,
    ) -> None:
        if not options.keys and not options.values:
            raise ValueError("At least one of keys or values must be requested")

        self._source = source
        self._namespace = namespace
        self._options = options
        self._value_codec = get_codec(options.value_encoding or namespace.options.value_encoding)
        self._done = False

    def __aiter__(self) -> "DecodingIterator":
        return self

    async def __anext__(self) -> Any:
        if self._done:
            raise StopAsyncIteration
        try:
            key, value = await self._source.__anext__()
        except StopAsyncIteration:
            self._done = True
            raise

        options = self._options
        if options.keys:
            key = self._namespace.decode(
                key, raw=options.key_as_buffer, key_encoding=options.key_encoding
            )
            if not options.values:
                return key

        value = decode_with(self._value_codec, value)
        if not options.keys:
            return value
        return key, value

    async def aclose(self) -> None:
        self._done = True
        close = getattr(self._source, "aclose", None)
        if close is not None:
            await close()
