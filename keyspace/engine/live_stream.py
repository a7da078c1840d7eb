"""
LiveStream - a range scan that keeps following committed changes.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, replace
from typing import Any

from keyspace.engine.range_translator import DecodingIterator, TranslatedRange, translate
from keyspace.interfaces.capabilities import Capabilities
from keyspace.interfaces.store import Store, StoreOp
from keyspace.models.codecs import decode_with, get_codec
from keyspace.models.namespace import Namespace
from keyspace.models.operation import Operation
from keyspace.models.options import ReadOptions

logger = logging.getLogger(__name__)

_CLOSED = object()


@dataclass(frozen=True)
class Change:
    """
    One event of a live stream.

    Attributes:
        type: "put", "del", or "sync" (end of the initial contents).
        key: Decoded key (None for sync).
        value: Decoded value (None for del and sync).
    """

    type: str
    key: Any = None
    value: Any = None


class LiveStream(AsyncIterator[Change]):
    """
    Async iterator over the current contents of a range, then its changes.

    Sequence produced:
    - every entry in range when the stream was created, as "put" changes
      (unless old=False);
    - a single "sync" change marking the end of those entries;
    - every committed put/del inside the range, as it happens.

    The change feed comes from the store when it has one (which also covers
    descendant namespaces); otherwise from this namespace's post-hooks. The
    stream only ends when close() is called.
    """

    def __init__(
        self,
        store: Store,
        namespace: Namespace,
        options: ReadOptions,
        capabilities: Capabilities,
        old: bool = True,
    ) -> None:
        self._namespace = namespace
        self._options = options
        self._range: TranslatedRange = translate(namespace, options)
        self._value_codec = get_codec(options.value_encoding or namespace.options.value_encoding)
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._snapshot: AsyncIterator[tuple[Any, Any]] | None = None
        self._synced = not old
        self._closed = False

        # Snapshot and subscription are taken together, with no await in
        # between, so every write lands in exactly one of them
        if old:
            capabilities.require("range_scan", "create_live_stream")
            self._snapshot = DecodingIterator(
                store.iterator(**self._range.store_kwargs()),
                namespace,
                replace(options, keys=True, values=True),
            )

        if capabilities.live_scan:
            self._unsubscribe: Callable[[], None] = store.subscribe(self._on_store_change)
        else:
            self._unsubscribe = namespace.post(self._on_post_commit)

    @property
    def closed(self) -> bool:
        return self._closed

    def _on_store_change(self, ops: list[StoreOp]) -> None:
        for op in ops:
            if self._namespace.contains(op.key) and self._range.contains(op.key):
                self._queue.put_nowait(op)

    def _on_post_commit(self, op: Operation) -> None:
        if op.encoded_key is None or not self._range.contains(op.encoded_key):
            return
        key = self._decode_key(op.encoded_key)
        value = op.value if op.is_put else None
        self._queue.put_nowait(Change(op.type.value, key, value))

    def _decode_key(self, key: bytes) -> Any:
        return self._namespace.decode(
            key, raw=self._options.key_as_buffer, key_encoding=self._options.key_encoding
        )

    def __aiter__(self) -> "LiveStream":
        return self

    async def __anext__(self) -> Change:
        if self._closed:
            raise StopAsyncIteration

        if not self._synced:
            try:
                key, value = await self._snapshot.__anext__()
                return Change("put", key, value)
            except StopAsyncIteration:
                self._synced = True
                return Change("sync")

        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, Change):
            return item

        key = self._decode_key(item.key)
        if item.type == "put":
            return Change("put", key, decode_with(self._value_codec, item.value))
        return Change("del", key)

    def close(self) -> None:
        """Stop following changes; a pending __anext__ finishes the iteration."""
        if self._closed:
            return
        self._closed = True
        self._unsubscribe()
        self._queue.put_nowait(_CLOSED)
        logger.debug(f"Live stream on {self._namespace!r} closed")

    async def aclose(self) -> None:
        self.close()

    async def __aenter__(self) -> "LiveStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
