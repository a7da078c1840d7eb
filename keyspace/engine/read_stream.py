"""
ReadStream - lazy, single-pass range scan over one namespace.
"""

from collections.abc import AsyncIterator
from typing import Any

from keyspace.engine.range_translator import DecodingIterator, TranslatedRange, translate
from keyspace.interfaces.capabilities import Capabilities
from keyspace.interfaces.store import Store
from keyspace.models.namespace import Namespace
from keyspace.models.options import ReadOptions


class ReadStream(AsyncIterator[Any]):
    """
    Async iterator over a namespace range.

    Nothing touches the store until the first item is requested; option
    errors (such as an unsupported bound combination) surface from that
    first __anext__. A stream is single-pass: issue a new one to restart.
    """

    def __init__(
        self,
        store: Store,
        namespace: Namespace,
        options: ReadOptions,
        capabilities: Capabilities,
    ) -> None:
        self._store = store
        self._namespace = namespace
        self._options = options
        self._capabilities = capabilities
        self._iterator: DecodingIterator | None = None
        self._range: TranslatedRange | None = None
        self._closed = False

    @property
    def options(self) -> ReadOptions:
        return self._options

    @property
    def range(self) -> TranslatedRange:
        """The encoded store bounds this stream iterates over."""
        if self._range is None:
            self._range = translate(self._namespace, self._options)
        return self._range

    def _open(self) -> DecodingIterator:
        self._capabilities.require("range_scan", "create_read_stream")
        source = self._store.iterator(**self.range.store_kwargs())
        return DecodingIterator(source, self._namespace, self._options)

    def __aiter__(self) -> "ReadStream":
        return self

    async def __anext__(self) -> Any:
        if self._closed:
            raise StopAsyncIteration
        if self._iterator is None:
            self._iterator = self._open()
        return await self._iterator.__anext__()

    async def collect(self) -> list[Any]:
        """Drain the stream into a list."""
        return [item async for item in self]

    async def aclose(self) -> None:
        self._closed = True
        if self._iterator is not None:
            await self._iterator.aclose()
