"""
Keyspace - namespaced handle over an ordered key-value store.
"""

import logging
from collections.abc import Callable, Iterable
from typing import Any

from keyspace.engine.batch import Batch, BatchCoordinator
from keyspace.engine.live_stream import LiveStream
from keyspace.engine.read_stream import ReadStream
from keyspace.interfaces.capabilities import Capabilities
from keyspace.interfaces.store import Store
from keyspace.models import bytecodec
from keyspace.models.codecs import decode_with, get_codec
from keyspace.models.events import Event, EventBus
from keyspace.models.exceptions import NotFoundError, StoreClosedError
from keyspace.models.hooks import HookHandle
from keyspace.models.namespace import Namespace
from keyspace.models.operation import Operation
from keyspace.models.options import Options, ReadOptions

logger = logging.getLogger(__name__)

# Per-call options accepted by get/put/delete/batch
_CALL_OPTIONS = {
    "key_encoding": "key_encoding",
    "keyEncoding": "key_encoding",
    "value_encoding": "value_encoding",
    "valueEncoding": "value_encoding",
}


def _call_encodings(options: dict[str, Any]) -> tuple[str | None, str | None]:
    """
    Pick key/value codec overrides out of a per-call option bag.

    Raises:
        TypeError: If an option is not recognized.
    """
    resolved: dict[str, Any] = {}
    for name, value in options.items():
        if name not in _CALL_OPTIONS:
            raise TypeError(f"Unknown option: {name}")
        resolved[_CALL_OPTIONS[name]] = value
    for name in ("key_encoding", "value_encoding"):
        if resolved.get(name) is not None:
            get_codec(resolved[name])
    return resolved.get("key_encoding"), resolved.get("value_encoding")


class Keyspace:
    """
    Handle on one namespace of a shared ordered store.

    Provides:
    - get / put / delete / batch on keys of this namespace
    - sublevel(segment): memoized child handles sharing the same store
    - pre / post: commit hooks scoped to this namespace
    - create_read_stream / create_key_stream / create_value_stream:
      range scans that never leave the namespace block
    - create_live_stream: range scan that keeps following changes

    Every I/O operation is a coroutine and reports failures by raising from
    the awaited call.
    """

    def __init__(
        self,
        store: "Store | Keyspace",
        segment: Any = None,
        options: Options | None = None,
        **overrides: Any,
    ) -> None:
        """
        Initialize a handle.

        Args:
            store: Underlying store, or an existing handle to nest under.
            segment: Namespace segment, or a ready-made Namespace. May be
                omitted when store is a handle, to share its namespace.
            options: Base configuration (inherits the parent's when nesting).
            **overrides: Individual option overrides (key_encoding, ...).

        Raises:
            ValueError: If segment is missing for a raw store.
            TypeError: If an option name is not recognized.
        """
        if isinstance(store, Keyspace):
            parent = store
            resolved = (options or parent.options).merge(**overrides)
            if isinstance(segment, Namespace):
                namespace = segment
            elif segment is None:
                namespace = parent.namespace
            else:
                namespace = parent.namespace.append(segment, resolved)
            self._store = parent.store
            self._capabilities = parent.capabilities
            self._coordinator = parent._coordinator
            self._root = parent._root
        else:
            resolved = (options or Options()).merge(**overrides)
            if isinstance(segment, Namespace):
                namespace = segment
            elif segment is None:
                raise ValueError("A namespace segment is required for a top-level handle")
            else:
                namespace = Namespace((segment,), resolved)
            self._store = store
            # Computed once; every handle on this store shares it
            self._capabilities = Capabilities.of(store)
            self._coordinator = BatchCoordinator(store, self._capabilities)
            self._root = self

        self._namespace = namespace
        # An existing namespace keeps the options it was created with
        self._options = namespace.options
        self._sublevels: dict[bytes, Keyspace] = {}
        self._events = EventBus()
        self._opened = False
        self._closed = False

    @property
    def namespace(self) -> Namespace:
        return self._namespace

    @property
    def store(self) -> Store:
        return self._store

    @property
    def capabilities(self) -> Capabilities:
        return self._capabilities

    @property
    def options(self) -> Options:
        return self._options

    @property
    def path(self) -> tuple:
        return self._namespace.path

    @property
    def prefix(self) -> bytes:
        return self._namespace.prefix

    @property
    def is_closed(self) -> bool:
        return self._closed or self._root._closed

    def _check_open(self) -> None:
        if self.is_closed:
            raise StoreClosedError(f"Handle on {self._namespace!r} is closed")

    def sublevel(self, segment: Any, options: Options | None = None, **overrides: Any) -> "Keyspace":
        """
        Return the handle for a child namespace, creating it on first use.

        The same segment always yields the same handle; options only apply
        when the child is first created.
        """
        slot = bytecodec.encode(segment)
        handle = self._sublevels.get(slot)
        if handle is None:
            handle = Keyspace(self, segment, options, **overrides)
            self._sublevels[slot] = handle
        return handle

    async def get(self, key: Any, **options: Any) -> Any:
        """
        Retrieve the value stored under key in this namespace.

        Raises:
            NotFoundError: If the key is absent, whatever way the store reports it.
            EncodingError: If the key or the stored value cannot be converted.
        """
        key_encoding, value_encoding = _call_encodings(options)
        self._check_open()
        self._capabilities.require("get", "get")

        full_key = self._namespace.encode(key, key_encoding)
        try:
            value = await self._store.get(full_key)
        except Exception as e:
            if NotFoundError.is_not_found(e):
                raise NotFoundError(key, e) from e
            raise
        if value is None:
            raise NotFoundError(key)

        codec = get_codec(value_encoding or self._options.value_encoding)
        return decode_with(codec, value)

    async def put(self, key: Any, value: Any, **options: Any) -> None:
        """Store value under key; runs through the batch hooks as a one-op batch."""
        await self._write([Operation.put(key, value)], options)

    async def delete(self, key: Any, **options: Any) -> None:
        """Remove key; runs through the batch hooks as a one-op batch."""
        await self._write([Operation.delete(key)], options)

    del_ = delete

    def batch(self, ops: Iterable[Any] | None = None, **options: Any) -> Any:
        """
        Commit several operations atomically, or start a deferred batch.

        Args:
            ops: Operations (Operation instances or mappings). When omitted a
                Batch builder is returned instead.

        Returns:
            A coroutine committing ops, or a Batch builder.
        """
        if ops is None:
            return Batch(
                lambda collected: self._write(collected, options, batch=True), self._namespace
            )
        return self._write(ops, options, batch=True)

    async def _write(
        self, ops: Iterable[Any], options: dict[str, Any], batch: bool = False
    ) -> list[Operation]:
        key_encoding, value_encoding = _call_encodings(options)
        self._check_open()
        committed = await self._coordinator.commit(
            ops, self._namespace, key_encoding=key_encoding, value_encoding=value_encoding
        )
        if batch:
            if committed:
                self._events.emit(Event.BATCH, committed)
        else:
            for op in committed:
                self._events.emit(Event.PUT if op.is_put else Event.DEL, op)
        return committed

    def pre(self, hook: Callable[..., Any]) -> HookHandle:
        """Register a pre-commit hook on this namespace; see Namespace.pre()."""
        return self._namespace.pre(hook)

    def post(self, hook: Callable[..., Any]) -> HookHandle:
        """Register a post-commit hook on this namespace; see Namespace.post()."""
        return self._namespace.post(hook)

    def create_read_stream(self, **options: Any) -> ReadStream:
        """
        Scan this namespace (and its descendants) in key order.

        Recognized options: gt, gte, lt, lte, start, end, reverse, limit,
        keys, values, key_as_buffer, key_encoding, value_encoding.
        """
        self._check_open()
        return ReadStream(
            self._store, self._namespace, ReadOptions.from_kwargs(**options), self._capabilities
        )

    def create_key_stream(self, **options: Any) -> ReadStream:
        return self.create_read_stream(**{**options, "keys": True, "values": False})

    def create_value_stream(self, **options: Any) -> ReadStream:
        return self.create_read_stream(**{**options, "keys": False, "values": True})

    def create_live_stream(self, old: bool = True, **options: Any) -> LiveStream:
        """
        Scan this namespace, then keep yielding changes until closed.

        Args:
            old: Emit the current contents before following changes.
        """
        self._check_open()
        return LiveStream(
            self._store,
            self._namespace,
            ReadOptions.from_kwargs(**options),
            self._capabilities,
            old=old,
        )

    def on(self, event: Event | str, listener: Callable[[Any], Any]) -> HookHandle:
        """Subscribe to open/close/put/del/batch events of this handle."""
        return self._events.on(event, listener)

    def manifest(self) -> dict[str, Any]:
        """Describe the methods this handle exposes, level-manifest style."""
        methods = {
            "get": "async",
            "put": "async",
            "delete": "async",
            "batch": "async",
            "sublevel": "sync",
            "pre": "sync",
            "post": "sync",
            "create_read_stream": "readable",
            "create_key_stream": "readable",
            "create_value_stream": "readable",
            "close": "async",
        }
        if self._capabilities.live_scan:
            methods["create_live_stream"] = "readable"
        methods.update(self._options.methods)
        return {
            "path": list(self._namespace.path),
            "methods": methods,
            "capabilities": self._capabilities.supported(),
            "sublevels": {
                repr(h.namespace.segment): h.manifest() for h in self._sublevels.values()
            },
        }

    def __getattr__(self, name: str) -> Any:
        # Only reached for attributes not found normally: forward declared extra methods
        options = self.__dict__.get("_options")
        if options is not None and name in options.methods:
            return getattr(self.__dict__["_store"], name)
        raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}")

    async def open(self) -> "Keyspace":
        """Mark the handle open and emit the open event (idempotent)."""
        self._check_open()
        if not self._opened:
            self._opened = True
            self._events.emit(Event.OPEN, self)
        return self

    async def close(self) -> None:
        """
        Close the handle.

        Closing the top-level handle also closes the underlying store when it
        supports it; closing a sublevel only closes that handle.
        """
        if self._closed:
            return
        self._closed = True
        if self._root is self and self._capabilities.close:
            await self._store.close()
        logger.debug(f"Closed handle on {self._namespace!r}")
        self._events.emit(Event.CLOSE, self)

    async def __aenter__(self) -> "Keyspace":
        return await self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"Keyspace({self._namespace.path!r})"


async def open_keyspace(
    store: Store | Keyspace,
    segment: Any = None,
    options: Options | None = None,
    **overrides: Any,
) -> Keyspace:
    """
    Async factory: build a handle and emit its open event.

    Returns:
        The opened Keyspace handle.
    """
    handle = Keyspace(store, segment, options, **overrides)
    return await handle.open()
