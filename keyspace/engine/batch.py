"""
Batch commit protocol: pre-hooks, key encoding, one atomic store call, post-hooks.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from keyspace.interfaces.capabilities import Capabilities
from keyspace.interfaces.store import Store, StoreOp
from keyspace.models.codecs import encode_with, get_codec
from keyspace.models.exceptions import (
    BatchClosedError,
    HookError,
    KeyspaceError,
    UnknownPrefixError,
    UnsupportedOperationError,
)
from keyspace.models.namespace import Namespace
from keyspace.models.operation import Operation

logger = logging.getLogger(__name__)


def resolve_namespace(ref: Any, index: int | None = None) -> Namespace:
    """
    Turn an operation's namespace reference into a Namespace.

    Accepts a Namespace or a handle exposing one as ``.namespace``.

    Raises:
        UnknownPrefixError: For anything else.
    """
    if isinstance(ref, Namespace):
        return ref
    namespace = getattr(ref, "namespace", None)
    if isinstance(namespace, Namespace):
        return namespace
    raise UnknownPrefixError(ref, index)


async def _call_hook(hook: Callable[..., Any], *args: Any) -> None:
    result = hook(*args)
    if inspect.isawaitable(result):
        await result


class BatchCoordinator:
    """
    Commits groups of operations that may span several namespaces.

    Order of events for one commit:
    1. Every operation's namespace is resolved; an unknown one rejects the
       whole batch.
    2. Pre-hooks run per operation, in registration order. They may cancel
       their operation or append new ones, which get the same treatment.
    3. Keys and values are encoded.
    4. One atomic call reaches the store (none if nothing is left).
    5. Post-hooks run per operation, with the original key restored.
    """

    def __init__(self, store: Store, capabilities: Capabilities) -> None:
        self._store = store
        self._capabilities = capabilities

    async def commit(
        self,
        ops: Iterable[Any],
        namespace: Namespace,
        key_encoding: str | None = None,
        value_encoding: str | None = None,
    ) -> list[Operation]:
        """
        Commit a batch of operations.

        Args:
            ops: Operations or operation mappings.
            namespace: Default owner for operations that name none.
            key_encoding: Key codec override for this call.
            value_encoding: Value codec override for this call.

        Returns:
            The operations that reached the store, with original keys.

        Raises:
            UnknownPrefixError: If an operation names an unknown namespace.
            HookError: If a pre-hook fails (nothing written) or a post-hook
                fails (batch already committed, ``committed`` is True).
            EncodingError: If a key or value cannot be encoded.
        """
        pending = [Operation.coerce(op) for op in ops]
        owners = [
            resolve_namespace(op.namespace if op.namespace is not None else namespace, i)
            for i, op in enumerate(pending)
        ]

        pending, owners = await self._run_pre_hooks(pending, owners)

        store_ops = []
        for op, owner in zip(pending, owners):
            op.original_key = op.key
            op.original_namespace = op.namespace
            op.encoded_key = owner.encode(op.key, key_encoding)
            if op.is_put:
                codec = get_codec(value_encoding or owner.options.value_encoding)
                store_ops.append(StoreOp("put", op.encoded_key, encode_with(codec, op.value)))
            else:
                store_ops.append(StoreOp("del", op.encoded_key))

        if not store_ops:
            logger.debug("Batch is empty after pre-hooks, skipping store call")
            return []

        await self._write(store_ops)
        logger.debug(f"Committed batch of {len(store_ops)} operation(s)")

        await self._run_post_hooks(pending, owners)
        return pending

    async def _run_pre_hooks(
        self, pending: list[Operation], owners: list[Namespace]
    ) -> tuple[list[Operation], list[Namespace]]:
        cancelled: set[int] = set()
        i = 0
        # pending may grow while hooks run
        while i < len(pending):
            op, owner = pending[i], owners[i]
            for hook in owner.pre_hooks:
                add = self._make_add(i, owner, pending, owners, cancelled)
                try:
                    await _call_hook(hook, op, add, tuple(pending))
                except KeyspaceError:
                    raise
                except Exception as e:
                    raise HookError("pre", hook) from e
                if i in cancelled:
                    break
            i += 1

        kept = [j for j in range(len(pending)) if j not in cancelled]
        return [pending[j] for j in kept], [owners[j] for j in kept]

    @staticmethod
    def _make_add(
        index: int,
        owner: Namespace,
        pending: list[Operation],
        owners: list[Namespace],
        cancelled: set[int],
    ) -> Callable[[Any], None]:
        def add(op: Any) -> None:
            """Cancel the current operation (False) or append another one."""
            if op is False:
                cancelled.add(index)
                return
            new_op = Operation.coerce(op)
            new_owner = resolve_namespace(
                new_op.namespace if new_op.namespace is not None else owner, len(pending)
            )
            pending.append(new_op)
            owners.append(new_owner)

        return add

    async def _write(self, store_ops: list[StoreOp]) -> None:
        capabilities = self._capabilities
        if capabilities.batch:
            await self._store.batch(store_ops)
            return

        # Without a batch primitive only a single write can stay atomic
        if len(store_ops) == 1:
            op = store_ops[0]
            if op.type == "put" and capabilities.put:
                await self._store.put(op.key, op.value)
                return
            if op.type == "del" and capabilities.delete:
                await self._store.delete(op.key)
                return
        raise UnsupportedOperationError("batch", "batch")

    async def _run_post_hooks(self, ops: list[Operation], owners: list[Namespace]) -> None:
        failure: HookError | None = None
        for op, owner in zip(ops, owners):
            op.key = op.original_key
            op.namespace = op.original_namespace
            for hook in owner.post_hooks:
                try:
                    await _call_hook(hook, op)
                except Exception as e:
                    logger.warning(f"Post-hook failed for {op.type.value} {op.key!r}: {e}")
                    if failure is None:
                        failure = HookError("post", hook, committed=True)
                        failure.__cause__ = e

        if failure is not None:
            raise failure


class Batch:
    """
    Deferred batch builder.

    Collects put/delete calls and commits them as one atomic write when
    write() is awaited. Operations may target other namespaces through the
    ``namespace`` argument.
    """

    def __init__(
        self,
        commit: Callable[[list[Operation]], Awaitable[list[Operation]]],
        namespace: Namespace,
    ) -> None:
        self._commit = commit
        self._namespace = namespace
        self._ops: list[Operation] = []
        self._written = False

    def _check_writable(self) -> None:
        if self._written:
            raise BatchClosedError("Batch was already written")

    def put(self, key: Any, value: Any, namespace: Any = None) -> "Batch":
        self._check_writable()
        self._ops.append(Operation.put(key, value, namespace))
        return self

    def delete(self, key: Any, namespace: Any = None) -> "Batch":
        self._check_writable()
        self._ops.append(Operation.delete(key, namespace))
        return self

    del_ = delete

    def clear(self) -> "Batch":
        self._check_writable()
        self._ops = []
        return self

    @property
    def length(self) -> int:
        return len(self._ops)

    def __len__(self) -> int:
        return len(self._ops)

    @property
    def written(self) -> bool:
        return self._written

    async def write(self) -> list[Operation]:
        """
        Commit the collected operations.

        Writing again after a successful write is a no-op. After a failed
        write the operations are kept, so the batch can be retried.
        """
        if self._written:
            return []
        try:
            committed = await self._commit(list(self._ops))
        except HookError as e:
            if e.committed:
                self._ops = []
                self._written = True
            raise
        self._ops = []
        self._written = True
        return committed
