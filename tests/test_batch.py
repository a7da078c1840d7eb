"""
Tests for the batch commit protocol: hooks, atomicity and the deferred builder.
"""

import pytest

from keyspace import (
    BatchClosedError,
    HookError,
    Keyspace,
    Operation,
    UnknownPrefixError,
    UnsupportedOperationError,
)


class TestPreHooks:
    """Tests for pre-commit hooks."""

    async def test_registration_order(self, users):
        """Test that pre-hooks run in registration order."""
        calls = []
        users.pre(lambda op, add, ops: calls.append(("first", op.key)))
        users.pre(lambda op, add, ops: calls.append(("second", op.key)))

        await users.put("42", {"name": "a"})

        assert calls == [("first", "42"), ("second", "42")]

    async def test_cancel_operation(self, users, store):
        """Test that add(False) drops the operation and skips later hooks for it."""
        later = []

        def veto(op, add, ops):
            if op.key == "skip":
                add(False)

        users.pre(veto)
        users.pre(lambda op, add, ops: later.append(op.key))

        await users.batch(
            [
                {"type": "put", "key": "skip", "value": 1},
                {"type": "put", "key": "keep", "value": 2},
            ]
        )

        assert later == ["keep"]
        assert [op.key for op in store.batches[0]] == [users.namespace.encode("keep")]

    async def test_added_operations_join_the_batch(self, users, by_email, store):
        """Test that ops added by a hook commit atomically with the original."""
        seen_by_index = []

        def index(op, add, ops):
            if op.is_put:
                add({"type": "put", "key": op.value["email"], "value": op.key, "prefix": by_email})

        users.pre(index)
        by_email.pre(lambda op, add, ops: seen_by_index.append(op.key))

        await users.put("42", {"email": "a@x.com"})

        assert len(store.batches) == 1
        assert len(store.batches[0]) == 2
        assert seen_by_index == ["a@x.com"]
        assert await by_email.get("a@x.com") == "42"

    async def test_hooks_are_scoped_to_their_namespace(self, store, users, by_email):
        """Test that hooks only see operations of their own namespace."""
        posts = Keyspace(store, "posts")
        user_ops, email_ops = [], []
        users.pre(lambda op, add, ops: user_ops.append(op.key))
        by_email.pre(lambda op, add, ops: email_ops.append(op.key))

        await posts.put("p1", "hello")
        await by_email.put("a@x.com", "42")

        assert user_ops == []
        assert email_ops == ["a@x.com"]

    async def test_failure_aborts_batch(self, users, store):
        """Test that a failing pre-hook prevents any write."""

        def broken(op, add, ops):
            raise RuntimeError("validation failed")

        users.pre(broken)

        with pytest.raises(HookError) as exc_info:
            await users.put("42", {"name": "a"})

        assert exc_info.value.phase == "pre"
        assert exc_info.value.committed is False
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert store.batches == []

    async def test_hooks_see_read_only_batch(self, users, store):
        """Test that hooks get the batch as a tuple and cannot append to it."""
        seen = []

        def inspect(op, add, ops):
            seen.append((op.key, [o.key for o in ops]))
            if op.key == "b":
                ops.append(Operation.put("c", 3))

        users.pre(inspect)

        with pytest.raises(HookError) as exc_info:
            await users.batch([{"key": "a", "value": 1}, {"key": "b", "value": 2}])

        assert seen == [("a", ["a", "b"]), ("b", ["a", "b"])]
        assert isinstance(exc_info.value.__cause__, AttributeError)
        assert store.batches == []

    async def test_added_op_with_unknown_prefix(self, users, store):
        """Test that an unknown prefix from a hook rejects the whole batch."""
        users.pre(lambda op, add, ops: add({"key": "x", "value": 1, "prefix": "bogus"}))

        with pytest.raises(UnknownPrefixError):
            await users.put("42", 1)

        assert store.batches == []

    async def test_async_hook(self, users):
        """Test that coroutine hooks are awaited."""
        calls = []

        async def hook(op, add, ops):
            calls.append(op.key)

        users.pre(hook)
        await users.put("a", 1)

        assert calls == ["a"]

    async def test_deregistration_is_exact(self, users):
        """Test that removing one of two identical registrations keeps the other."""
        calls = []

        def hook(op, add, ops):
            calls.append(op.key)

        remove = users.pre(hook)
        users.pre(hook)
        remove()

        await users.put("a", 1)

        assert calls == ["a"]

    async def test_registration_during_commit(self, users):
        """Test that a hook added by a running hook applies from the next operation."""
        calls = []

        def late(op, add, ops):
            calls.append(("late", op.key))

        def first(op, add, ops):
            calls.append(("first", op.key))
            if op.key == "a":
                users.pre(late)

        users.pre(first)
        await users.batch([{"key": "a", "value": 1}, {"key": "b", "value": 2}])

        assert calls == [("first", "a"), ("first", "b"), ("late", "b")]


class TestPostHooks:
    """Tests for post-commit hooks."""

    async def test_receive_original_key(self, users):
        """Test that post-hooks see the user key and the encoded key."""
        seen = []
        users.post(seen.append)

        await users.put("42", {"name": "a"})

        assert len(seen) == 1
        assert seen[0].key == "42"
        assert seen[0].encoded_key == users.namespace.encode("42")
        assert seen[0].namespace is None

    async def test_not_called_when_store_fails(self, failing_store):
        """Test that a failed store write skips post-hooks."""
        users = Keyspace(failing_store, "users")
        seen = []
        users.post(seen.append)

        with pytest.raises(RuntimeError, match="disk full"):
            await users.put("42", 1)

        assert seen == []
        assert failing_store.batch_calls == 1

    async def test_failure_after_commit(self, users):
        """Test that every post-hook runs and the first failure is raised."""
        calls = []

        def broken(op):
            calls.append("broken")
            raise RuntimeError("notify failed")

        def other_broken(op):
            calls.append("other")
            raise ValueError("second")

        users.post(broken)
        users.post(other_broken)
        users.post(lambda op: calls.append("ok"))

        with pytest.raises(HookError) as exc_info:
            await users.put("42", 1)

        assert calls == ["broken", "other", "ok"]
        assert exc_info.value.phase == "post"
        assert exc_info.value.committed is True
        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert await users.get("42") == 1


class TestBatchCommit:
    """Tests for atomicity and store interaction."""

    async def test_cross_namespace_batch(self, users, by_email, store):
        """Test that one batch may target several namespaces."""
        committed = await users.batch(
            [
                Operation.put("42", {"email": "a@x.com"}),
                Operation.put("a@x.com", "42", namespace=by_email),
            ]
        )

        assert len(store.batches) == 1
        assert [op.key for op in committed] == ["42", "a@x.com"]
        assert await by_email.get("a@x.com") == "42"

    async def test_unknown_prefix_rejects_batch(self, users, store):
        """Test that an unknown prefix rejects the batch before any hook runs."""
        calls = []
        users.pre(lambda op, add, ops: calls.append(op.key))

        with pytest.raises(UnknownPrefixError) as exc_info:
            await users.batch([{"key": "a", "value": 1}, {"key": "b", "value": 2, "prefix": 7}])

        assert exc_info.value.index == 1
        assert calls == []
        assert store.batches == []

    async def test_empty_batch_skips_store(self, users, store):
        """Test that nothing reaches the store for an empty batch."""
        assert await users.batch([]) == []
        assert store.batches == []

    async def test_fully_cancelled_batch_skips_store(self, users, store):
        """Test that a batch emptied by hooks makes no store call."""
        users.pre(lambda op, add, ops: add(False))

        await users.put("a", 1)

        assert store.batches == []
        assert store.size() == 0

    async def test_plain_store_single_op(self, plain_store):
        """Test that a store without batch still accepts single writes."""
        users = Keyspace(plain_store, "users")
        await users.put("a", 1)

        assert await users.get("a") == 1
        await users.delete("a")
        assert plain_store.inner.size() == 0

    async def test_plain_store_multi_op(self, plain_store):
        """Test that a store without batch rejects multi-op batches."""
        users = Keyspace(plain_store, "users")

        with pytest.raises(UnsupportedOperationError):
            await users.batch([{"key": "a", "value": 1}, {"key": "b", "value": 2}])

        assert plain_store.inner.size() == 0


class TestBatchBuilder:
    """Tests for the deferred batch builder."""

    async def test_chain_and_write(self, users, by_email, store):
        """Test chained put/delete and a single atomic write."""
        await users.put("old", 1)
        batch = users.batch()
        batch.put("42", {"name": "a"}).put("a@x.com", "42", namespace=by_email).del_("old")

        assert batch.length == 3
        committed = await batch.write()

        assert len(committed) == 3
        assert batch.written
        assert len(batch) == 0
        assert len(store.batches) == 2
        assert await users.get("42") == {"name": "a"}

    async def test_closed_after_write(self, users):
        """Test that a written batch rejects changes and ignores a second write."""
        batch = users.batch().put("a", 1)
        await batch.write()

        with pytest.raises(BatchClosedError):
            batch.put("b", 2)
        assert await batch.write() == []

    async def test_failed_write_keeps_operations(self, failing_store):
        """Test that a failed write leaves the batch intact for a retry."""
        users = Keyspace(failing_store, "users")
        batch = users.batch().put("a", 1).put("b", 2)

        with pytest.raises(RuntimeError):
            await batch.write()

        assert len(batch) == 2
        assert not batch.written

    async def test_clear(self, users, store):
        """Test clearing queued operations."""
        batch = users.batch().put("a", 1).clear()
        await batch.write()

        assert store.batches == []
