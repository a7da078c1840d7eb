"""
Namespace - a path of segments and the byte prefix it encodes to.
"""

import logging
from collections.abc import Callable
from typing import Any

from keyspace.models import bytecodec
from keyspace.models.codecs import decode_with, encode_with, get_codec
from keyspace.models.hooks import HookHandle, HookRegistry
from keyspace.models.options import Options
from keyspace.models.prefix import (
    LOWER_BOUND,
    UPPER_BOUND,
    has_prefix,
    is_bytes_like,
    strip_prefix,
    to_bytes,
)

logger = logging.getLogger(__name__)


class Namespace:
    """
    An isolated block of keys inside one flat, byte-ordered store.

    The prefix is the bytewise encoding of the path. Because every encoded
    segment is self-delimiting:
    - a child's prefix always starts with its parent's prefix, so a scan of
      the parent block covers all descendants;
    - two distinct children of one parent never prefix each other, so a scan
      of one sibling never reaches the other.

    Children are memoized: asking twice for the same segment returns the
    same instance, with the same hook lists.
    """

    def __init__(
        self,
        path: tuple | list,
        options: Options | None = None,
        parent: "Namespace | None" = None,
    ) -> None:
        """
        Initialize Namespace.

        Args:
            path: Non-empty sequence of segments.
            options: Key/value encoding configuration.
            parent: Namespace this one was appended to, if any.

        Raises:
            ValueError: If path is empty.
            EncodingError: If a segment cannot be encoded.
        """
        path = tuple(path)
        if not path:
            raise ValueError("Namespace path cannot be empty")

        self._path = path
        self._prefix = bytecodec.pack(path)
        self._options = options or Options()
        self._parent = parent
        self._children: dict[bytes, Namespace] = {}
        self._pre_hooks = HookRegistry()
        self._post_hooks = HookRegistry()

    @property
    def path(self) -> tuple:
        return self._path

    @property
    def prefix(self) -> bytes:
        return self._prefix

    @property
    def segment(self) -> Any:
        return self._path[-1]

    @property
    def parent(self) -> "Namespace | None":
        return self._parent

    @property
    def depth(self) -> int:
        return len(self._path)

    @property
    def options(self) -> Options:
        return self._options

    @property
    def hex(self) -> bool:
        return self._options.hex_namespace

    @property
    def pre_hooks(self) -> HookRegistry:
        return self._pre_hooks

    @property
    def post_hooks(self) -> HookRegistry:
        return self._post_hooks

    def append(self, segment: Any, options: Options | None = None) -> "Namespace":
        """
        Return the child namespace for segment, creating it on first use.

        Args:
            segment: Path segment to append.
            options: Configuration for the child; defaults to this namespace's.
                Only honoured when the child is first created.

        Returns:
            The memoized child Namespace.
        """
        # Key children by their encoding: hashable, and 1 / 1.0 / True stay distinct
        slot = bytecodec.encode(segment)
        child = self._children.get(slot)
        if child is None:
            child = Namespace(self._path + (segment,), options or self._options, parent=self)
            self._children[slot] = child
            logger.debug(f"Created namespace {child.path!r}")
        elif options is not None and options != child.options:
            logger.debug(f"Namespace {child.path!r} already exists, ignoring new options")
        return child

    def children(self) -> list["Namespace"]:
        return list(self._children.values())

    def contains(self, full_key: bytes) -> bool:
        """True if full_key lies inside this namespace's block."""
        return has_prefix(full_key, self._prefix)

    def is_ancestor_of(self, other: "Namespace") -> bool:
        return other.depth > self.depth and other.path[: self.depth] == self._path

    def encode(self, key: Any, key_encoding: str | None = None) -> bytes:
        """
        Build the full store key for a user key.

        Every key goes through the key codec, bytes included, so that
        decode() recovers it.

        Raises:
            EncodingError: If the key codec rejects the key.
        """
        codec = get_codec(key_encoding or self._options.key_encoding)
        return self._prefix + encode_with(codec, key)

    def raw_key(self, suffix: bytes) -> bytes:
        """Prefix an already encoded suffix (such as a range sentinel) verbatim."""
        return self._prefix + to_bytes(suffix)

    def decode(self, full_key: Any, raw: bool = False, key_encoding: str | None = None) -> Any:
        """
        Recover the user key from a full store key.

        Keys outside this namespace are returned unchanged.

        Args:
            full_key: Key as read from the store.
            raw: Return the remainder after the prefix without decoding it
                (as a hex string when the namespace is in hex mode).
            key_encoding: Codec override for this call.

        Raises:
            EncodingError: If the remainder cannot be decoded.
        """
        if not is_bytes_like(full_key) or not self.contains(full_key):
            return full_key

        remainder = strip_prefix(full_key, self._prefix)
        if raw:
            return remainder.hex() if self.hex else remainder

        codec = get_codec(key_encoding or self._options.key_encoding)
        return decode_with(codec, remainder)

    def key_range(self) -> tuple[bytes, bytes]:
        """Exclusive (gt, lt) bounds covering this namespace and its descendants."""
        return self.raw_key(LOWER_BOUND), self.raw_key(UPPER_BOUND)

    def pre(self, hook: Callable[..., Any]) -> HookHandle:
        """
        Register a pre-commit hook.

        The hook is called as ``hook(op, add, ops)`` for every operation of
        a batch that targets this namespace, before any key is encoded.
        ``ops`` is a read-only tuple of the batch as it stands.
        ``add(False)`` cancels the operation, ``add(other_op)`` appends a new
        operation to the batch.
        """
        return self._pre_hooks.add(hook)

    def post(self, hook: Callable[..., Any]) -> HookHandle:
        """
        Register a post-commit hook.

        The hook is called as ``hook(op)`` for every operation that targeted
        this namespace, after the store confirmed the batch.
        """
        return self._post_hooks.add(hook)

    def __repr__(self) -> str:
        return f"Namespace({self._path!r})"
