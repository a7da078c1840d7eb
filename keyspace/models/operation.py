"""
Operation - one put or delete inside a batch.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OpType(str, Enum):
    """Type of write operation."""

    PUT = "put"
    DEL = "del"


@dataclass
class Operation:
    """
    A single write targeting one namespace.

    Attributes:
        type: PUT or DEL.
        key: User-level key (before namespace encoding).
        value: Value to store (PUT only).
        namespace: Owning namespace, or a handle exposing one. None means
            the namespace of the batch the operation is part of.
        encoded_key: Full store key, set for the duration of a commit.
        original_key: Key as it was before encoding, set during a commit.
        original_namespace: Namespace reference as passed by the caller.
    """

    type: OpType
    key: Any
    value: Any = None
    namespace: Any = None
    encoded_key: bytes | None = field(default=None, repr=False, compare=False)
    original_key: Any = field(default=None, repr=False, compare=False)
    original_namespace: Any = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.type = OpType(self.type)

    @classmethod
    def put(cls, key: Any, value: Any, namespace: Any = None) -> "Operation":
        return cls(type=OpType.PUT, key=key, value=value, namespace=namespace)

    @classmethod
    def delete(cls, key: Any, namespace: Any = None) -> "Operation":
        return cls(type=OpType.DEL, key=key, namespace=namespace)

    @property
    def is_put(self) -> bool:
        return self.type is OpType.PUT

    @classmethod
    def coerce(cls, obj: Any) -> "Operation":
        """
        Convert a batch entry into an Operation.

        Accepts Operation instances (copied, so the caller's object is never
        mutated by a commit) and mappings shaped like
        ``{"type": "put", "key": k, "value": v, "prefix": sub}``.

        Raises:
            ValueError: If obj cannot be interpreted as an operation.
        """
        if isinstance(obj, Operation):
            return cls(type=obj.type, key=obj.key, value=obj.value, namespace=obj.namespace)
        if isinstance(obj, Mapping):
            if "key" not in obj:
                raise ValueError(f"Batch operation is missing a key: {obj!r}")
            try:
                op_type = OpType(obj.get("type", OpType.PUT))
            except ValueError:
                raise ValueError(f"Unknown batch operation type: {obj.get('type')!r}") from None
            namespace = obj.get("namespace", obj.get("prefix"))
            return cls(type=op_type, key=obj["key"], value=obj.get("value"), namespace=namespace)
        raise ValueError(f"Cannot interpret {obj!r} as a batch operation")
