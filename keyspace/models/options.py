"""
Configuration values threaded through handle construction.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from types import MappingProxyType
from typing import Any

from keyspace.models.codecs import get_codec

METHOD_KINDS = ("async", "sync", "readable")

# camelCase spellings accepted for compatibility with level-style option bags
_ALIASES = {
    "keyEncoding": "key_encoding",
    "valueEncoding": "value_encoding",
    "hexNamespace": "hex_namespace",
    "keyAsBuffer": "key_as_buffer",
}


def _normalize(kwargs: Mapping[str, Any]) -> dict[str, Any]:
    return {_ALIASES.get(k, k): v for k, v in kwargs.items()}


def _freeze_methods(methods: Mapping[str, str] | None) -> Mapping[str, str]:
    frozen = dict(methods or {})
    for name, kind in frozen.items():
        if kind not in METHOD_KINDS:
            raise ValueError(
                f"Unknown kind {kind!r} for method {name!r}, expected one of {METHOD_KINDS}"
            )
    return MappingProxyType(frozen)


@dataclass(frozen=True)
class Options:
    """
    Immutable handle configuration.

    Attributes:
        key_encoding: Codec name for user keys.
        value_encoding: Codec name for values.
        hex_namespace: Surface raw decoded keys as hex strings instead of bytes.
        methods: Extra store methods (name -> "async" | "sync" | "readable")
            forwarded by handles and listed in their manifest.
    """

    key_encoding: str = "bytewise"
    value_encoding: str = "json"
    hex_namespace: bool = False
    methods: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        # Validate codec names eagerly so a bad option fails at construction
        get_codec(self.key_encoding)
        get_codec(self.value_encoding)
        object.__setattr__(self, "methods", _freeze_methods(self.methods))

    @classmethod
    def from_kwargs(cls, **kwargs: Any) -> "Options":
        return cls().merge(**kwargs)

    def merge(self, **kwargs: Any) -> "Options":
        """
        Return a copy with the given fields replaced.

        Raises:
            TypeError: If an option name is not recognized.
        """
        kwargs = {k: v for k, v in _normalize(kwargs).items() if v is not None}
        known = {f.name for f in fields(self)}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise TypeError(f"Unknown option(s): {', '.join(unknown)}")
        if "methods" in kwargs:
            kwargs["methods"] = {**self.methods, **kwargs["methods"]}
        return replace(self, **kwargs) if kwargs else self


RANGE_KEYS = ("gt", "gte", "lt", "lte", "start", "end")


@dataclass(frozen=True)
class ReadOptions:
    """
    Normalized range query options.

    Only bounds that were actually given take part in range translation;
    a bound passed as None counts as not given.
    """

    bounds: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    reverse: bool = False
    limit: int | None = None
    keys: bool = True
    values: bool = True
    key_as_buffer: bool = False
    key_encoding: str | None = None
    value_encoding: str | None = None

    @classmethod
    def from_kwargs(cls, **kwargs: Any) -> "ReadOptions":
        """
        Build read options from a keyword option bag.

        Raises:
            TypeError: If an option name is not recognized.
        """
        kwargs = _normalize(kwargs)
        bounds = {k: kwargs.pop(k) for k in RANGE_KEYS if k in kwargs}
        # A bound of None means "not given", as with keyword defaults
        bounds = {k: v for k, v in bounds.items() if v is not None}
        known = {f.name for f in fields(cls)} - {"bounds"}
        unknown = sorted(set(kwargs) - known)
        if unknown:
            raise TypeError(f"Unknown read option(s): {', '.join(unknown)}")
        limit = kwargs.pop("limit", None)
        if limit is not None and limit < 0:
            limit = None
        return cls(bounds=MappingProxyType(bounds), limit=limit, **kwargs)

    def has(self, name: str) -> bool:
        return name in self.bounds
