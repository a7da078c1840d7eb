"""
Named key and value codecs.

A codec turns a user-level value into the bytes handed to the store and
back. Keys and values pick their codec by name through ``key_encoding``
and ``value_encoding``.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable

from keyspace.models import bytecodec
from keyspace.models.exceptions import EncodingError


@dataclass(frozen=True)
class Codec:
    """
    A named pair of encode/decode functions.

    Attributes:
        name: Registry name ("utf8", "binary", "json", "bytewise").
        encode: Converts a value to bytes.
        decode: Converts bytes back to a value.
        ordered: Whether byte order of the output follows value order.
    """

    name: str
    encode: Callable[[Any], bytes]
    decode: Callable[[bytes], Any]
    ordered: bool = False


def _utf8_encode(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if not isinstance(value, str):
        value = str(value)
    return value.encode("utf-8")


def _utf8_decode(data: bytes) -> str:
    return bytes(data).decode("utf-8")


def _binary_encode(value: Any) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    raise TypeError(f"binary codec expects bytes or str, got {type(value).__name__}")


def _json_encode(value: Any) -> bytes:
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _json_decode(data: bytes) -> Any:
    return json.loads(bytes(data).decode("utf-8"))


UTF8 = Codec("utf8", _utf8_encode, _utf8_decode, ordered=True)
BINARY = Codec("binary", _binary_encode, bytes, ordered=True)
JSON = Codec("json", _json_encode, _json_decode)
BYTEWISE = Codec("bytewise", bytecodec.encode, bytecodec.decode, ordered=True)

_REGISTRY: dict[str, Codec] = {
    "utf8": UTF8,
    "utf-8": UTF8,
    "binary": BINARY,
    "buffer": BINARY,
    "json": JSON,
    "bytewise": BYTEWISE,
}


def get_codec(name: str | Codec) -> Codec:
    """
    Look up a codec by name.

    Raises:
        EncodingError: If the name is unknown.
    """
    if isinstance(name, Codec):
        return name
    try:
        return _REGISTRY[name]
    except KeyError:
        raise EncodingError(f"Unknown encoding: {name!r}") from None


def encode_with(codec: Codec, value: Any) -> bytes:
    """Encode value, reporting any failure as EncodingError."""
    try:
        return codec.encode(value)
    except EncodingError:
        raise
    except (TypeError, ValueError, UnicodeError) as e:
        raise EncodingError(f"{codec.name} codec cannot encode {value!r}: {e}") from e


def decode_with(codec: Codec, data: bytes) -> Any:
    """Decode data, reporting any failure as EncodingError."""
    try:
        return codec.decode(data)
    except EncodingError:
        raise
    except (TypeError, ValueError, UnicodeError) as e:
        raise EncodingError(f"{codec.name} codec cannot decode {data!r}: {e}") from e
