"""
Order-preserving tuple encoding for keys.

Every supported value is encoded as a type tag followed by a payload that
sorts, byte by byte, the same way the values sort. Each encoded item is
self-delimiting, so a tuple is simply the concatenation of its items and

    pack(a) + pack(b) == pack(a + b)

which is what lets namespace prefixes nest: a child's prefix always starts
with its parent's prefix, and two distinct siblings never prefix each other.

Cross-type order follows the tag values:

    None < bytes < str < tuple < number < False < True

Ints and floats share one number family ordered by value; when an int and
a float are equal the int sorts first, so both keep distinct encodings.
"""

import math
import struct
from typing import Any

from keyspace.models.exceptions import EncodingError

TAG_NULL = 0x01
TAG_BYTES = 0x02
TAG_STRING = 0x03
TAG_NESTED = 0x04
TAG_NUM_NEG_BIG = 0x05
TAG_NUM = 0x06
TAG_NUM_POS_BIG = 0x07
TAG_FALSE = 0x08
TAG_TRUE = 0x09

# Ints must stay below this magnitude. Numbers in [-2**64, 2**64) are stored
# as floor (offset by 2**64, 9 bytes), fraction (8 bytes) and a kind byte;
# floats outside that window are stored as an order-preserving double.
_INT_LIMIT = 1 << 64
_KIND_INT = 0x01
_KIND_FLOAT = 0x02

_TERMINATOR = b"\x00"

# 0x00 only ever appears as a terminator, and no tag is 0x00, so no encoded
# item is a byte prefix of another
_ESCAPES = {0x00: b"\x01\x01", 0x01: b"\x01\x02"}
_UNESCAPES = {0x01: 0x00, 0x02: 0x01}


def _escape(raw: bytes) -> bytes:
    return raw.replace(b"\x01", _ESCAPES[0x01]).replace(b"\x00", _ESCAPES[0x00]) + _TERMINATOR


def _encode_float(value: float) -> bytes:
    bits = struct.pack(">d", value)
    # Negative: flip every bit. Positive: flip the sign bit only.
    if bits[0] & 0x80:
        return bytes(b ^ 0xFF for b in bits)
    return bytes([bits[0] ^ 0x80]) + bits[1:]


def _decode_float(bits: bytes) -> float:
    if bits[0] & 0x80:
        bits = bytes([bits[0] ^ 0x80]) + bits[1:]
    else:
        bits = bytes(b ^ 0xFF for b in bits)
    return struct.unpack(">d", bits)[0]


def _encode_number(value: int | float) -> bytes:
    if isinstance(value, float):
        if math.isnan(value):
            raise EncodingError("NaN has no position in the key order")
        if value < -_INT_LIMIT:
            return bytes([TAG_NUM_NEG_BIG]) + _encode_float(value)
        if value >= _INT_LIMIT:
            return bytes([TAG_NUM_POS_BIG]) + _encode_float(value)
        whole = math.floor(value)
        # Exact for doubles; the "or 0.0" folds -0.0 into 0.0
        fraction = (value - whole) or 0.0
        kind = _KIND_FLOAT
    else:
        if abs(value) >= _INT_LIMIT:
            raise EncodingError(f"Integer out of range for key encoding: {value}")
        whole, fraction, kind = value, 0.0, _KIND_INT
    return (
        bytes([TAG_NUM])
        + (whole + _INT_LIMIT).to_bytes(9, "big")
        + struct.pack(">d", fraction)
        + bytes([kind])
    )


def _decode_number(data: bytes, pos: int) -> tuple[int | float, int]:
    payload = _read_fixed(data, pos, 18)
    whole = int.from_bytes(payload[:9], "big") - _INT_LIMIT
    fraction = struct.unpack(">d", payload[9:17])[0]
    kind = payload[17]
    if kind == _KIND_INT:
        return whole, pos + 18
    if kind == _KIND_FLOAT:
        return whole + fraction, pos + 18
    raise EncodingError(f"Unknown number kind 0x{kind:02x} in encoded key")


def _encode_one(value: Any) -> bytes:
    """Encode a single value."""
    if value is None:
        return bytes([TAG_NULL])
    if isinstance(value, bool):
        return bytes([TAG_TRUE if value else TAG_FALSE])
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes([TAG_BYTES]) + _escape(bytes(value))
    if isinstance(value, str):
        try:
            raw = value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodingError(f"Cannot encode string key: {e}") from e
        return bytes([TAG_STRING]) + _escape(raw)
    if isinstance(value, (int, float)):
        return _encode_number(value)
    if isinstance(value, (tuple, list)):
        return (
            bytes([TAG_NESTED])
            + b"".join(_encode_one(item) for item in value)
            + _TERMINATOR
        )
    raise EncodingError(f"Unsupported type for key encoding: {type(value).__name__}")


def _read_escaped(data: bytes, pos: int) -> tuple[bytes, int]:
    """Read an escaped, 0x00-terminated payload starting at pos."""
    end = data.find(_TERMINATOR, pos)
    if end < 0:
        raise EncodingError("Unterminated byte string in encoded key")
    out = bytearray()
    i = pos
    while i < end:
        byte = data[i]
        if byte == 0x01:
            if i + 1 >= end or data[i + 1] not in _UNESCAPES:
                raise EncodingError("Invalid escape sequence in encoded key")
            out.append(_UNESCAPES[data[i + 1]])
            i += 2
            continue
        out.append(byte)
        i += 1
    return bytes(out), end + 1


def _read_fixed(data: bytes, pos: int, size: int) -> bytes:
    chunk = data[pos : pos + size]
    if len(chunk) != size:
        raise EncodingError("Truncated numeric value in encoded key")
    return chunk


def _decode_one(data: bytes, pos: int) -> tuple[Any, int]:
    """Decode the value starting at pos; return it with the next position."""
    code = data[pos]
    if code == TAG_NULL:
        return None, pos + 1
    if code == TAG_BYTES:
        return _read_escaped(data, pos + 1)
    if code == TAG_STRING:
        raw, pos = _read_escaped(data, pos + 1)
        try:
            return raw.decode("utf-8"), pos
        except UnicodeDecodeError as e:
            raise EncodingError(f"Invalid UTF-8 in encoded key: {e}") from e
    if code == TAG_NUM:
        return _decode_number(data, pos + 1)
    if code in (TAG_NUM_NEG_BIG, TAG_NUM_POS_BIG):
        return _decode_float(_read_fixed(data, pos + 1, 8)), pos + 9
    if code == TAG_FALSE:
        return False, pos + 1
    if code == TAG_TRUE:
        return True, pos + 1
    if code == TAG_NESTED:
        items = []
        pos += 1
        while True:
            if pos >= len(data):
                raise EncodingError("Unterminated tuple in encoded key")
            if data[pos] == 0x00:
                return tuple(items), pos + 1
            item, pos = _decode_one(data, pos)
            items.append(item)
    raise EncodingError(f"Unknown type tag 0x{code:02x} in encoded key")


def pack(items: tuple | list) -> bytes:
    """
    Encode a tuple of values, preserving order.

    Args:
        items: Values to encode, in order.

    Returns:
        Concatenation of the self-delimiting encodings of each item.

    Raises:
        EncodingError: If an item is not in the supported domain.
    """
    return b"".join(_encode_one(item) for item in items)


def unpack(data: bytes) -> tuple:
    """
    Decode bytes produced by pack() back into a tuple.

    Raises:
        EncodingError: If data is truncated or carries an unknown tag.
    """
    data = bytes(data)
    items = []
    pos = 0
    while pos < len(data):
        item, pos = _decode_one(data, pos)
        items.append(item)
    return tuple(items)


def encode(value: Any) -> bytes:
    """Encode a single value."""
    return _encode_one(value)


def decode(data: bytes) -> Any:
    """
    Decode a single value.

    If data holds more than one encoded item (for example a descendant
    namespace's key seen from its ancestor), the items come back as a tuple.
    """
    items = unpack(data)
    if not items:
        raise EncodingError("Cannot decode an empty key")
    if len(items) == 1:
        return items[0]
    return items
