"""
Byte-prefix comparison helpers.

All keys handled by the namespacing layer are byte strings ordered
lexicographically. These helpers make the prefix relation explicit,
including the zero-length prefix (contains everything) and the maximal
sentinel used as the default upper bound of a namespace block.
"""

# Lowest possible suffix: bound just below the first key of a block.
LOWER_BOUND = b""

# Highest possible suffix: greater than any bytewise or UTF-8 encoded key,
# since neither ever starts with 0xFF.
UPPER_BOUND = b"\xff"

_BYTES_LIKE = (bytes, bytearray, memoryview)


def to_bytes(key: object) -> bytes:
    """Return key as immutable bytes, rejecting anything that is not bytes-like."""
    if isinstance(key, bytes):
        return key
    if isinstance(key, _BYTES_LIKE):
        return bytes(key)
    raise TypeError(f"expected a bytes-like key, got {type(key).__name__}")


def is_bytes_like(key: object) -> bool:
    return isinstance(key, _BYTES_LIKE)


def has_prefix(key: bytes, prefix: bytes) -> bool:
    """
    Check whether key starts with prefix.

    Args:
        key: Full key.
        prefix: Candidate prefix. The empty prefix contains every key.

    Returns:
        True if the leading bytes of key equal prefix.
    """
    key = to_bytes(key)
    prefix = to_bytes(prefix)
    if len(prefix) > len(key):
        return False
    return key[: len(prefix)] == prefix


def strip_prefix(key: bytes, prefix: bytes) -> bytes:
    """
    Remove prefix from key.

    Raises:
        ValueError: If key does not start with prefix.
    """
    if not has_prefix(key, prefix):
        raise ValueError(f"{bytes(key)!r} does not start with {bytes(prefix)!r}")
    return to_bytes(key)[len(prefix) :]


def is_strict_prefix(prefix: bytes, key: bytes) -> bool:
    """True if prefix is a prefix of key and shorter than it."""
    return len(prefix) < len(key) and has_prefix(key, prefix)


def disjoint(a: bytes, b: bytes) -> bool:
    """True if neither a nor b is a prefix of the other."""
    return not (has_prefix(a, b) or has_prefix(b, a))
