"""
Tests for the order-preserving key codec and prefix helpers.
"""

import random

import pytest

from keyspace.models import bytecodec
from keyspace.models.exceptions import EncodingError
from keyspace.models.prefix import (
    disjoint,
    has_prefix,
    is_strict_prefix,
    strip_prefix,
)

# Listed in ascending key order
ORDERED_VALUES = [
    None,
    b"",
    b"\x00",
    b"a",
    "",
    "\x00",
    "a",
    "a\x00",
    "ab",
    "b",
    (),
    (None,),
    ("a",),
    ("a", 1),
    ("b",),
    float("-inf"),
    -1e30,
    -(2**63),
    -1.5,
    -1,
    0,
    0.0,
    1,
    2.5,
    2**40,
    1e30,
    float("inf"),
    False,
    True,
]


class TestRoundTrip:
    """decode(encode(k)) == k over the supported domain."""

    @pytest.mark.parametrize("value", ORDERED_VALUES)
    def test_round_trip(self, value):
        """Test that every supported value decodes back to itself."""
        assert bytecodec.decode(bytecodec.encode(value)) == value

    def test_nested_none_round_trip(self):
        """Test None inside nested tuples."""
        value = ("a", None, ("b", None), None)
        assert bytecodec.decode(bytecodec.encode(value)) == value

    def test_number_round_trip(self):
        """Test exact round trips at the edges of the number encoding."""
        for value in [2**64 - 1, -(2**64) + 1, 0.1, -0.1, 2.0**64, -(2.0**64), 5e-324, 1.7e308]:
            decoded = bytecodec.decode(bytecodec.encode(value))
            assert decoded == value
            assert type(decoded) is type(value)

    def test_embedded_nulls_round_trip(self):
        """Test strings and bytes containing NUL and 0xFF bytes."""
        for value in ["\x00\x00", "a\x00b", b"\x00\xff\x00", "\x00\xff"]:
            assert bytecodec.decode(bytecodec.encode(value)) == value

    def test_lists_decode_as_tuples(self):
        """Test that lists encode as nested tuples."""
        assert bytecodec.decode(bytecodec.encode(["a", [1, 2]])) == ("a", (1, 2))

    def test_unicode_round_trip(self):
        """Test non-ASCII strings."""
        value = "café € \U0001d11e"
        assert bytecodec.decode(bytecodec.encode(value)) == value


class TestOrderPreservation:
    """Byte order of encodings matches value order."""

    def test_cross_type_order(self):
        """Test ordering across types: null < bytes < str < tuple < number < bool."""
        encoded = [bytecodec.encode(v) for v in ORDERED_VALUES]
        assert encoded == sorted(encoded)
        assert len(set(encoded)) == len(encoded)

    def test_integer_order(self):
        """Test integer ordering, negatives included."""
        rng = random.Random(7)
        values = [rng.randint(-(2**63), 2**63) for _ in range(500)] + [0, 1, -1]
        by_bytes = sorted(values, key=bytecodec.encode)
        assert by_bytes == sorted(values)

    def test_float_order(self):
        """Test float ordering, infinities included."""
        rng = random.Random(11)
        values = [rng.uniform(-1e9, 1e9) for _ in range(500)] + [float("inf"), float("-inf")]
        by_bytes = sorted(values, key=bytecodec.encode)
        assert by_bytes == sorted(values)

    def test_mixed_number_order(self):
        """Test that ints and floats interleave by value."""
        rng = random.Random(13)
        values = [rng.randint(-(10**6), 10**6) for _ in range(300)]
        values += [rng.uniform(-(10**6), 10**6) for _ in range(300)]
        values += [-1.5, -1, 1, 1.5, 2, 2.0**70, -(2.0**70), 2**64 - 1, -(2**64) + 1]
        by_bytes = sorted(set(values), key=bytecodec.encode)
        assert by_bytes == sorted(set(values))

    def test_equal_int_and_float_stay_distinct(self):
        """Test that 1 and 1.0 encode differently, int first."""
        assert bytecodec.encode(1) < bytecodec.encode(1.0) < bytecodec.encode(1.5)
        assert type(bytecodec.decode(bytecodec.encode(1))) is int
        assert type(bytecodec.decode(bytecodec.encode(1.0))) is float

    def test_string_order(self):
        """Test string ordering with NUL and multi-byte characters."""
        rng = random.Random(3)
        alphabet = ["\x00", "\x01", "a", "b", "z", "é", "€", "\U0001d11e"]
        values = list(
            {"".join(rng.choice(alphabet) for _ in range(rng.randint(0, 6))) for _ in range(400)}
        )
        by_bytes = sorted(values, key=bytecodec.encode)
        assert by_bytes == sorted(values)

    def test_tuple_order(self):
        """Test element-wise tuple ordering."""
        rng = random.Random(5)
        values = list(
            {
                tuple(rng.choice(["a", "b", "ab"]) for _ in range(rng.randint(0, 3)))
                for _ in range(200)
            }
        )
        by_bytes = sorted(values, key=bytecodec.encode)
        assert by_bytes == sorted(values)


class TestSelfDelimiting:
    """Encoded items never run into each other."""

    def test_pack_concatenates(self):
        """Test that packing is concatenation of item encodings."""
        a = ("users", 1)
        b = ("by-email", None, b"\x00")
        assert bytecodec.pack(a) + bytecodec.pack(b) == bytecodec.pack(a + b)

    def test_unpack_inverts_pack(self):
        """Test unpacking a packed path."""
        items = ("users", "by-email", 42, ("x", None))
        assert bytecodec.unpack(bytecodec.pack(items)) == items

    def test_decode_of_several_items_is_tuple(self):
        """Test decoding concatenated items."""
        data = bytecodec.encode("by-email") + bytecodec.encode("a@x.com")
        assert bytecodec.decode(data) == ("by-email", "a@x.com")

    def test_distinct_segments_are_not_prefixes(self):
        """Test that no segment encoding prefixes another."""
        segments = ["a", "ab", "a\x00", "a\x01", "", b"a", ("a",), ("a", None), 1, 10]
        encoded = [bytecodec.encode(s) for s in segments]
        for i, x in enumerate(encoded):
            for j, y in enumerate(encoded):
                if i != j:
                    assert disjoint(x, y), (segments[i], segments[j])


class TestEncodingErrors:
    """Values outside the domain and malformed data raise EncodingError."""

    def test_integer_out_of_range(self):
        """Test integers outside the 64-bit magnitude range."""
        with pytest.raises(EncodingError):
            bytecodec.encode(2**64)
        with pytest.raises(EncodingError):
            bytecodec.encode(-(2**64))

    def test_nan(self):
        """Test that NaN is rejected."""
        with pytest.raises(EncodingError):
            bytecodec.encode(float("nan"))

    def test_unsupported_type(self):
        """Test encoding a dict."""
        with pytest.raises(EncodingError):
            bytecodec.encode({"a": 1})

    def test_unterminated_string(self):
        """Test a string missing its terminator."""
        with pytest.raises(EncodingError):
            bytecodec.decode(b"\x03abc")

    def test_unknown_tag(self):
        """Test an unknown type tag."""
        with pytest.raises(EncodingError):
            bytecodec.decode(b"\x63abc")

    def test_truncated_number(self):
        """Test a number with missing bytes."""
        with pytest.raises(EncodingError):
            bytecodec.decode(b"\x06\x00\x01")

    def test_empty(self):
        """Test decoding empty input."""
        with pytest.raises(EncodingError):
            bytecodec.decode(b"")


class TestPrefixHelpers:
    """Tests for byte prefix helpers."""

    def test_empty_prefix_contains_everything(self):
        """Test the empty prefix."""
        assert has_prefix(b"", b"")
        assert has_prefix(b"abc", b"")

    def test_longer_prefix_never_matches(self):
        """Test a prefix longer than the key."""
        assert not has_prefix(b"ab", b"abc")

    def test_strip_prefix(self):
        """Test stripping present and absent prefixes."""
        assert strip_prefix(b"abc", b"ab") == b"c"
        with pytest.raises(ValueError):
            strip_prefix(b"abc", b"x")

    def test_strict_prefix(self):
        """Test strict prefix detection."""
        assert is_strict_prefix(b"ab", b"abc")
        assert not is_strict_prefix(b"abc", b"abc")

    def test_rejects_non_bytes(self):
        """Test that str keys are rejected."""
        with pytest.raises(TypeError):
            has_prefix("abc", b"a")

    def test_accepts_bytearray_and_memoryview(self):
        """Test other bytes-like inputs."""
        assert has_prefix(bytearray(b"abc"), memoryview(b"ab"))
