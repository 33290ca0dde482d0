from __future__ import annotations

import pytest

from minecrust import Buffer, InvalidVarIntSize, OutOfBounds
from minecrust.varint import (
    INT32_MAX,
    INT32_MIN,
    decode_varint,
    encode_varint,
    varint_bytes,
    varint_size,
)

# Reference encodings from the protocol documentation.
KNOWN = [
    (0, b"\x00"),
    (1, b"\x01"),
    (2, b"\x02"),
    (127, b"\x7f"),
    (128, b"\x80\x01"),
    (255, b"\xff\x01"),
    (25565, b"\xdd\xc7\x01"),
    (2097151, b"\xff\xff\x7f"),
    (2147483647, b"\xff\xff\xff\xff\x07"),
    (-1, b"\xff\xff\xff\xff\x0f"),
    (-2147483648, b"\x80\x80\x80\x80\x08"),
]


class TestEncode:
    @pytest.mark.parametrize(("value", "encoded"), KNOWN)
    def test_known_encodings(self, value: int, encoded: bytes) -> None:
        assert varint_bytes(value) == encoded

    def test_encode_appends_to_buffer(self) -> None:
        buf = Buffer(b"\xaa")
        result = encode_varint(300, buf)
        assert result is buf
        assert buf.to_bytes() == b"\xaa\xac\x02"

    @pytest.mark.parametrize("value", [INT32_MAX + 1, INT32_MIN - 1, 1 << 40])
    def test_out_of_range_rejected(self, value: int) -> None:
        with pytest.raises(ValueError):
            varint_bytes(value)

    def test_size(self) -> None:
        assert varint_size(0) == 1
        assert varint_size(128) == 2
        assert varint_size(2097151) == 3
        assert varint_size(2097152) == 4
        assert varint_size(-1) == 5


class TestDecode:
    @pytest.mark.parametrize(("value", "encoded"), KNOWN)
    def test_known_decodings(self, value: int, encoded: bytes) -> None:
        buf = Buffer(encoded)
        assert decode_varint(buf) == value
        assert buf.remaining() == 0

    def test_stops_at_terminating_byte(self) -> None:
        buf = Buffer(b"\xac\x02\x05")
        assert decode_varint(buf) == 300
        assert buf.remaining() == 1

    def test_round_trip_across_int32_range(self) -> None:
        step = 1_000_003
        values = list(range(INT32_MIN, INT32_MAX, step)) + [INT32_MIN, INT32_MAX, -1, 0]
        for value in values:
            assert decode_varint(Buffer(varint_bytes(value))) == value

    def test_five_byte_sequence_with_terminator_succeeds(self) -> None:
        # The fifth byte only contributes bits 28-31.
        assert decode_varint(Buffer(b"\xff\xff\xff\xff\x7f")) == -1
        assert decode_varint(Buffer(b"\x80\x80\x80\x80\x01")) == 1 << 28

    def test_sixth_byte_rejected(self) -> None:
        buf = Buffer(b"\xff\xff\xff\xff\xff\x01")
        with pytest.raises(InvalidVarIntSize) as exc_info:
            decode_varint(buf)
        assert exc_info.value.position == 35
        assert exc_info.value.limit == 32

    def test_overflow_detected_before_reading_sixth_byte(self) -> None:
        with pytest.raises(InvalidVarIntSize):
            decode_varint(Buffer(b"\x80\x80\x80\x80\x80"))

    def test_truncated_sequence_raises_out_of_bounds(self) -> None:
        with pytest.raises(OutOfBounds):
            decode_varint(Buffer(b"\x80\x80"))

    def test_empty_buffer(self) -> None:
        with pytest.raises(OutOfBounds) as exc_info:
            decode_varint(Buffer())
        assert exc_info.value.want == 1
        assert exc_info.value.remaining == 0


class TestBufferVarInt:
    def test_truncated_varint_consumes_nothing(self) -> None:
        buf = Buffer(b"\xff\xff")
        with pytest.raises(OutOfBounds):
            buf.read_varint()
        assert buf.remaining() == 2

    def test_oversized_varint_consumes_nothing(self) -> None:
        buf = Buffer(b"\xff\xff\xff\xff\xff\x01")
        with pytest.raises(InvalidVarIntSize):
            buf.read_varint()
        assert buf.remaining() == 6

    def test_completed_after_more_bytes_arrive(self) -> None:
        buf = Buffer(b"\xdd")
        with pytest.raises(OutOfBounds):
            buf.read_varint()
        buf.write_bytes(b"\xc7\x01")
        assert buf.read_varint() == 25565
