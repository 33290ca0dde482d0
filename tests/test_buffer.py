from __future__ import annotations

import struct
from collections.abc import Callable
from typing import Any

import pytest

from minecrust import (
    Buffer,
    InvalidStringLength,
    InvalidUTF8String,
    OutOfBounds,
)
from minecrust.varint import varint_bytes


class TestReads:
    def test_read_u8(self) -> None:
        buf = Buffer(b"\x01\xff")
        assert buf.read_u8() == 1
        assert buf.read_u8() == 255
        assert buf.remaining() == 0

    def test_read_fixed_u16_is_big_endian(self) -> None:
        assert Buffer(b"\x63\xdd").read_fixed_u16() == 25565

    def test_read_fixed_i32(self) -> None:
        assert Buffer(b"\xff\xff\xff\xfe").read_fixed_i32() == -2

    def test_read_fixed_i64_is_big_endian(self) -> None:
        buf = Buffer(b"\x00\x00\x00\x00\x00\x00\x01\x00\xff\xff\xff\xff\xff\xff\xff\xff")
        assert buf.read_fixed_i64() == 256
        assert buf.read_fixed_i64() == -1

    def test_read_bool(self) -> None:
        buf = Buffer(b"\x00\x01")
        assert buf.read_bool() is False
        assert buf.read_bool() is True

    def test_read_bytes(self) -> None:
        buf = Buffer(b"hello world")
        assert buf.read_bytes(5) == b"hello"
        assert buf.remaining() == 6

    def test_read_zero_bytes(self) -> None:
        buf = Buffer(b"x")
        assert buf.read_bytes(0) == b""
        assert buf.remaining() == 1

    def test_read_negative_count_rejected(self) -> None:
        with pytest.raises(ValueError):
            Buffer(b"abc").read_bytes(-1)

    def test_read_remaining(self) -> None:
        buf = Buffer(b"abc")
        buf.read_u8()
        assert buf.read_remaining() == b"bc"
        assert buf.remaining() == 0

    def test_sub_buffer_is_independent(self) -> None:
        parent = Buffer(b"\x01\x02\x03\x04")
        sub = parent.read_sub_buffer(3)
        assert parent.remaining() == 1
        assert sub.remaining() == 3

        assert sub.read_bytes(3) == b"\x01\x02\x03"
        assert parent.read_u8() == 4

    def test_sequence_of_reads_consumes_from_front(self) -> None:
        buf = Buffer().write_varint(47).write_string("localhost").write_fixed_u16(25565)
        assert buf.read_varint() == 47
        assert buf.read_string() == "localhost"
        assert buf.read_fixed_u16() == 25565
        assert buf.remaining() == 0


class TestAtomicity:
    @pytest.mark.parametrize(
        ("data", "read", "want"),
        [
            (b"", Buffer.read_u8, 1),
            (b"\x01", Buffer.read_fixed_u16, 2),
            (b"\x01\x02\x03", Buffer.read_fixed_i32, 4),
            (b"\x01\x02\x03\x04\x05\x06\x07", Buffer.read_fixed_i64, 8),
            (b"abc", lambda buf: buf.read_bytes(5), 5),
            (b"abc", lambda buf: buf.read_sub_buffer(4), 4),
        ],
    )
    def test_short_read_fails_without_consuming(
        self, data: bytes, read: Callable[[Buffer], Any], want: int
    ) -> None:
        buf = Buffer(data)
        with pytest.raises(OutOfBounds) as exc_info:
            read(buf)
        assert exc_info.value.want == want
        assert exc_info.value.remaining == len(data)
        assert buf.remaining() == len(data)
        assert buf.to_bytes() == data

    def test_short_read_after_partial_consumption(self) -> None:
        buf = Buffer(b"\x01\x02\x03")
        buf.read_u8()
        with pytest.raises(OutOfBounds):
            buf.read_fixed_i64()
        assert buf.to_bytes() == b"\x02\x03"

    def test_retry_succeeds_once_data_arrives(self) -> None:
        buf = Buffer(b"\x00\x00")
        with pytest.raises(OutOfBounds):
            buf.read_fixed_i32()
        buf.write_bytes(b"\x00\x2a")
        assert buf.read_fixed_i32() == 42


class TestStrings:
    def test_round_trip_unicode(self) -> None:
        buf = Buffer().write_string("héllo ⛏")
        assert buf.read_string() == "héllo ⛏"

    def test_length_prefix_counts_bytes(self) -> None:
        encoded = Buffer().write_string("é").to_bytes()
        assert encoded == b"\x02\xc3\xa9"

    def test_empty_string(self) -> None:
        buf = Buffer().write_string("")
        assert buf.to_bytes() == b"\x00"
        assert buf.read_string() == ""

    def test_negative_length_rejected_before_body(self) -> None:
        data = varint_bytes(-1) + b"abc"
        buf = Buffer(data)
        with pytest.raises(InvalidStringLength) as exc_info:
            buf.read_string()
        assert exc_info.value.length == -1
        assert buf.to_bytes() == data

    def test_huge_negative_length_rejected(self) -> None:
        buf = Buffer(varint_bytes(-2147483648))
        with pytest.raises(InvalidStringLength):
            buf.read_string()

    def test_max_length(self) -> None:
        buf = Buffer().write_string("abcdef")
        with pytest.raises(InvalidStringLength):
            buf.read_string(max_length=5)
        assert buf.read_string(max_length=6) == "abcdef"

    def test_invalid_utf8_rejected(self) -> None:
        data = b"\x02\xc3\x28"
        buf = Buffer(data)
        with pytest.raises(InvalidUTF8String):
            buf.read_string()
        assert buf.to_bytes() == data

    def test_truncated_body_consumes_nothing(self) -> None:
        buf = Buffer(b"\x05abc")
        with pytest.raises(OutOfBounds) as exc_info:
            buf.read_string()
        assert exc_info.value.want == 5
        assert buf.remaining() == 4

    def test_not_null_terminated(self) -> None:
        buf = Buffer(b"\x03a\x00b")
        assert buf.read_string() == "a\x00b"


class TestWrites:
    def test_writes_append_and_chain(self) -> None:
        buf = (
            Buffer()
            .write_u8(0xFE)
            .write_bool(True)
            .write_fixed_u16(25565)
            .write_fixed_i32(-2)
            .write_fixed_i64(1)
            .write_varint(300)
            .write_bytes(b"!")
        )
        assert buf.to_bytes() == (
            b"\xfe\x01\x63\xdd\xff\xff\xff\xfe"
            b"\x00\x00\x00\x00\x00\x00\x00\x01\xac\x02!"
        )

    def test_prepend_goes_in_front_of_unread_bytes(self) -> None:
        buf = Buffer(b"\x00body")
        buf.read_u8()
        buf.prepend(b"\x04")
        assert buf.to_bytes() == b"\x04body"

    def test_prepend_length_prefix(self) -> None:
        body = Buffer().write_varint(0x01).write_fixed_i64(42)
        body.prepend(varint_bytes(body.remaining()))
        assert body.read_varint() == 9
        assert body.read_varint() == 0x01
        assert body.read_fixed_i64() == 42

    def test_fixed_width_overflow_rejected(self) -> None:
        with pytest.raises(struct.error):
            Buffer().write_fixed_u16(1 << 16)


class TestCursor:
    def test_to_bytes_does_not_consume(self) -> None:
        buf = Buffer(b"abc")
        assert buf.to_bytes() == b"abc"
        assert len(buf) == 3

    def test_mark_and_reset(self) -> None:
        buf = Buffer(b"\x01\x02\x03")
        mark = buf.mark()
        buf.read_bytes(2)
        buf.reset(mark)
        assert buf.remaining() == 3

    def test_reset_rejects_invalid_mark(self) -> None:
        buf = Buffer(b"ab")
        with pytest.raises(ValueError):
            buf.reset(3)

    def test_compact_keeps_unread_bytes(self) -> None:
        buf = Buffer(b"abcdef")
        buf.read_bytes(4)
        buf.compact()
        assert buf.mark() == 0
        assert buf.to_bytes() == b"ef"
        buf.write_bytes(b"gh")
        assert buf.read_remaining() == b"efgh"

    def test_from_bytes_copies(self) -> None:
        source = bytearray(b"ab")
        buf = Buffer.from_bytes(source)
        source[0] = 0
        assert buf.to_bytes() == b"ab"

    def test_repr(self) -> None:
        assert repr(Buffer(b"abc")) == "Buffer(remaining=3)"
