"""Consumable byte buffer.

``Buffer`` keeps its bytes in one ``bytearray`` and walks a read cursor over
them. Reads consume from the front, writes append to the tail, and
``prepend`` inserts in front of the unread bytes. Consumed bytes are only
released by ``compact()``.

Every read either returns the full amount it asked for or raises and leaves
the cursor where it was, so a short read can be retried once more bytes
have been appended.
"""

from __future__ import annotations

import struct

from minecrust.errors import (
    CodecError,
    InvalidStringLength,
    InvalidUTF8String,
    OutOfBounds,
)
from minecrust.varint import decode_varint, encode_varint

__all__ = ["Buffer"]

_U16 = struct.Struct(">H")
_I32 = struct.Struct(">i")
_I64 = struct.Struct(">q")


class Buffer:
    """Growable byte container with consuming reads.

    Parameters
    ----------
    data : bytes-like
        Initial content. The buffer keeps its own copy.

    Examples
    --------
    >>> buf = Buffer().write_varint(300).write_string("hi")
    >>> buf.remaining()
    5
    >>> buf.read_varint(), buf.read_string()
    (300, 'hi')
    >>> buf.remaining()
    0
    """

    __slots__ = ("_data", "_pos")

    def __init__(self, data: bytes | bytearray | memoryview = b"") -> None:
        self._data = bytearray(data)
        self._pos = 0

    @classmethod
    def from_bytes(cls, data: bytes | bytearray | memoryview) -> Buffer:
        return cls(data)

    def __len__(self) -> int:
        return self.remaining()

    def __repr__(self) -> str:
        return f"Buffer(remaining={self.remaining()})"

    def remaining(self) -> int:
        """Number of bytes not yet consumed."""
        return len(self._data) - self._pos

    def to_bytes(self) -> bytes:
        """Copy of the unread bytes. Does not consume them."""
        return bytes(self._data[self._pos :])

    # -- cursor -------------------------------------------------------------

    def mark(self) -> int:
        """Return the current read position for a later ``reset``."""
        return self._pos

    def reset(self, mark: int) -> None:
        """Rewind the read cursor to a position returned by ``mark``.

        Marks are invalidated by ``compact()``.
        """
        if not 0 <= mark <= len(self._data):
            msg = f"invalid mark {mark} (buffer holds {len(self._data)} bytes)"
            raise ValueError(msg)
        self._pos = mark

    def compact(self) -> None:
        """Release the consumed prefix of the backing store."""
        if self._pos:
            del self._data[: self._pos]
            self._pos = 0

    # -- reads --------------------------------------------------------------

    def _check_bytes(self, want: int) -> None:
        if want < 0:
            msg = f"cannot read a negative number of bytes ({want})"
            raise ValueError(msg)
        remaining = self.remaining()
        if remaining < want:
            raise OutOfBounds(want, remaining)

    def _take(self, length: int) -> bytes:
        self._check_bytes(length)
        start = self._pos
        self._pos += length
        return bytes(self._data[start : self._pos])

    def read_u8(self) -> int:
        self._check_bytes(1)
        byte = self._data[self._pos]
        self._pos += 1
        return byte

    def read_bool(self) -> bool:
        return self.read_u8() != 0

    def read_fixed_u16(self) -> int:
        return _U16.unpack(self._take(2))[0]

    def read_fixed_i32(self) -> int:
        return _I32.unpack(self._take(4))[0]

    def read_fixed_i64(self) -> int:
        return _I64.unpack(self._take(8))[0]

    def read_bytes(self, length: int) -> bytes:
        """Consume and return exactly *length* bytes."""
        return self._take(length)

    def read_sub_buffer(self, length: int) -> Buffer:
        """Consume *length* bytes into a new, independent ``Buffer``."""
        return Buffer(self._take(length))

    def read_remaining(self) -> bytes:
        return self._take(self.remaining())

    def read_varint(self) -> int:
        """Consume one VarInt.

        Raises
        ------
        OutOfBounds
            If the VarInt is cut short. Nothing is consumed.
        InvalidVarIntSize
            If the VarInt runs past five bytes. Nothing is consumed.
        """
        start = self._pos
        try:
            return decode_varint(self)
        except CodecError:
            self._pos = start
            raise

    def read_string(self, max_length: int | None = None) -> str:
        """Consume a VarInt length-prefixed UTF-8 string.

        Parameters
        ----------
        max_length : int | None
            Upper bound on the encoded byte length, ``None`` for no bound.

        Raises
        ------
        InvalidStringLength
            If the length prefix is negative or above *max_length*. Checked
            before any body byte is read.
        InvalidUTF8String
            If the body is not valid UTF-8.
        OutOfBounds
            If the body has not fully arrived.
        """
        start = self._pos
        try:
            length = decode_varint(self)
            if length < 0 or (max_length is not None and length > max_length):
                raise InvalidStringLength(length)
            raw = self._take(length)
            try:
                return raw.decode("utf-8")
            except UnicodeDecodeError:
                raise InvalidUTF8String() from None
        except CodecError:
            self._pos = start
            raise

    # -- writes -------------------------------------------------------------

    def write_u8(self, value: int) -> Buffer:
        self._data.append(value)
        return self

    def write_bool(self, value: bool) -> Buffer:
        return self.write_u8(1 if value else 0)

    def write_fixed_u16(self, value: int) -> Buffer:
        self._data += _U16.pack(value)
        return self

    def write_fixed_i32(self, value: int) -> Buffer:
        self._data += _I32.pack(value)
        return self

    def write_fixed_i64(self, value: int) -> Buffer:
        self._data += _I64.pack(value)
        return self

    def write_bytes(self, data: bytes | bytearray | memoryview) -> Buffer:
        self._data += data
        return self

    def write_varint(self, value: int) -> Buffer:
        return encode_varint(value, self)

    def write_string(self, value: str) -> Buffer:
        encoded = value.encode("utf-8")
        self.write_varint(len(encoded))
        return self.write_bytes(encoded)

    def prepend(self, data: bytes | bytearray | memoryview) -> Buffer:
        """Insert *data* in front of the unread bytes."""
        self._data[self._pos : self._pos] = data
        return self
