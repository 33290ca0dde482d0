"""VarInt codec.

A VarInt stores a signed 32-bit integer in 1-5 bytes. Each byte carries
seven data bits, least significant group first; the high bit says another
byte follows. Negative values are encoded from their unsigned 32-bit
pattern, so they always take the full five bytes.

Examples
--------
>>> varint_bytes(300)
b'\\xac\\x02'
>>> varint_bytes(-1)
b'\\xff\\xff\\xff\\xff\\x0f'
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from minecrust.errors import InvalidVarIntSize

if TYPE_CHECKING:
    from minecrust.buffer import Buffer

__all__ = [
    "CONTINUE_BIT",
    "INT32_MAX",
    "INT32_MIN",
    "SEGMENT_BITS",
    "VARINT_MAX_BYTES",
    "decode_varint",
    "encode_varint",
    "varint_bytes",
    "varint_size",
]

SEGMENT_BITS = 0x7F
CONTINUE_BIT = 0x80
VARINT_MAX_BYTES = 5
VARINT_BIT_LIMIT = 32

INT32_MIN = -(1 << 31)
INT32_MAX = (1 << 31) - 1


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    if value & 0x80000000:
        value -= 1 << 32
    return value


def decode_varint(buffer: Buffer) -> int:
    """Consume one VarInt from the front of *buffer*.

    Parameters
    ----------
    buffer : Buffer
        Source of bytes, read one at a time.

    Returns
    -------
    int
        The decoded signed 32-bit value.

    Raises
    ------
    InvalidVarIntSize
        If the fifth byte still has its continuation bit set.
    OutOfBounds
        If the buffer runs out before a terminating byte. Bytes read up to
        that point stay consumed; ``Buffer.read_varint`` rewinds them.
    """
    value = 0
    position = 0
    while True:
        byte = buffer.read_u8()
        value |= (byte & SEGMENT_BITS) << position
        if not byte & CONTINUE_BIT:
            break
        position += 7
        if position >= VARINT_BIT_LIMIT:
            raise InvalidVarIntSize(position, VARINT_BIT_LIMIT)
    return _to_int32(value)


def varint_bytes(value: int) -> bytes:
    """Return the VarInt encoding of *value*.

    Raises
    ------
    ValueError
        If *value* does not fit in a signed 32-bit integer.
    """
    if not INT32_MIN <= value <= INT32_MAX:
        msg = f"varint out of range: {value}"
        raise ValueError(msg)

    value &= 0xFFFFFFFF
    out = bytearray()
    while True:
        byte = value & SEGMENT_BITS
        value >>= 7
        if value:
            out.append(byte | CONTINUE_BIT)
        else:
            out.append(byte)
            return bytes(out)


def encode_varint(value: int, buffer: Buffer) -> Buffer:
    """Append the VarInt encoding of *value* to *buffer* and return it."""
    return buffer.write_bytes(varint_bytes(value))


def varint_size(value: int) -> int:
    """Number of bytes ``varint_bytes(value)`` produces."""
    return len(varint_bytes(value))
