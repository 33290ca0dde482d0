"""Error taxonomy for the wire protocol.

``CodecError`` subclasses describe why bytes could not be decoded.
``SessionError`` subclasses are fatal to one connection: the server closes
that connection with a logged reason and leaves every other one alone.
``UnknownPacket`` is neither: a connection reports it and moves on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from minecrust.registry import ConnectionState, Direction


class ProtocolError(Exception):
    """Base class for every error raised by minecrust."""


class CodecError(ProtocolError):
    """Bytes could not be decoded into the requested value."""


class OutOfBounds(CodecError):
    """A read asked for more bytes than the buffer holds."""

    def __init__(self, want: int, remaining: int) -> None:
        self.want = want
        self.remaining = remaining
        super().__init__(f"out of bounds (want {want} bytes, remaining {remaining})")


class InvalidVarIntSize(CodecError):
    """A VarInt kept its continuation bit set past the 32-bit limit."""

    def __init__(self, position: int, limit: int = 32) -> None:
        self.position = position
        self.limit = limit
        super().__init__(f"invalid varint position ({position} > {limit})")


class InvalidStringLength(CodecError):
    def __init__(self, length: int) -> None:
        self.length = length
        super().__init__(f"invalid string length ({length})")


class InvalidUTF8String(CodecError):
    def __init__(self) -> None:
        super().__init__("invalid UTF-8 string")


class UnknownPacket(ProtocolError):
    """No packet is registered for ``(state, direction, packet_id)``."""

    def __init__(
        self, state: ConnectionState, direction: Direction, packet_id: int
    ) -> None:
        self.state = state
        self.direction = direction
        self.packet_id = packet_id
        super().__init__(
            f"unknown packet {state.name}/{direction.name}/0x{packet_id:02X}"
        )


class SessionError(ProtocolError):
    """The connection cannot continue."""


class PacketDecodeError(SessionError):
    """A complete frame failed to decode.

    The underlying ``CodecError`` is chained as ``__cause__``.
    """


class FrameError(SessionError):
    """A frame length prefix is malformed, negative or too large."""


class BufferOverflow(SessionError):
    """More bytes are pending than the connection is allowed to hold."""

    def __init__(self, pending: int, limit: int) -> None:
        self.pending = pending
        self.limit = limit
        super().__init__(f"pending buffer overflow ({pending} > {limit} bytes)")


class LogicError(SessionError):
    """The peer violated the protocol contract."""


class NetworkError(SessionError):
    """The socket failed underneath the protocol."""
