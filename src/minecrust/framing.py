from __future__ import annotations

from collections.abc import Iterator

from minecrust.buffer import Buffer
from minecrust.errors import FrameError, InvalidVarIntSize, OutOfBounds
from minecrust.varint import varint_bytes

__all__ = ["MAX_FRAME_LENGTH", "VarIntFramer"]

# Largest length a 3-byte VarInt prefix can carry.
MAX_FRAME_LENGTH = 2_097_151


class VarIntFramer:
    """Splits a byte stream into ``VarInt(length) payload`` frames.

    Extraction never loses bytes: when the length prefix or the payload is
    still incomplete the read cursor is rewound to where the frame starts,
    and the next attempt sees the same bytes plus whatever arrived since.
    """

    def __init__(self, max_frame_length: int = MAX_FRAME_LENGTH) -> None:
        self.max_frame_length = max_frame_length

    def next_frame(self, buffer: Buffer) -> Buffer | None:
        """Consume one complete frame from *buffer* and return its payload.

        Returns ``None`` (consuming nothing) if the frame has not fully
        arrived yet.

        Raises
        ------
        FrameError
            If the length prefix is malformed, negative or above
            ``max_frame_length``.
        """
        start = buffer.mark()
        try:
            length = buffer.read_varint()
        except OutOfBounds:
            return None
        except InvalidVarIntSize as exc:
            raise FrameError(f"malformed frame length: {exc}") from exc

        if length < 0:
            raise FrameError(f"negative frame length ({length})")
        if length > self.max_frame_length:
            raise FrameError(
                f"frame too large ({length} > {self.max_frame_length} bytes)"
            )
        if buffer.remaining() < length:
            buffer.reset(start)
            return None
        return buffer.read_sub_buffer(length)

    def frames(self, buffer: Buffer) -> Iterator[Buffer]:
        """Yield every complete frame currently in *buffer*."""
        while (frame := self.next_frame(buffer)) is not None:
            yield frame

    def encode(self, payload: Buffer) -> bytes:
        """Stamp the length prefix on *payload* and return the frame bytes.

        Consumes *payload*.
        """
        length = payload.remaining()
        if length > self.max_frame_length:
            raise FrameError(
                f"frame too large ({length} > {self.max_frame_length} bytes)"
            )
        payload.prepend(varint_bytes(length))
        return payload.read_remaining()
