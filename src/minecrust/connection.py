"""Per-connection protocol state machine.

``Connection`` owns the inbound buffer and the negotiation phase of one
client. Raw socket bytes go in through ``feed``; ``process`` extracts every
complete frame in arrival order, decodes it for the current phase, runs its
handler and applies the requested phase change before the next frame is
looked at. It performs no I/O: the transport writes the outbound packets of
each ``Dispatch`` and decides what to do with raised errors.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from minecrust.buffer import Buffer
from minecrust.config import ConnectionConfig
from minecrust.errors import BufferOverflow, CodecError, PacketDecodeError, UnknownPacket
from minecrust.framing import VarIntFramer
from minecrust.handlers import HandlerTable, default_handlers
from minecrust.packets import protocol
from minecrust.registry import ConnectionState, Direction, PacketRegistry
from minecrust.status import ServerStatus

__all__ = ["Connection", "Dispatch"]

logger = logging.getLogger("minecrust.connection")


@dataclass(frozen=True)
class Dispatch:
    """Outcome of one handled frame.

    Parameters
    ----------
    packet : Any
        The decoded inbound packet.
    next_state : ConnectionState | None
        Phase entered after the packet, ``None`` if unchanged.
    outbound : tuple
        Packets to send back, in order.
    """

    packet: Any
    next_state: ConnectionState | None = None
    outbound: tuple[Any, ...] = ()


class Connection:
    """Protocol state of one client connection.

    Parameters
    ----------
    registry : PacketRegistry
        Packet table used to decode inbound and encode outbound packets.
    handlers : HandlerTable
        Handler per inbound packet class.
    status : ServerStatus | None
        Document returned to status requests.
    config : ConnectionConfig | None
        Frame and pending-buffer limits.
    peer : str
        Label used in log lines.

    Examples
    --------
    >>> conn = Connection()
    >>> conn.ingest(b"\\x06\\x00\\x2f\\x00\\x00\\x00\\x01")
    [Dispatch(packet=Handshake(protocol_version=47, server_address='', server_port=0, next_state=1), next_state=<ConnectionState.STATUS: 1>, outbound=())]
    >>> conn.state
    <ConnectionState.STATUS: 1>
    """

    def __init__(
        self,
        registry: PacketRegistry = protocol,
        handlers: HandlerTable = default_handlers,
        *,
        status: ServerStatus | None = None,
        config: ConnectionConfig | None = None,
        peer: str = "<unknown>",
    ) -> None:
        config = config or ConnectionConfig()
        self.status = status or ServerStatus()
        self.peer = peer
        self._registry = registry
        self._handlers = handlers
        self._state = ConnectionState.HANDSHAKING
        self._inbound = Buffer()
        self._framer = VarIntFramer(config.max_frame_length)
        self._max_pending = config.max_pending_bytes

    def __repr__(self) -> str:
        return f"Connection(peer={self.peer!r}, state={self._state.name})"

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def pending(self) -> int:
        """Inbound bytes not yet consumed by a complete frame."""
        return self._inbound.remaining()

    def feed(self, data: bytes | bytearray | memoryview) -> None:
        """Append bytes received from the socket."""
        self._inbound.write_bytes(data)

    def process(self) -> Iterator[Dispatch]:
        """Handle every complete frame buffered so far.

        Frames whose packet id is unknown in the current phase, or whose
        packet has no handler, are logged and skipped.

        Raises
        ------
        FrameError
            If a frame length prefix is invalid.
        PacketDecodeError
            If a complete frame cannot be decoded.
        BufferOverflow
            If the bytes left over exceed ``max_pending_bytes``.
        SessionError
            Anything a handler raises, e.g. ``LogicError``.
        """
        try:
            for frame in self._framer.frames(self._inbound):
                dispatch = self._dispatch(frame)
                if dispatch is not None:
                    yield dispatch
        finally:
            self._inbound.compact()

        pending = self._inbound.remaining()
        if pending > self._max_pending:
            raise BufferOverflow(pending, self._max_pending)

    def ingest(self, data: bytes | bytearray | memoryview) -> list[Dispatch]:
        """Feed *data* and handle every frame it completes."""
        self.feed(data)
        return list(self.process())

    def encode(self, packet: Any) -> bytes:
        """Serialize an outbound packet into a complete frame."""
        return self._framer.encode(self._registry.encode(packet))

    def _dispatch(self, frame: Buffer) -> Dispatch | None:
        state = self._state
        frame_length = frame.remaining()
        try:
            packet = self._registry.decode(state, Direction.SERVERBOUND, frame)
        except UnknownPacket as exc:
            logger.warning(
                "%s: unhandled packet %s/0x%02X (%d bytes discarded)",
                self.peer,
                state.name,
                exc.packet_id,
                frame_length,
            )
            return None
        except CodecError as exc:
            raise PacketDecodeError(
                f"cannot decode {frame_length}-byte frame in {state.name}: {exc}"
            ) from exc

        if frame.remaining():
            logger.debug(
                "%s: ignoring %d trailing bytes after %r",
                self.peer,
                frame.remaining(),
                packet,
            )
        logger.debug("%s: <- %r", self.peer, packet)

        handler = self._handlers.get(type(packet))
        if handler is None:
            logger.warning(
                "%s: no handler for %s in %s", self.peer, type(packet).__name__, state.name
            )
            return None

        reply = handler(self, packet)
        if reply.next_state is not None:
            logger.debug(
                "%s: state %s -> %s", self.peer, state.name, reply.next_state.name
            )
            self._state = reply.next_state
        return Dispatch(packet=packet, next_state=reply.next_state, outbound=reply.outbound)
