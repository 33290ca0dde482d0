"""Server list ping client.

Speaks the status flow from the client side: handshake into the status
phase, status request, then an optional ping whose echo measures latency.
Uses the same buffer, framer and packet registry as the server, decoding
in the clientbound direction.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any

from minecrust.buffer import Buffer
from minecrust.errors import (
    CodecError,
    LogicError,
    NetworkError,
    PacketDecodeError,
    UnknownPacket,
)
from minecrust.framing import VarIntFramer
from minecrust.packets import (
    Handshake,
    PingRequest,
    PongResponse,
    StatusRequest,
    StatusResponse,
    protocol,
)
from minecrust.registry import ConnectionState, Direction, PacketRegistry
from minecrust.status import ServerStatus

__all__ = ["StatusResult", "query_status"]

logger = logging.getLogger("minecrust.client")


@dataclass(frozen=True)
class StatusResult:
    """What a server reported about itself.

    Parameters
    ----------
    status : ServerStatus
        Parsed status document.
    document : dict
        Raw JSON document as received.
    latency : float | None
        Ping round trip in seconds, ``None`` if no ping was sent.
    """

    status: ServerStatus
    document: dict[str, Any]
    latency: float | None = None


class _PacketReader:
    def __init__(
        self,
        reader: asyncio.StreamReader,
        registry: PacketRegistry,
        framer: VarIntFramer,
        read_size: int = 1024,
    ) -> None:
        self._reader = reader
        self._registry = registry
        self._framer = framer
        self._read_size = read_size
        self._buffer = Buffer()

    async def read_packet(self, state: ConnectionState) -> Any:
        while True:
            frame = self._framer.next_frame(self._buffer)
            if frame is not None:
                self._buffer.compact()
                try:
                    return self._registry.decode(state, Direction.CLIENTBOUND, frame)
                except UnknownPacket as exc:
                    raise LogicError(f"unexpected packet from server: {exc}") from exc
                except CodecError as exc:
                    raise PacketDecodeError(f"cannot decode server packet: {exc}") from exc
            data = await self._reader.read(self._read_size)
            if not data:
                raise NetworkError("connection closed by server")
            self._buffer.write_bytes(data)


async def query_status(
    host: str,
    port: int = 25565,
    *,
    protocol_version: int = 47,
    timeout: float = 5.0,
    ping: bool = True,
    registry: PacketRegistry = protocol,
) -> StatusResult:
    """Ask a server for its status document.

    Parameters
    ----------
    host : str
        Server hostname or address.
    port : int
        Server port.
    protocol_version : int
        Protocol number announced in the handshake.
    timeout : float
        Seconds allowed for the whole exchange.
    ping : bool
        Also send a ping and measure the round trip.
    registry : PacketRegistry
        Packet table to encode and decode with.

    Returns
    -------
    StatusResult

    Raises
    ------
    NetworkError
        If the connection fails or closes early.
    LogicError
        If the server answers with the wrong packet, invalid JSON, or a pong
        that does not echo the ping.
    PacketDecodeError
        If a server frame cannot be decoded.
    TimeoutError
        If the exchange takes longer than *timeout*.

    Examples
    --------
    >>> result = await query_status("127.0.0.1", 25565)  # doctest: +SKIP
    >>> result.status.description
    'A Minecrust Server'
    """
    framer = VarIntFramer()
    async with asyncio.timeout(timeout):
        try:
            reader, writer = await asyncio.open_connection(host, port)
        except (ConnectionError, OSError) as exc:
            raise NetworkError(f"cannot connect to {host}:{port}: {exc}") from exc

        def send(packet: Any) -> None:
            logger.debug("%s:%d: -> %r", host, port, packet)
            writer.write(framer.encode(registry.encode(packet)))

        packets = _PacketReader(reader, registry, framer)
        try:
            send(Handshake(protocol_version, host, port, ConnectionState.STATUS.value))
            send(StatusRequest())
            await writer.drain()

            response = await packets.read_packet(ConnectionState.STATUS)
            if not isinstance(response, StatusResponse):
                raise LogicError(f"expected StatusResponse, got {response!r}")
            try:
                document: dict[str, Any] = json.loads(response.json_response)
                status = ServerStatus.from_dict(document)
            except (TypeError, ValueError) as exc:
                raise LogicError(f"invalid status document: {exc}") from exc

            latency: float | None = None
            if ping:
                token = time.time_ns()
                started = time.perf_counter()
                send(PingRequest(token))
                await writer.drain()
                pong = await packets.read_packet(ConnectionState.STATUS)
                latency = time.perf_counter() - started
                if not isinstance(pong, PongResponse) or pong.payload != token:
                    raise LogicError(f"ping {token} answered with {pong!r}")
        except (ConnectionError, OSError) as exc:
            raise NetworkError(f"status query to {host}:{port} failed: {exc}") from exc
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass

    return StatusResult(
        status=status,
        document=document,
        latency=latency,
    )
