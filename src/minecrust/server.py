"""asyncio TCP server.

Accepts connections and gives each one its own task. The task reads socket
bytes into a ``Connection``, writes every outbound packet the connection
produces, and closes the socket on end of stream, idle timeout, or any
``SessionError``. One connection failing never affects another.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any

from minecrust.config import MinecrustConfig
from minecrust.connection import Connection
from minecrust.errors import NetworkError, SessionError
from minecrust.handlers import HandlerTable, default_handlers
from minecrust.packets import protocol
from minecrust.registry import PacketRegistry
from minecrust.status import ServerStatus

__all__ = ["Server", "run_server"]


class Server:
    """Minecraft-protocol listener.

    Parameters
    ----------
    config : MinecrustConfig | None
        Listener, connection and status settings. Defaults to
        ``MinecrustConfig()``.
    registry : PacketRegistry
        Packet table shared (read-only) by every connection.
    handlers : HandlerTable
        Handler table shared (read-only) by every connection.
    logger : logging.Logger or None
        Logger instance. Defaults to ``minecrust.server``.

    Examples
    --------
    >>> server = Server(MinecrustConfig())
    >>> # await server.start()
    >>> # await server.serve_forever()
    >>> # await server.stop()
    """

    def __init__(
        self,
        config: MinecrustConfig | None = None,
        *,
        registry: PacketRegistry = protocol,
        handlers: HandlerTable = default_handlers,
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config or MinecrustConfig()
        self._registry = registry
        self._handlers = handlers
        self._logger = logger or logging.getLogger("minecrust.server")
        self._status = ServerStatus.from_config(self._config.status)
        self._server: asyncio.Server | None = None
        self._tasks: set[asyncio.Task[None]] = set()

    async def __aenter__(self) -> Server:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.stop()

    @property
    def host(self) -> str:
        return self._config.server.host

    @property
    def port(self) -> int:
        """Return the actual listening port (resolved after bind)."""
        if self._server is not None:
            sockets = self._server.sockets
            if sockets:
                addr: tuple[Any, ...] = sockets[0].getsockname()
                return addr[1]
        return self._config.server.port

    @property
    def connections(self) -> int:
        """Number of connections currently being served."""
        return len(self._tasks)

    async def start(self) -> asyncio.Server:
        """Bind the listening socket and return it."""
        if self._server is not None:
            return self._server
        self._server = await asyncio.start_server(
            self._handle_client, self._config.server.host, self._config.server.port
        )
        self._logger.info("Listening on %s:%d", self.host, self.port)
        return self._server

    async def serve_forever(self) -> None:
        server = await self.start()
        await server.serve_forever()

    async def stop(self) -> None:
        """Stop accepting and cancel every live connection."""
        server, self._server = self._server, None
        if server is not None:
            server.close()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        # wait_closed also waits for accepted connections, so it goes last
        if server is not None:
            await server.wait_closed()

    @staticmethod
    def _set_nodelay(writer: asyncio.StreamWriter) -> None:
        sock = writer.transport.get_extra_info("socket")
        if sock is not None and sock.family in (socket.AF_INET, socket.AF_INET6):
            sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

    async def _handle_client(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        task = asyncio.current_task()
        if task is not None:
            self._tasks.add(task)
        peername = writer.get_extra_info("peername")
        peer = f"{peername[0]}:{peername[1]}" if peername else "<unknown>"
        self._set_nodelay(writer)
        connection = Connection(
            self._registry,
            self._handlers,
            status=self._status,
            config=self._config.connection,
            peer=peer,
        )
        self._logger.info("New client connected: %s", peer)
        try:
            await self._serve(connection, reader, writer)
        except SessionError as exc:
            self._logger.warning(
                "Closing %s (%s): %s", peer, type(exc).__name__, exc
            )
        except asyncio.CancelledError:
            self._logger.debug("Connection task for %s cancelled", peer)
        except Exception:
            self._logger.exception("Unexpected error serving %s", peer)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except (ConnectionError, OSError):
                pass
            if task is not None:
                self._tasks.discard(task)
            self._logger.info("Client going out of scope: %s", peer)

    async def _serve(
        self,
        connection: Connection,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        read_size = self._config.server.read_size
        idle_timeout = self._config.server.idle_timeout
        while True:
            try:
                data = await asyncio.wait_for(reader.read(read_size), timeout=idle_timeout)
            except TimeoutError:
                self._logger.info(
                    "Closing idle connection %s after %.1fs", connection.peer, idle_timeout
                )
                return
            except (ConnectionError, OSError) as exc:
                raise NetworkError(f"read failed: {exc}") from exc

            if not data:
                self._logger.debug("End of stream from %s", connection.peer)
                return
            self._logger.debug(
                "Read %d bytes from %s, %d pending",
                len(data),
                connection.peer,
                connection.pending + len(data),
            )

            connection.feed(data)
            for dispatch in connection.process():
                for packet in dispatch.outbound:
                    self._logger.debug("%s: -> %r", connection.peer, packet)
                    writer.write(connection.encode(packet))
                if dispatch.outbound:
                    try:
                        await writer.drain()
                    except (ConnectionError, OSError) as exc:
                        raise NetworkError(f"write failed: {exc}") from exc


async def run_server(config: MinecrustConfig | None = None) -> None:
    """Serve until cancelled."""
    server = Server(config)
    try:
        await server.serve_forever()
    finally:
        await server.stop()
