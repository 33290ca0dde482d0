"""Packet handlers.

A handler receives the connection and a decoded packet and returns a
``Reply``: packets to send back and, optionally, the phase the connection
moves to before its next frame is decoded. Handlers raise ``SessionError``
subclasses to terminate the connection.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeAlias, TypeVar

from minecrust.errors import LogicError
from minecrust.packets import (
    Handshake,
    PingRequest,
    PongResponse,
    StatusRequest,
    StatusResponse,
)
from minecrust.registry import ConnectionState

if TYPE_CHECKING:
    from minecrust.connection import Connection

__all__ = [
    "Handler",
    "HandlerTable",
    "Reply",
    "default_handlers",
    "handle_handshake",
    "handle_ping",
    "handle_status_request",
]

P = TypeVar("P")

Handler: TypeAlias = "Callable[[Connection, Any], Reply]"


@dataclass(frozen=True)
class Reply:
    """What a handler wants done after a packet.

    Parameters
    ----------
    outbound : tuple
        Packets to send, in order.
    next_state : ConnectionState | None
        Phase to enter, ``None`` to stay.
    """

    outbound: tuple[Any, ...] = ()
    next_state: ConnectionState | None = None


class HandlerTable:
    """Maps packet classes to their handlers.

    Examples
    --------
    >>> table = HandlerTable()
    >>> @table.on(PingRequest)
    ... def pong(connection, packet):
    ...     return Reply(outbound=(PongResponse(packet.payload),))
    >>> PingRequest in table
    True
    """

    def __init__(self) -> None:
        self._handlers: dict[type, Handler] = {}

    def __contains__(self, packet_cls: type) -> bool:
        return packet_cls in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def on(
        self, packet_cls: type[P]
    ) -> Callable[[Callable[[Connection, P], Reply]], Callable[[Connection, P], Reply]]:
        """Register the decorated function as the handler for *packet_cls*."""

        def decorator(
            fn: Callable[[Connection, P], Reply],
        ) -> Callable[[Connection, P], Reply]:
            self.add(packet_cls, fn)
            return fn

        return decorator

    def add(self, packet_cls: type, handler: Handler) -> None:
        if packet_cls in self._handlers:
            msg = f"handler for {packet_cls.__name__} already registered"
            raise ValueError(msg)
        self._handlers[packet_cls] = handler

    def get(self, packet_cls: type) -> Handler | None:
        return self._handlers.get(packet_cls)

    def copy(self) -> HandlerTable:
        """Independent table with the same entries, for extending defaults."""
        table = HandlerTable()
        table._handlers = dict(self._handlers)
        return table


default_handlers = HandlerTable()

_NEXT_STATES = {
    ConnectionState.STATUS.value: ConnectionState.STATUS,
    ConnectionState.LOGIN.value: ConnectionState.LOGIN,
}


@default_handlers.on(Handshake)
def handle_handshake(connection: Connection, packet: Handshake) -> Reply:
    next_state = _NEXT_STATES.get(packet.next_state)
    if next_state is None:
        raise LogicError(
            f"Invalid next_state: {packet.next_state} (from {connection.state.name})"
        )
    return Reply(next_state=next_state)


@default_handlers.on(StatusRequest)
def handle_status_request(connection: Connection, packet: StatusRequest) -> Reply:
    return Reply(outbound=(StatusResponse(connection.status.to_json()),))


@default_handlers.on(PingRequest)
def handle_ping(connection: Connection, packet: PingRequest) -> Reply:
    return Reply(outbound=(PongResponse(packet.payload),))
