"""Declarative packet registry.

A ``PacketRegistry`` maps ``(ConnectionState, Direction, packet_id)`` to a
packet class and the routines that read and write its body. The
``packet`` decorator:

1. Applies ``@dataclass(frozen=True, slots=True)`` if the class is not
   already a dataclass
2. Derives decode/encode from the wire type named in each field annotation
3. Registers the class under its key

Usage::

    protocol = PacketRegistry("minecraft")

    @protocol.packet(ConnectionState.STATUS, Direction.SERVERBOUND, 0x01)
    class PingRequest:
        payload: Long

    buf = protocol.encode(PingRequest(42))          # packet id + body
    packet = protocol.decode(ConnectionState.STATUS, Direction.SERVERBOUND, buf)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, fields, is_dataclass
from enum import IntEnum
from typing import Annotated, Any, TypeAlias, TypeVar, get_args, get_origin, get_type_hints

from minecrust.buffer import Buffer
from minecrust.errors import UnknownPacket
from minecrust.varint import INT32_MAX

__all__ = [
    "Bool",
    "ConnectionState",
    "Direction",
    "FieldType",
    "Int",
    "Long",
    "PacketRegistry",
    "PacketSpec",
    "String",
    "UShort",
    "VarInt",
]

T = TypeVar("T")

PacketDecoder: TypeAlias = "Callable[[Buffer], Any]"
PacketEncoder: TypeAlias = "Callable[[Any, Buffer], None]"
PacketKey: TypeAlias = "tuple[ConnectionState, Direction, int]"


class ConnectionState(IntEnum):
    """Negotiation phase of a connection.

    Values match the ``next_state`` field of the handshake packet.
    """

    HANDSHAKING = 0
    STATUS = 1
    LOGIN = 2
    PLAY = 3


class Direction(IntEnum):
    CLIENTBOUND = 0  # server -> client
    SERVERBOUND = 1  # client -> server


# =============================================================================
# Wire field types
# =============================================================================


@dataclass(frozen=True)
class FieldType:
    """How one packet field is read from and written to a ``Buffer``."""

    name: str
    read: Callable[[Buffer], Any]
    write: Callable[[Buffer, Any], Any]


VarInt = Annotated[int, FieldType("varint", Buffer.read_varint, Buffer.write_varint)]
UShort = Annotated[int, FieldType("u16", Buffer.read_fixed_u16, Buffer.write_fixed_u16)]
Int = Annotated[int, FieldType("i32", Buffer.read_fixed_i32, Buffer.write_fixed_i32)]
Long = Annotated[int, FieldType("i64", Buffer.read_fixed_i64, Buffer.write_fixed_i64)]
Bool = Annotated[bool, FieldType("bool", Buffer.read_bool, Buffer.write_bool)]
String = Annotated[str, FieldType("string", Buffer.read_string, Buffer.write_string)]


def _field_type(hint: Any) -> FieldType | None:
    if get_origin(hint) is not Annotated:
        return None
    for meta in get_args(hint)[1:]:
        if isinstance(meta, FieldType):
            return meta
    return None


def _derive_codec(cls: type) -> tuple[PacketDecoder, PacketEncoder]:
    """Build body decode/encode routines from a dataclass's annotations."""
    hints = get_type_hints(cls, include_extras=True)
    layout: list[tuple[str, FieldType]] = []
    for f in fields(cls):
        field_type = _field_type(hints.get(f.name))
        if field_type is None:
            msg = f"{cls.__name__}.{f.name} has no wire type annotation"
            raise TypeError(msg)
        layout.append((f.name, field_type))

    def decode(buf: Buffer) -> Any:
        return cls(**{name: ft.read(buf) for name, ft in layout})

    def encode(packet: Any, buf: Buffer) -> None:
        for name, ft in layout:
            ft.write(buf, getattr(packet, name))

    return decode, encode


# =============================================================================
# Registry
# =============================================================================


@dataclass(frozen=True)
class PacketSpec:
    """Registry entry for one packet type."""

    state: ConnectionState
    direction: Direction
    packet_id: int
    cls: type
    decode: PacketDecoder
    encode: PacketEncoder

    @property
    def key(self) -> PacketKey:
        return (self.state, self.direction, self.packet_id)


class PacketRegistry:
    """Packet table scoped to one protocol.

    Parameters
    ----------
    name : str
        Label used in error messages and logs.

    Examples
    --------
    >>> registry = PacketRegistry("example")
    >>> @registry.packet(ConnectionState.STATUS, Direction.CLIENTBOUND, 0x01)
    ... class Pong:
    ...     payload: Long
    >>> buf = registry.encode(Pong(7))
    >>> registry.decode(ConnectionState.STATUS, Direction.CLIENTBOUND, buf)
    Pong(payload=7)
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._by_key: dict[PacketKey, PacketSpec] = {}
        self._by_class: dict[type, PacketSpec] = {}

    def __len__(self) -> int:
        return len(self._by_key)

    def __repr__(self) -> str:
        return f"PacketRegistry({self.name!r}, packets={len(self)})"

    def _check_key(
        self, state: ConnectionState, direction: Direction, packet_id: int
    ) -> None:
        if not 0 <= packet_id <= INT32_MAX:
            raise ValueError(f"packet_id must be 0x00-0x7FFFFFFF, got {packet_id:#x}")
        existing = self._by_key.get((state, direction, packet_id))
        if existing is not None:
            raise ValueError(
                f"[{self.name}] {state.name}/{direction.name}/0x{packet_id:02X} "
                f"already registered to {existing.cls.__name__}"
            )

    def packet(
        self,
        state: ConnectionState,
        direction: Direction,
        packet_id: int,
        *,
        frozen: bool = True,
        slots: bool = True,
    ) -> Callable[[type[T]], type[T]]:
        """Register a packet class whose fields carry wire type annotations."""
        self._check_key(state, direction, packet_id)

        def decorator(cls: type[T]) -> type[T]:
            if not is_dataclass(cls):
                cls = dataclass(frozen=frozen, slots=slots)(cls)
            self.register(state, direction, packet_id, cls)
            return cls

        return decorator

    def register(
        self,
        state: ConnectionState,
        direction: Direction,
        packet_id: int,
        cls: type,
        *,
        decode: PacketDecoder | None = None,
        encode: PacketEncoder | None = None,
    ) -> PacketSpec:
        """Register *cls* under ``(state, direction, packet_id)``.

        When *decode* or *encode* is omitted it is derived from the class's
        dataclass fields.

        Raises
        ------
        ValueError
            If the key is taken, the id is out of range, or *cls* is already
            registered.
        TypeError
            If a routine has to be derived and a field lacks a wire type.
        """
        self._check_key(state, direction, packet_id)
        if cls in self._by_class:
            raise ValueError(f"[{self.name}] {cls.__name__} is already registered")

        if decode is None or encode is None:
            derived_decode, derived_encode = _derive_codec(cls)
            decode = decode or derived_decode
            encode = encode or derived_encode

        spec = PacketSpec(
            state=state,
            direction=direction,
            packet_id=packet_id,
            cls=cls,
            decode=decode,
            encode=encode,
        )
        self._by_key[spec.key] = spec
        self._by_class[cls] = spec
        return spec

    def lookup(
        self, state: ConnectionState, direction: Direction, packet_id: int
    ) -> PacketSpec | None:
        return self._by_key.get((state, direction, packet_id))

    def spec_for(self, cls: type) -> PacketSpec:
        spec = self._by_class.get(cls)
        if spec is None:
            raise KeyError(f"{cls.__name__} is not registered with protocol '{self.name}'")
        return spec

    def packets(
        self,
        state: ConnectionState | None = None,
        direction: Direction | None = None,
    ) -> list[PacketSpec]:
        """Registered specs, optionally filtered, ordered by key."""
        return [
            spec
            for key, spec in sorted(self._by_key.items())
            if (state is None or spec.state == state)
            and (direction is None or spec.direction == direction)
        ]

    def decode(
        self, state: ConnectionState, direction: Direction, payload: Buffer
    ) -> Any:
        """Read a packet id from *payload* and decode the body after it.

        Raises
        ------
        UnknownPacket
            If nothing is registered for the id in this state and direction.
        CodecError
            If the id or body cannot be read.
        """
        packet_id = payload.read_varint()
        spec = self.lookup(state, direction, packet_id)
        if spec is None:
            raise UnknownPacket(state, direction, packet_id)
        return spec.decode(payload)

    def encode(self, packet: Any) -> Buffer:
        """Serialize *packet* as packet id followed by body."""
        spec = self.spec_for(type(packet))
        buf = Buffer().write_varint(spec.packet_id)
        spec.encode(packet, buf)
        return buf
