"""Handshake, status and ping packets.

Registered on the module-level ``protocol`` registry. Login and play
packets are not defined; those phases are reachable but every packet in
them is reported as unknown.
"""

from __future__ import annotations

from minecrust.registry import (
    ConnectionState,
    Direction,
    Long,
    PacketRegistry,
    String,
    UShort,
    VarInt,
)

__all__ = [
    "Handshake",
    "PingRequest",
    "PongResponse",
    "StatusRequest",
    "StatusResponse",
    "protocol",
]

protocol = PacketRegistry("minecraft")


# =============================================================================
# Handshaking (0x00)
# =============================================================================


@protocol.packet(ConnectionState.HANDSHAKING, Direction.SERVERBOUND, 0x00)
class Handshake:
    """First packet of every connection; selects the next phase."""

    protocol_version: VarInt
    server_address: String
    server_port: UShort
    next_state: VarInt  # 1 = status, 2 = login


# =============================================================================
# Status (0x00 - 0x01)
# =============================================================================


@protocol.packet(ConnectionState.STATUS, Direction.SERVERBOUND, 0x00)
class StatusRequest:
    pass


@protocol.packet(ConnectionState.STATUS, Direction.CLIENTBOUND, 0x00)
class StatusResponse:
    json_response: String


@protocol.packet(ConnectionState.STATUS, Direction.SERVERBOUND, 0x01)
class PingRequest:
    payload: Long


@protocol.packet(ConnectionState.STATUS, Direction.CLIENTBOUND, 0x01)
class PongResponse:
    payload: Long
