from minecrust.buffer import Buffer
from minecrust.client import StatusResult, query_status
from minecrust.config import (
    ConnectionConfig,
    MinecrustConfig,
    ServerConfig,
    StatusConfig,
    discover_config,
    load_config,
)
from minecrust.connection import Connection, Dispatch
from minecrust.errors import (
    BufferOverflow,
    CodecError,
    FrameError,
    InvalidStringLength,
    InvalidUTF8String,
    InvalidVarIntSize,
    LogicError,
    NetworkError,
    OutOfBounds,
    PacketDecodeError,
    ProtocolError,
    SessionError,
    UnknownPacket,
)
from minecrust.framing import MAX_FRAME_LENGTH, VarIntFramer
from minecrust.handlers import HandlerTable, Reply, default_handlers
from minecrust.packets import (
    Handshake,
    PingRequest,
    PongResponse,
    StatusRequest,
    StatusResponse,
    protocol,
)
from minecrust.registry import (
    Bool,
    ConnectionState,
    Direction,
    FieldType,
    Int,
    Long,
    PacketRegistry,
    PacketSpec,
    String,
    UShort,
    VarInt,
)
from minecrust.server import Server, run_server
from minecrust.status import ServerStatus
from minecrust.varint import decode_varint, encode_varint, varint_bytes, varint_size

__version__ = "0.1.0"

__all__ = [
    # Buffer / codec
    "Buffer",
    "decode_varint",
    "encode_varint",
    "varint_bytes",
    "varint_size",
    # Framing
    "MAX_FRAME_LENGTH",
    "VarIntFramer",
    # Registry
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
    # Packets
    "Handshake",
    "PingRequest",
    "PongResponse",
    "StatusRequest",
    "StatusResponse",
    "protocol",
    # Connection
    "Connection",
    "Dispatch",
    "HandlerTable",
    "Reply",
    "default_handlers",
    "ServerStatus",
    # Transport
    "Server",
    "run_server",
    "StatusResult",
    "query_status",
    # Config
    "ConnectionConfig",
    "MinecrustConfig",
    "ServerConfig",
    "StatusConfig",
    "discover_config",
    "load_config",
    # Errors
    "BufferOverflow",
    "CodecError",
    "FrameError",
    "InvalidStringLength",
    "InvalidUTF8String",
    "InvalidVarIntSize",
    "LogicError",
    "NetworkError",
    "OutOfBounds",
    "PacketDecodeError",
    "ProtocolError",
    "SessionError",
    "UnknownPacket",
]
