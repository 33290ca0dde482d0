"""TOML-based configuration for a minecrust server.

Provides ``load_config`` / ``discover_config`` for loading ``minecrust.toml``
and a small hierarchy of frozen dataclasses for the listener, per-connection
limits, and the advertised server status.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from minecrust.framing import MAX_FRAME_LENGTH
from minecrust.varint import VARINT_MAX_BYTES

__all__ = [
    "CONFIG_FILENAME",
    "ConnectionConfig",
    "MinecrustConfig",
    "ServerConfig",
    "StatusConfig",
    "discover_config",
    "load_config",
]

CONFIG_FILENAME = "minecrust.toml"


@dataclass(frozen=True)
class ServerConfig:
    """Listener settings.

    Parameters
    ----------
    host : str
        Bind address.
    port : int
        Bind port (use 0 for OS-assigned).
    read_size : int
        Maximum bytes requested from the socket per read.
    idle_timeout : float | None
        Seconds without inbound bytes before a connection is closed.
        ``None`` disables the timeout.

    Examples
    --------
    >>> ServerConfig(port=25566)
    ServerConfig(host='0.0.0.0', port=25566, read_size=1024, idle_timeout=None)
    """

    host: str = "0.0.0.0"
    port: int = 25565
    read_size: int = 1024
    idle_timeout: float | None = None


@dataclass(frozen=True)
class ConnectionConfig:
    """Per-connection limits.

    Parameters
    ----------
    max_frame_length : int
        Largest frame payload accepted, in bytes.
    max_pending_bytes : int
        Largest amount of inbound data a connection may still hold after
        every complete frame has been extracted.

    Examples
    --------
    >>> ConnectionConfig(max_frame_length=32767, max_pending_bytes=65536)
    ConnectionConfig(max_frame_length=32767, max_pending_bytes=65536)
    """

    max_frame_length: int = MAX_FRAME_LENGTH
    max_pending_bytes: int = MAX_FRAME_LENGTH + VARINT_MAX_BYTES

    def __post_init__(self) -> None:
        if self.max_frame_length < 0:
            msg = f"max_frame_length must be >= 0, got {self.max_frame_length}"
            raise ValueError(msg)
        if self.max_pending_bytes <= 0:
            msg = f"max_pending_bytes must be > 0, got {self.max_pending_bytes}"
            raise ValueError(msg)


@dataclass(frozen=True)
class StatusConfig:
    """Values advertised in the status response.

    Examples
    --------
    >>> StatusConfig(description="Hello")
    StatusConfig(version_name='1.8.9', protocol=47, max_players=20, online_players=0, description='Hello')
    """

    version_name: str = "1.8.9"
    protocol: int = 47
    max_players: int = 20
    online_players: int = 0
    description: str = "A Minecrust Server"


@dataclass(frozen=True)
class MinecrustConfig:
    """Top-level configuration container.

    Typically created via ``load_config()`` but can be constructed manually.

    Parameters
    ----------
    server : ServerConfig
        Listener settings.
    connection : ConnectionConfig
        Per-connection limits.
    status : StatusConfig
        Advertised server status.

    Examples
    --------
    >>> config = MinecrustConfig()
    >>> config.server.port
    25565

    >>> config = load_config(Path("minecrust.toml"))
    """

    server: ServerConfig = field(default_factory=ServerConfig)
    connection: ConnectionConfig = field(default_factory=ConnectionConfig)
    status: StatusConfig = field(default_factory=StatusConfig)


def discover_config(start: Path | None = None) -> Path | None:
    """Walk up from *start* (default: cwd) looking for ``minecrust.toml``.

    Parameters
    ----------
    start : Path | None
        Directory to start searching from.

    Returns
    -------
    Path | None
        Path to the discovered config file, or ``None`` if not found.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config(path: Path | None = None) -> MinecrustConfig:
    """Load a ``MinecrustConfig`` from a TOML file.

    If *path* is ``None``, auto-discovers ``minecrust.toml`` by walking up
    from the current working directory. Returns the default config if no
    file is found.

    Parameters
    ----------
    path : Path | None
        Explicit path to a TOML config file.

    Returns
    -------
    MinecrustConfig

    Raises
    ------
    FileNotFoundError
        If an explicit *path* is given but does not exist.

    Examples
    --------
    >>> config = load_config()
    >>> config = load_config(Path("minecrust.toml"))
    >>> config.status.description
    'A Minecrust Server'
    """
    if path is None:
        discovered = discover_config()
        if discovered is None:
            return MinecrustConfig()
        path = discovered

    if not path.exists():
        msg = f"Config file not found: {path}"
        raise FileNotFoundError(msg)

    with path.open("rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    return MinecrustConfig(
        server=ServerConfig(**raw.get("server", {})),
        connection=ConnectionConfig(**raw.get("connection", {})),
        status=StatusConfig(**raw.get("status", {})),
    )
