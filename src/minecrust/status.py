"""Server status document returned by the status request."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from minecrust.config import StatusConfig

__all__ = ["ServerStatus"]


@dataclass(frozen=True)
class ServerStatus:
    """Server metadata shown in the client's server list.

    Parameters
    ----------
    version_name : str
        Human-readable game version.
    protocol : int
        Protocol number the server speaks.
    max_players : int
        Player slots advertised.
    online_players : int
        Players currently connected.
    description : str
        Message of the day.

    Examples
    --------
    >>> ServerStatus().to_json()
    '{"version":{"name":"1.8.9","protocol":47},"players":{"max":20,"online":0},"description":{"text":"A Minecrust Server"}}'
    """

    version_name: str = "1.8.9"
    protocol: int = 47
    max_players: int = 20
    online_players: int = 0
    description: str = "A Minecrust Server"

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": {"name": self.version_name, "protocol": self.protocol},
            "players": {"max": self.max_players, "online": self.online_players},
            "description": {"text": self.description},
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)

    @classmethod
    def from_config(cls, config: StatusConfig) -> ServerStatus:
        return cls(
            version_name=config.version_name,
            protocol=config.protocol,
            max_players=config.max_players,
            online_players=config.online_players,
            description=config.description,
        )

    @classmethod
    def from_dict(cls, document: dict[str, Any]) -> ServerStatus:
        """Read a status document as sent by a server.

        Missing sections fall back to defaults. ``description`` may be a
        plain string or a chat component with a ``text`` key.

        Raises
        ------
        TypeError
            If the document or one of its sections is not an object.
        ValueError
            If a numeric field is not a number.
        """
        if not isinstance(document, dict):
            msg = f"status document must be an object, not {type(document).__name__}"
            raise TypeError(msg)
        version = _section(document, "version")
        players = _section(document, "players")
        description = document.get("description", "")
        if isinstance(description, dict):
            description = description.get("text", "")
        return cls(
            version_name=str(version.get("name", "")),
            protocol=int(version.get("protocol", 0)),
            max_players=int(players.get("max", 0)),
            online_players=int(players.get("online", 0)),
            description=str(description),
        )


def _section(document: dict[str, Any], key: str) -> dict[str, Any]:
    section = document.get(key, {})
    if not isinstance(section, dict):
        raise TypeError(f"'{key}' must be an object, not {type(section).__name__}")
    return section
