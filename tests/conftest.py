"""Shared fixtures for minecrust tests."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from minecrust import Buffer, Connection, VarIntFramer, protocol


@pytest.fixture
def connection() -> Connection:
    return Connection(peer="test-client")


@pytest.fixture
def encode_frame() -> Callable[[Any], bytes]:
    """Frame a registered packet exactly as it goes on the wire."""
    framer = VarIntFramer()

    def encode(packet: Any) -> bytes:
        return framer.encode(protocol.encode(packet))

    return encode


@pytest.fixture
def raw_frame() -> Callable[..., bytes]:
    """Frame an arbitrary packet id and body, registered or not."""
    framer = VarIntFramer()

    def build(packet_id: int, body: bytes = b"") -> bytes:
        return framer.encode(Buffer().write_varint(packet_id).write_bytes(body))

    return build
