"""Common modules for the RCON client.

This package contains the protocol-level building blocks used by the session:
- protocol: PacketType/PacketContext enums, wire sizes, timing constants
- connection: ServerAddress, SessionState, error taxonomy
- message: Wire format encoding/decoding and stream framing
- transport: Non-blocking TCP socket with readiness polling
- report: Reporting abstractions
"""

from common.connection import (
    AllocationError,
    AuthRejected,
    ConnectError,
    ProtocolError,
    RconError,
    ReadTimeout,
    SendError,
    ServerAddress,
    SessionState,
)
from common.message import FrameBuffer, Packet
from common.protocol import (
    CONNECT_TIMEOUT_S,
    MAX_BODY_SIZE,
    MAX_EMPTY_POLLS,
    MAX_PACKET_SIZE,
    READ_POLL_TIMEOUT_S,
    PacketContext,
    PacketType,
)
from common.transport import Transport

__all__ = [
    # Protocol
    "PacketType",
    "PacketContext",
    "MAX_BODY_SIZE",
    "MAX_PACKET_SIZE",
    "CONNECT_TIMEOUT_S",
    "READ_POLL_TIMEOUT_S",
    "MAX_EMPTY_POLLS",
    # Codec
    "Packet",
    "FrameBuffer",
    # Connection
    "ServerAddress",
    "SessionState",
    "Transport",
    # Exceptions
    "RconError",
    "AllocationError",
    "AuthRejected",
    "ConnectError",
    "ProtocolError",
    "ReadTimeout",
    "SendError",
]
