"""Connection state types for the RCON client.

Contains:
- RconError and its subclasses: the client's error taxonomy
- ServerAddress: host/port pair a session connects to
- SessionState: Enum for the session lifecycle
"""

from dataclasses import dataclass
from enum import Enum


class RconError(Exception):
    """Base class for RCON client errors."""

    pass


class AllocationError(RconError):
    """Raised when a socket cannot be created."""

    pass


class ConnectError(RconError):
    """Connection refused, unresolved or timed out."""

    pass


class SendError(RconError):
    """All write and writability-poll attempts were exhausted."""

    pass


class ReadTimeout(RconError):
    """No response was correlated to a request before polling went idle."""

    pass


class AuthRejected(RconError):
    """Authentication reply did not match the expected two-packet flow."""

    pass


class ProtocolError(RconError):
    """Raised on a malformed or oversized packet."""

    pass


class SessionState(Enum):
    """Lifecycle state of an RCON session."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass(frozen=True)
class ServerAddress:
    """Address of an RCON server."""

    host: str
    port: int

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not 0 <= self.port <= 0xFFFF:
            raise ValueError(f"port must fit in 16 bits, got {self.port}")

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"
