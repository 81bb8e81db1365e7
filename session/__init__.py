"""RCON session package.

This package owns the client side of the protocol once a socket exists:
- Connection lifecycle and the authentication handshake
- Command dispatch and multi-packet response reassembly
- Read polling with bounded retries and auto-disconnect
"""

from session.policy import DisconnectPolicy
from session.rcon import RconSession
from session.result import CommandResult, PendingResponses

__all__ = [
    "CommandResult",
    "DisconnectPolicy",
    "PendingResponses",
    "RconSession",
]
