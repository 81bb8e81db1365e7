"""Protocol definitions for the RCON client.

Contains:
- PacketType enum for RCON wire packet types
- PacketContext enum for the exchange a packet belongs to
- Wire size constants
- Timing and retry constants for the transport and session
- Logging configuration
"""

import logging
from enum import Enum, IntEnum

# TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class PacketType(IntEnum):
    """Packet types on the wire.

    AUTH_RESPONSE shares its value with EXEC_COMMAND, so it is an alias of
    that member. The two are told apart by PacketContext, never by value.
    """

    RESPONSE_VALUE = 0
    EXEC_COMMAND = 2
    AUTH_RESPONSE = 2
    AUTH = 3


class PacketContext(Enum):
    """Exchange that produced (or awaited) a packet."""

    AUTH = "auth"
    COMMAND = "command"


# Field sizes in bytes
INT32_SIZE = 4
HEADER_SIZE = INT32_SIZE * 3  # size + id + type
TERMINATOR = b"\x00\x00"

# id + type + 2 terminator bytes, counted by the size field
PACKET_PADDING_SIZE = INT32_SIZE * 2 + len(TERMINATOR)

# Largest body a single packet may carry
MAX_BODY_SIZE = 4096

# Bounds of the size field
MIN_PACKET_SIZE = PACKET_PADDING_SIZE
MAX_PACKET_SIZE = MAX_BODY_SIZE + PACKET_PADDING_SIZE

# Packet ids are drawn from [1, INT32_MAX]
INT32_MAX = 2**31 - 1

# Transport timing
CONNECT_TIMEOUT_S = 2.0
SEND_POLL_TIMEOUT_S = 1.0
SEND_POLL_ATTEMPTS = 3
SEND_WRITE_ATTEMPTS = 3
SEND_RETRY_DELAY_S = 0.02

# Session read polling
READ_POLL_TIMEOUT_S = 0.1
READ_POLL_RETRIES = 2  # extra attempts after a readiness error
MAX_EMPTY_POLLS = 3  # consecutive empty polls before auto-disconnect

# Auth flow answers with an empty RESPONSE_VALUE then the AUTH_RESPONSE
AUTH_REPLY_FRAGMENTS = 2

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 27015
