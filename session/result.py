"""Command result types for RCON sessions.

Contains:
- PendingResponses: packet id -> raw fragments, in arrival order
- CommandResult: Result of one request/response exchange
"""

from dataclasses import dataclass, field

from common.connection import RconError
from common.message import Packet, decode_packet, extract_body
from common.protocol import PacketContext

PendingResponses = dict[int, list[bytes]]


@dataclass
class CommandResult:
    """Result of one request/response exchange.

    Distinguishes "nothing came back" (no_data) from "the server replied
    with an empty body" (received, empty text).

    Attributes:
        request_id: Packet id the request was sent with.
        fragments: Raw frames correlated to request_id, in arrival order.
        error: Why the exchange failed, or None.
        context: Whether the request was an auth or a command; decides how
            a type 2 reply is read.
    """

    request_id: int
    fragments: list[bytes] = field(default_factory=list)
    error: RconError | None = None
    context: PacketContext | None = None

    @property
    def received(self) -> bool:
        """True if at least one fragment was correlated to the request."""
        return len(self.fragments) > 0

    @property
    def no_data(self) -> bool:
        return not self.received

    @property
    def success(self) -> bool:
        return self.error is None and self.received

    @property
    def packets(self) -> list[Packet]:
        """Correlated fragments decoded with the request's context."""
        return [decode_packet(fragment, self.context) for fragment in self.fragments]

    @property
    def body(self) -> bytes:
        """Bodies of all fragments concatenated in arrival order."""
        return b"".join(extract_body(fragment) for fragment in self.fragments)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")
