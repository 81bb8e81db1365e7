"""RCON session for the RCON client.

Contains:
- RconSession: connection lifecycle, authentication handshake, command
  dispatch and fragment reassembly over a single Transport

Every request goes through the same sequence: send one packet, then poll
the socket until it goes idle and group what arrived by packet id. A
response larger than one packet arrives as several fragments sharing the
request's id and is concatenated in arrival order.
"""

import logging
import random
from collections.abc import Callable
from types import TracebackType

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
from common.message import FrameBuffer, Packet, decode_header
from common.protocol import (
    AUTH_REPLY_FRAGMENTS,
    INT32_MAX,
    READ_POLL_RETRIES,
    READ_POLL_TIMEOUT_S,
    TRACE,
    PacketContext,
    PacketType,
)
from common.transport import Transport
from session.policy import DisconnectPolicy
from session.result import CommandResult, PendingResponses

logger = logging.getLogger(__name__)


class RconSession:
    """A client session with one RCON server.

    Not thread-safe: callers must serialize access. Failures never raise;
    they are logged, stored in `last_error` and reported through the
    return value. Check `is_connected()` after each call.
    """

    def __init__(
        self,
        address: ServerAddress,
        seed: int | None = None,
        transport_factory: Callable[[ServerAddress], Transport] = Transport,
    ) -> None:
        self.address = address
        self.last_error: RconError | None = None
        self._transport_factory = transport_factory
        self._transport: Transport | None = None
        self._state = SessionState.DISCONNECTED
        self._rng = random.Random(seed)
        self._frames = FrameBuffer()
        self._policy = DisconnectPolicy(on_trip=self.close)

    def __enter__(self) -> "RconSession":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def consecutive_empty_polls(self) -> int:
        return self._policy.consecutive_empty

    def is_connected(self) -> bool:
        return self._state == SessionState.CONNECTED

    def _fail(self, error: RconError) -> RconError:
        self.last_error = error
        logger.error(str(error))
        return error

    def _next_packet_id(self) -> int:
        return self._rng.randint(1, INT32_MAX)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def connect(self) -> None:
        """Establish a connection to the server.

        A no-op (logged as an error) while already connected. On failure
        the session stays disconnected and `last_error` says why.
        """
        if self.is_connected():
            logger.error(
                "Socket already connected to RCON server. "
                "Please disconnect before starting another connection."
            )
            return

        transport = self._transport_factory(self.address)
        try:
            transport.open()
        except AllocationError as e:
            self._fail(e)
            return

        if not transport.connect_with_timeout():
            transport.close()
            self._fail(ConnectError(f"Failed to connect to the RCON server at {self.address}"))
            return

        self._transport = transport
        self._state = SessionState.CONNECTED
        self._frames.clear()
        self._policy.reset()
        self.last_error = None
        logger.info(f"Connected to RCON server at {self.address}")

    def close(self) -> None:
        """Close the connection. Safe to call in any state."""
        if not self.is_connected():
            return
        if self._transport is not None:
            self._transport.close()
        self._transport = None
        self._state = SessionState.DISCONNECTED
        self._frames.clear()
        logger.info("Connection closed.")

    # -------------------------------------------------------------------------
    # Exchanges
    # -------------------------------------------------------------------------

    def authenticate(self, password: str) -> bool:
        """Authenticate with the server.

        Success requires exactly two packets carrying the auth request's
        id: the empty RESPONSE_VALUE followed by the AUTH_RESPONSE. A
        rejection and a reply that has not fully arrived yet both return
        False.
        """
        if not self.is_connected():
            self._fail(ConnectError("Socket not currently connected. Cannot authenticate."))
            return False

        result = self._exchange(PacketType.AUTH, password, PacketContext.AUTH)
        if result.error is not None and not isinstance(result.error, ReadTimeout):
            return False

        for reply in result.packets:
            logger.log(TRACE, f"Auth reply (id={reply.id}, type={reply.type})")

        count = len(result.fragments)
        if count != AUTH_REPLY_FRAGMENTS:
            self._fail(
                AuthRejected(
                    f"Authentication with {self.address} failed "
                    f"({count} of {AUTH_REPLY_FRAGMENTS} reply packets)"
                )
            )
            return False

        self.last_error = None
        logger.info(f"Successfully authenticated to the remote RCON server at {self.address}")
        return True

    def execute(
        self, command: str, packet_type: PacketType = PacketType.EXEC_COMMAND
    ) -> CommandResult:
        """Send a command and collect every fragment of its response."""
        if not self.is_connected():
            error = ConnectError("Socket not currently connected. Socket must be connected to send data.")
            self._fail(error)
            return CommandResult(request_id=0, error=error)

        return self._exchange(packet_type, command, PacketContext.COMMAND)

    def send_command(
        self, command: str, packet_type: PacketType = PacketType.EXEC_COMMAND
    ) -> str:
        """Send a command and return the reassembled response text.

        Returns "" both when nothing came back and when the server replied
        with an empty body; use execute() to tell those apart.
        """
        return self.execute(command, packet_type).text

    def _exchange(
        self, packet_type: PacketType, body: str, context: PacketContext
    ) -> CommandResult:
        """Send one packet, then poll until idle and pick out its replies."""
        assert self._transport is not None
        packet_id = self._next_packet_id()
        result = CommandResult(request_id=packet_id, context=context)

        try:
            packet = Packet(packet_id, packet_type, body.encode("utf-8"), context).encode()
        except ProtocolError as e:
            result.error = self._fail(e)
            return result

        logger.log(
            TRACE, f"Sending {context.value} packet (id={packet_id}, type={int(packet_type)})"
        )
        if not self._transport.send_all(packet):
            # Part of the frame may already be on the wire; the stream is
            # no longer aligned, so the connection cannot be reused.
            result.error = self._fail(SendError(f"Failed to send packet {packet_id}. Disconnecting."))
            self.close()
            return result

        pending = self.get_pending_data()
        result.fragments = pending.get(packet_id, [])
        if result.no_data:
            result.error = ReadTimeout(f"No response for packet {packet_id}")
            self.last_error = result.error
            logger.debug(str(result.error))
        else:
            self.last_error = None
        return result

    def get_pending_data(self) -> PendingResponses:
        """Read every packet waiting on the socket, grouped by packet id.

        Polls readability every READ_POLL_TIMEOUT_S until nothing is
        pending. Three consecutive readiness errors, a receive error, a
        peer close or a corrupt stream close the session. Calls that end
        normally feed the auto-disconnect policy.
        """
        pending: PendingResponses = {}
        if not self.is_connected():
            return pending
        assert self._transport is not None

        received = 0
        errors = 0
        while True:
            try:
                ready = self._transport.poll_readable(READ_POLL_TIMEOUT_S)
            except OSError as e:
                if errors >= READ_POLL_RETRIES:
                    logger.error(
                        f"Error reading the socket: {e}. "
                        "Ran out of tries. Automatically disconnecting socket."
                    )
                    self.close()
                    return pending
                errors += 1
                logger.warning(f"Error reading the socket: {e}. Trying again...")
                continue
            errors = 0

            if not ready:
                break

            try:
                chunk = self._transport.recv_one()
            except BlockingIOError:
                continue
            except OSError as e:
                logger.error(f"Error receiving from the socket: {e}. Disconnecting.")
                self.close()
                return pending

            if not chunk:
                logger.warning("Server closed the connection.")
                self.close()
                return pending

            try:
                frames = self._frames.feed(chunk)
            except ProtocolError as e:
                logger.error(f"Corrupt packet stream: {e}. Disconnecting.")
                self.close()
                return pending

            for frame in frames:
                _, packet_id = decode_header(frame)
                pending.setdefault(packet_id, []).append(frame)
                received += 1
                logger.log(TRACE, f"Received packet (id={packet_id}, {len(frame)} bytes)")

        if received == 0:
            logger.debug("Timeout limit reached.")
        logger.debug(f"Successfully read: {received} {'packet' if received == 1 else 'packets'}")
        self._policy.record(received)
        return pending
