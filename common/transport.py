"""TCP transport for the RCON client.

Contains:
- Transport: one non-blocking TCP socket with select()-based readiness
  polling for connect, send and receive

The transport knows nothing about packets. Retry bounds for sending live
here; retry bounds for reading are owned by the session.
"""

import errno
import logging
import select
import socket
import time

from common.connection import AllocationError, ServerAddress
from common.protocol import (
    CONNECT_TIMEOUT_S,
    MAX_PACKET_SIZE,
    SEND_POLL_ATTEMPTS,
    SEND_POLL_TIMEOUT_S,
    SEND_RETRY_DELAY_S,
    SEND_WRITE_ATTEMPTS,
    TRACE,
)

logger = logging.getLogger(__name__)

_CONNECT_IN_PROGRESS = (errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EALREADY)


class Transport:
    """Owns a single non-blocking TCP socket."""

    def __init__(self, address: ServerAddress) -> None:
        self.address = address
        self._sock: socket.socket | None = None

    @property
    def is_open(self) -> bool:
        return self._sock is not None

    def open(self) -> None:
        """Create the socket and switch it to non-blocking mode.

        Raises:
            AllocationError: If the socket cannot be created.
        """
        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            raise AllocationError(f"Failed to create socket: {e}") from e
        sock.setblocking(False)
        self._sock = sock
        logger.debug(f"Opened socket (fd={sock.fileno()})")

    def connect_with_timeout(self, timeout_s: float = CONNECT_TIMEOUT_S) -> bool:
        """Connect to the server, waiting up to timeout_s for writability.

        Returns True once the socket is writable with no pending error.
        On False the socket stays allocated but must not be reused.
        """
        assert self._sock is not None
        target = (self.address.host, self.address.port)

        try:
            status = self._sock.connect_ex(target)
        except OSError as e:
            logger.error(f"Failed to connect to {self.address}: {e}")
            return False

        if status == 0:
            return True
        if status not in _CONNECT_IN_PROGRESS:
            logger.error(
                f"Failed to connect to {self.address}: {errno.errorcode.get(status, status)}"
            )
            return False

        try:
            _, writable, _ = select.select([], [self._sock], [], timeout_s)
        except OSError as e:
            logger.error(f"Socket select error while connecting: {e}")
            return False

        logger.debug(f"Socket select status (write): {len(writable)}")
        if not writable:
            logger.error(f"Timeout ({timeout_s}s) connecting to {self.address}")
            return False

        pending = self._sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if pending != 0:
            logger.error(
                f"Failed to connect to {self.address}: {errno.errorcode.get(pending, pending)}"
            )
            return False
        return True

    def _wait_writable(self) -> bool:
        """Poll writability, up to SEND_POLL_ATTEMPTS times."""
        assert self._sock is not None
        for attempt in range(1, SEND_POLL_ATTEMPTS + 1):
            try:
                _, writable, _ = select.select([], [self._sock], [], SEND_POLL_TIMEOUT_S)
            except OSError as e:
                logger.error(f"Socket select error: {e}")
                return False
            if writable:
                return True
            if attempt < SEND_POLL_ATTEMPTS:
                logger.debug("Socket timed out. Trying again...")

        logger.error("Failed to send data (socket timed out)")
        return False

    def _write(self, data: memoryview) -> int:
        """Issue one write, retrying a failing write. Returns bytes written."""
        assert self._sock is not None
        for attempt in range(1, SEND_WRITE_ATTEMPTS + 1):
            try:
                return self._sock.send(data)
            except OSError as e:
                logger.debug(f"Socket send error (attempt {attempt}/{SEND_WRITE_ATTEMPTS}): {e}")
                time.sleep(SEND_RETRY_DELAY_S)
        logger.error("Failed to send data (out of write attempts)")
        return 0

    def send_all(self, data: bytes) -> bool:
        """Send data, continuing after partial writes.

        Returns False once a writability poll or a write exhausts its
        attempts.
        """
        view = memoryview(data)
        while view:
            if not self._wait_writable():
                return False
            sent = self._write(view)
            if sent <= 0:
                return False
            if sent < len(view):
                logger.debug(f"Partial write: {sent} of {len(view)} bytes")
            view = view[sent:]

        logger.log(TRACE, f"Sent {len(data)} bytes")
        return True

    def poll_readable(self, timeout_s: float) -> bool:
        """Return True if data can be read within timeout_s.

        Raises:
            OSError: If the readiness check itself fails.
        """
        assert self._sock is not None
        readable, _, _ = select.select([self._sock], [], [], timeout_s)
        return bool(readable)

    def recv_one(self) -> bytes:
        """Read whatever the OS has, up to one maximum-size packet.

        Returns b"" when the peer has closed the connection.
        """
        assert self._sock is not None
        data = self._sock.recv(MAX_PACKET_SIZE)
        logger.log(TRACE, f"Received {len(data)} bytes")
        return data

    def close(self) -> None:
        if self._sock is None:
            return
        self._sock.close()
        self._sock = None
        logger.debug(f"Closed socket to {self.address}")
