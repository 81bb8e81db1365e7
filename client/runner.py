"""Client runner for the RCON client.

Contains run_client() which connects, authenticates and runs the
interactive console loop, returning an exit code based on the result.
"""

import ipaddress
import logging
from collections.abc import Callable
from enum import IntEnum
from typing import TextIO

from common.connection import ServerAddress
from common.report import ConnectionReport
from session.rcon import RconSession

logger = logging.getLogger(__name__)

PROMPT = "$ "
RECONNECT_ATTEMPTS = 3


class ExitCode(IntEnum):
    """Exit codes for client operations."""

    SUCCESS = 0  # Input exhausted, session closed cleanly
    INVALID_ARGS = 1  # Bad address or options
    CONNECT_FAILED = 2  # Initial connection failed
    CONNECTION_LOST = 3  # Dropped and could not reconnect
    ABORTED = 4  # User declined to continue without a password


def is_ipv4(text: str) -> bool:
    """Return True if text is a dotted-quad IPv4 address."""
    try:
        ipaddress.IPv4Address(text)
    except ValueError:
        return False
    return True


def confirm_empty_password(stdin: TextIO, stdout: TextIO) -> bool:
    """Ask the user to confirm connecting without a password."""
    stdout.write(
        "You have not entered a password. Are you sure you want to continue? (y/N): "
    )
    stdout.flush()
    answer = stdin.readline().strip()
    return answer in ("y", "Y")


def attempt_reconnect(session: RconSession, attempts: int = RECONNECT_ATTEMPTS) -> bool:
    """Call connect() up to `attempts` times. Returns True once connected."""
    for attempt in range(1, attempts + 1):
        session.connect()
        if session.is_connected():
            return True
        logger.warning(f"Reconnect attempt {attempt}/{attempts} failed")
    return False


def run_client(
    address: ServerAddress,
    password: str,
    stdin: TextIO,
    stdout: TextIO,
    session_factory: Callable[[ServerAddress], RconSession] = RconSession,
) -> int:
    """Run the interactive console. Returns exit code.

    Reads one command per line from stdin and prints each response. The
    loop ends on EOF, or when the connection drops and cannot be
    re-established within RECONNECT_ATTEMPTS tries. A dropped connection
    is re-established, and re-authenticated, before the next prompt.
    """
    session = session_factory(address)
    try:
        session.connect()
        if not session.is_connected():
            ConnectionReport(address, connected=False, error=session.last_error).print(stdout)
            return ExitCode.CONNECT_FAILED

        authenticated = session.authenticate(password)
        ConnectionReport(
            address,
            connected=True,
            authenticated=authenticated,
            error=session.last_error,
        ).print(stdout)
        if not authenticated:
            logger.warning("Continuing without a confirmed authentication")

        while True:
            # Only prompt on a live connection.
            if not session.is_connected():
                if not attempt_reconnect(session):
                    logger.error(f"Could not reconnect to {address}")
                    return ExitCode.CONNECTION_LOST
                session.authenticate(password)
                if not session.is_connected():
                    logger.error(f"Connection to {address} dropped during authentication")
                    return ExitCode.CONNECTION_LOST

            stdout.write(PROMPT)
            stdout.flush()
            line = stdin.readline()
            if not line:
                break

            result = session.execute(line.rstrip("\r\n"))
            if result.no_data:
                logger.debug(f"No response to packet {result.request_id}")
            print(result.text, file=stdout)

            if not session.is_connected():
                logger.warning(
                    f"Connection to {address} dropped; packet {result.request_id} "
                    "may not have reached the server"
                )

        return ExitCode.SUCCESS

    finally:
        session.close()
