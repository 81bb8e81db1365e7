#!/usr/bin/env python3
"""Interactive RCON console.

Connects to a remote RCON server and opens an interactive console which
takes commands from stdin, one per line.
"""

import argparse
import logging
import os
import sys

from client.runner import ExitCode, confirm_empty_password, is_ipv4, run_client
from common.connection import ServerAddress
from common.protocol import DEFAULT_HOST, DEFAULT_PORT

logger = logging.getLogger(__name__)

LOG_LEVELS = ["TRACE", "DEBUG", "INFO", "WARNING", "ERROR"]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rcon-cli",
        description="Connect to a remote RCON server and run commands read from stdin.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  RCON_HOST, RCON_PORT, RCON_PASSWORD, RCON_LOG_LEVEL supply defaults.

Examples:
  %(prog)s -i 10.0.0.5 -p 27015 -P secret
  %(prog)s -P                    Connect with an empty password, no prompt
""",
    )
    parser.add_argument(
        "-i",
        "--ip",
        type=str,
        default=os.environ.get("RCON_HOST", DEFAULT_HOST),
        help=f"Remote IPv4 address of the RCON server (default: {DEFAULT_HOST})",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=int,
        default=None,
        help=f"Port the server is listening on (default: {DEFAULT_PORT})",
    )
    parser.add_argument(
        "-P",
        "--password",
        nargs="?",
        const="",
        default=os.environ.get("RCON_PASSWORD"),
        help="Password for authenticating with the server. Given without a value, "
        "skips the empty-password prompt.",
    )
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        default=os.environ.get("RCON_LOG_LEVEL", "INFO").upper(),
        help="Logging level (default: INFO)",
    )
    return parser


def _env_port() -> int | None:
    """Port from RCON_PORT, or None if it is not a number."""
    raw = os.environ.get("RCON_PORT", str(DEFAULT_PORT))
    try:
        return int(raw)
    except ValueError:
        logger.error(f"Invalid RCON_PORT: {raw!r}")
        return None


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = args.log_level if args.log_level in LOG_LEVELS else "INFO"
    logging.basicConfig(
        level=logging.getLevelName(level),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
    )

    port = args.port if args.port is not None else _env_port()
    if port is None or not is_ipv4(args.ip) or not 0 <= port <= 0xFFFF:
        parser.print_help()
        return ExitCode.INVALID_ARGS

    address = ServerAddress(args.ip, port)
    logger.debug(f"Server address: {address}")

    password = args.password
    if password is None:
        if not confirm_empty_password(sys.stdin, sys.stdout):
            return ExitCode.ABORTED
        password = ""

    return run_client(address, password, sys.stdin, sys.stdout)


if __name__ == "__main__":
    sys.exit(main())
