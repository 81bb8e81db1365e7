"""Client package for the RCON client.

Contains the interactive console glue around a session:
- runner: run_client, attempt_reconnect, confirm_empty_password, is_ipv4, ExitCode
"""

from client.runner import (
    ExitCode,
    attempt_reconnect,
    confirm_empty_password,
    is_ipv4,
    run_client,
)

__all__ = [
    "ExitCode",
    "attempt_reconnect",
    "confirm_empty_password",
    "is_ipv4",
    "run_client",
]
