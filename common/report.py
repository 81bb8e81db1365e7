"""Reporting abstractions for the RCON client.

Contains:
- Report ABC: Base class for all reports
- ConnectionReport: Report after connecting and authenticating
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TextIO

from common.connection import ServerAddress


class Report(ABC):
    """Abstract base class for client reports."""

    @abstractmethod
    def print(self, out: TextIO) -> None:
        """Print the report to out."""
        pass

    @abstractmethod
    def success(self) -> bool:
        """Return True if the report indicates success."""
        pass


@dataclass
class ConnectionReport(Report):
    """Report after the connect/authenticate sequence.

    When connected=False, error should be set.
    """

    address: ServerAddress
    connected: bool
    authenticated: bool = False
    error: Exception | None = None

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.authenticated and not self.connected:
            raise ValueError("authenticated requires connected=True")

    def print(self, out: TextIO) -> None:
        """Print the connection report."""
        if not self.connected:
            print(f"Connection: FAILED ({self.address}: {self.error})", file=out)
            return

        auth = "authenticated" if self.authenticated else f"not authenticated: {self.error}"
        print(f"Connection: SUCCESS ({self.address}, {auth})", file=out)

    def success(self) -> bool:
        """Return True if connected and authenticated."""
        return self.connected and self.authenticated
