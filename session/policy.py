"""Auto-disconnect policy for RCON sessions.

Contains:
- DisconnectPolicy: counts consecutive read polls that returned nothing
  and closes the session once the threshold is reached
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from common.protocol import MAX_EMPTY_POLLS

logger = logging.getLogger(__name__)


@dataclass
class DisconnectPolicy:
    """Consecutive-empty-poll counter with a close callback.

    Attributes:
        on_trip: Called once when the threshold is reached.
        threshold: Consecutive empty polls that trip the policy.
        consecutive_empty: Empty polls seen since the last non-empty one.
    """

    on_trip: Callable[[], None]
    threshold: int = MAX_EMPTY_POLLS
    consecutive_empty: int = 0

    def record(self, fragments: int) -> bool:
        """Record the outcome of one poll call.

        Returns True if this call tripped the policy.
        """
        if fragments > 0:
            self.consecutive_empty = 0
            return False

        self.consecutive_empty += 1
        logger.debug(
            f"No data received ({self.consecutive_empty}/{self.threshold} consecutive)"
        )
        if self.consecutive_empty < self.threshold:
            return False

        logger.warning(
            f"No data after {self.threshold} consecutive polls. Automatically disconnecting."
        )
        self.consecutive_empty = 0
        self.on_trip()
        return True

    def reset(self) -> None:
        self.consecutive_empty = 0
