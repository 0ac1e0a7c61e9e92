"""
Timeout budgets for the Erlang acceptance engine.

Every external command already carries its own timeout. A Deadline adds
an overall budget for a scenario: each command's timeout is capped at
whatever is left of it. This works from worker threads, unlike
signal-based alarms, so targets can run in parallel.
"""

import time
from typing import Callable, Optional
import logging

from ..exceptions import TimeoutError

logger = logging.getLogger(__name__)


class Deadline:
    """A per-scenario time budget.

    Usage:
        deadline = Deadline(1800, label="install from bintray")
        target.run(cmd, timeout=deadline.cap(900))

        # No overall budget
        deadline = Deadline.unlimited()
    """

    def __init__(
        self,
        seconds: Optional[float],
        label: str = "scenario",
        clock: Callable[[], float] = time.monotonic,
    ):
        self.seconds = seconds
        self.label = label
        self._clock = clock
        self._start = clock()

    @classmethod
    def unlimited(cls) -> "Deadline":
        return cls(None)

    def elapsed(self) -> float:
        return self._clock() - self._start

    def remaining(self) -> Optional[float]:
        """Seconds left, or None when there is no budget."""
        if self.seconds is None:
            return None
        return self.seconds - self.elapsed()

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def cap(self, timeout: float) -> float:
        """Return the timeout to use for the next command.

        Raises:
            TimeoutError: If the budget is already exhausted
        """
        remaining = self.remaining()
        if remaining is None:
            return timeout
        if remaining <= 0:
            raise TimeoutError(
                f"{self.label} exceeded its {self.seconds:.0f}s budget"
            )
        if remaining < timeout:
            logger.debug(f"{self.label}: capping timeout {timeout}s to {remaining:.1f}s")
        return min(timeout, remaining)
