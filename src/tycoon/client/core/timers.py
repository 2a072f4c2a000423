"""
Wall-clock turn timers.

Both timers are polled from the session tick; neither blocks. The turn
budget is measured from the authoritative turn_start and freezes once the
roll is acknowledged, so the remaining time shown stays truthful.
"""
import time
from typing import Callable, Optional, Tuple

from tycoon.shared.constants import INACTIVITY_SECONDS, TURN_TOTAL_SECONDS


class TurnTimer:
    """Turn budget counted down from turn_start."""

    def __init__(self, total_seconds: float = TURN_TOTAL_SECONDS,
                 clock: Callable[[], float] = time.time):
        self.total_seconds = total_seconds
        self._clock = clock
        self._turn_start: Optional[float] = None
        self._frozen_left: Optional[float] = None
        self._claimed: Optional[Tuple] = None

    def start(self, turn_start: Optional[float]) -> None:
        """Track a new turn; unfreezes when turn_start changes."""
        if turn_start != self._turn_start:
            self._turn_start = turn_start
            self._frozen_left = None

    @property
    def turn_start(self) -> Optional[float]:
        return self._turn_start

    @property
    def frozen(self) -> bool:
        return self._frozen_left is not None

    def freeze(self) -> None:
        if self._frozen_left is None:
            self._frozen_left = self._live_left()

    def _live_left(self) -> Optional[float]:
        if self._turn_start is None:
            return None
        return max(0.0, self.total_seconds - (self._clock() - self._turn_start))

    def time_left(self) -> Optional[float]:
        if self._frozen_left is not None:
            return self._frozen_left
        return self._live_left()

    def expired(self) -> bool:
        if self.frozen or self._turn_start is None:
            return False
        return self._clock() - self._turn_start >= self.total_seconds

    def claim_expiry(self, key: Tuple) -> bool:
        """
        True exactly once per turn key, and only after expiry.

        Callers use this to fire the timeout action a single time even
        though the tick keeps seeing an expired budget. Only the latest
        claim is remembered; turn keys never repeat.
        """
        if not self.expired() or key == self._claimed:
            return False
        self._claimed = key
        return True


class InactivityTimer:
    """Counts idle time after the roll; touching it restarts the count."""

    def __init__(self, seconds: float = INACTIVITY_SECONDS,
                 clock: Callable[[], float] = time.time):
        self.seconds = seconds
        self._clock = clock
        self._armed_at: Optional[float] = None

    @property
    def armed(self) -> bool:
        return self._armed_at is not None

    def arm(self) -> None:
        self._armed_at = self._clock()

    def touch(self) -> None:
        if self._armed_at is not None:
            self._armed_at = self._clock()

    def disarm(self) -> None:
        self._armed_at = None

    def expired(self) -> bool:
        if self._armed_at is None:
            return False
        return self._clock() - self._armed_at >= self.seconds
