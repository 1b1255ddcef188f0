import math
import time
from datetime import datetime, timezone
from typing import Callable, Optional


class SyncCooldownLock:
    """Single-slot guard for HTTP-triggered sync runs.

    A run holds the slot from ``try_acquire`` until ``release``. A slot older
    than ``cooldown_seconds`` counts as free again, so a crashed run cannot
    block future ones forever.
    """

    def __init__(self, cooldown_seconds: float, clock: Callable[[], float] = time.time):
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._started_at: Optional[float] = None

    def _elapsed(self) -> Optional[float]:
        if self._started_at is None:
            return None
        return self._clock() - self._started_at

    def is_running(self) -> bool:
        elapsed = self._elapsed()
        return elapsed is not None and elapsed < self.cooldown_seconds

    def remaining_seconds(self) -> int:
        elapsed = self._elapsed()
        if elapsed is None or elapsed >= self.cooldown_seconds:
            return 0
        return math.ceil(self.cooldown_seconds - elapsed)

    @property
    def last_started_at(self) -> Optional[datetime]:
        if self._started_at is None:
            return None
        return datetime.fromtimestamp(self._started_at, tz=timezone.utc)

    def try_acquire(self) -> bool:
        if self.is_running():
            return False
        self._started_at = self._clock()
        return True

    def release(self) -> None:
        self._started_at = None
