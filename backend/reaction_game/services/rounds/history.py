import math
from collections import deque
from typing import Deque, Optional, Tuple

DEFAULT_CAPACITY = 10


class AttemptHistory:
    """Newest-first log of the session's reaction times (ms)."""

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        if capacity < 1:
            raise ValueError('capacity must be at least 1')
        self.capacity = capacity
        self._attempts: Deque[float] = deque(maxlen=capacity)

    def record(self, duration: float) -> None:
        """Prepend an attempt, evicting the oldest once full."""
        if not math.isfinite(duration) or duration <= 0:
            return
        self._attempts.appendleft(float(duration))

    def reset(self) -> None:
        self._attempts.clear()

    def snapshot(self) -> Tuple[float, ...]:
        return tuple(self._attempts)

    def average(self) -> Optional[float]:
        if not self._attempts:
            return None
        return sum(self._attempts) / len(self._attempts)

    def most_recent(self) -> Optional[float]:
        return self._attempts[0] if self._attempts else None

    def count(self) -> int:
        return len(self._attempts)

    def __len__(self):
        return len(self._attempts)
