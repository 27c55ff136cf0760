"""Clock, cue-delay policy and cancellable single-shot timers.

Timers are scheduled through a scheduler object so the round machine never
touches threads directly:

- ``BackgroundScheduler`` runs each timer as a Flask-SocketIO background
  task that sleeps for the delay in short steps and calls back unless
  cancelled; a cancelled timer stops sleeping at the next step.
- ``ManualScheduler`` only records timers; ``fire`` runs them on demand.
  It backs the ``REACTION_MANUAL_TIMERS`` setting and the tests.
"""

import itertools
import random
import time
from typing import Callable, List, Optional

DEFAULT_MIN_DELAY_MS = 1000
DEFAULT_MAX_DELAY_MS = 5000
DEFAULT_POLL_MS = 50


def monotonic_ms() -> float:
    """High-resolution monotonic timestamp in milliseconds."""
    return time.perf_counter() * 1000.0


def clamp_int(value: float, low: int, high: int) -> int:
    return max(low, min(high, int(value)))


def draw_delay_ms(min_ms: int = DEFAULT_MIN_DELAY_MS,
                  max_ms: int = DEFAULT_MAX_DELAY_MS,
                  rng: Optional[random.Random] = None) -> int:
    """Uniform cue delay, clamped to whole milliseconds in [min_ms, max_ms]."""
    if max_ms < min_ms:
        raise ValueError(f'max_ms ({max_ms}) must be >= min_ms ({min_ms})')
    draw = (rng or random).uniform(min_ms, max_ms)
    return clamp_int(draw, min_ms, max_ms)


_handle_ids = itertools.count(1)


class TimerHandle:
    """Identity of one scheduled callback; cancellable until it fires."""

    def __init__(self, delay_ms: int, callback: Callable[['TimerHandle'], None]):
        self.id = next(_handle_ids)
        self.delay_ms = delay_ms
        self.callback = callback
        self.cancelled = False
        self.fired = False

    @property
    def active(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        self.cancelled = True

    def run(self) -> None:
        if not self.active:
            return
        self.fired = True
        self.callback(self)

    def __repr__(self):
        return f'<TimerHandle id={self.id} delay_ms={self.delay_ms} active={self.active}>'


class BackgroundScheduler:
    """Schedules timers as Socket.IO background tasks."""

    def __init__(self, socketio, poll_ms: int = DEFAULT_POLL_MS):
        if poll_ms < 1:
            raise ValueError('poll_ms must be at least 1')
        self._socketio = socketio
        self.poll_ms = poll_ms

    def schedule(self, delay_ms: int, callback: Callable[[TimerHandle], None]) -> TimerHandle:
        handle = TimerHandle(delay_ms, callback)
        self._socketio.start_background_task(self._runner, handle)
        return handle

    def _runner(self, handle: TimerHandle) -> None:
        # Sleep in short steps so a cancelled timer ends its task early
        remaining = handle.delay_ms
        while remaining > 0 and handle.active:
            step = min(self.poll_ms, remaining)
            self._socketio.sleep(step / 1000.0)
            remaining -= step
        handle.run()


class ManualScheduler:
    """Holds timers until ``fire`` is called."""

    def __init__(self):
        self.scheduled: List[TimerHandle] = []

    def schedule(self, delay_ms: int, callback: Callable[[TimerHandle], None]) -> TimerHandle:
        handle = TimerHandle(delay_ms, callback)
        self.scheduled.append(handle)
        return handle

    def pending(self) -> List[TimerHandle]:
        return [h for h in self.scheduled if h.active]

    def fire(self, handle: TimerHandle) -> None:
        """Run a handle's callback as if its delay had elapsed."""
        handle.run()

    def fire_all(self) -> int:
        due = self.pending()
        for handle in due:
            handle.run()
        return len(due)
