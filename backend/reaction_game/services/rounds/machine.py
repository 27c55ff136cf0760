"""Round state machine for one player.

Transitions (initial state IDLE, cyclic):

    IDLE / RESULT / TOO_EARLY --activate--> WAITING   (schedule cue delay)
    WAITING --delay elapsed-->              READY     (capture ready timestamp)
    WAITING --activate-->                   TOO_EARLY (false start, timer cancelled)
    READY --activate-->                     RESULT    (valid reaction committed)
                                            IDLE      (invalid sample discarded)
    WAITING / READY --page hidden-->        IDLE      (round abandoned)

Invariants: the ready timestamp is set only in READY and the pending timer
only exists in WAITING. A timer callback acts only if its handle is still
the pending one and the state is still WAITING, so a late fire after a
false start or a reset is a no-op.

Every notification goes through ``emit(event, data)``:

- ``state_change`` ``{'state': ..., 'payload': {...}}``
- ``mood`` ``{'mode': ...}``
- ``stats`` (see ``scoring.build_stats``)
- ``attempts`` (see ``scoring.build_attempts``)
- ``notice`` ``{'message': ...}``
"""

import logging
import random
import threading
from typing import Callable, Optional

from .history import AttemptHistory
from .scoring import DEFAULT_MAX_VALID_MS, build_attempts, build_stats, is_valid_reaction
from .states import INTERRUPTIBLE_STATES, STARTABLE_STATES, RoundState
from .timers import DEFAULT_MAX_DELAY_MS, DEFAULT_MIN_DELAY_MS, TimerHandle, draw_delay_ms, monotonic_ms

NOTICE_INVALID_SAMPLE = 'Invalid timing sample. Try again.'
NOTICE_PAUSED = 'Paused. Click to start again.'
NOTICE_SESSION_RESET = 'Session stats reset.'
NOTICE_BEST_CLEARED = 'Best time cleared.'


def _discard(event: str, data: dict) -> None:
    pass


class RoundMachine:
    """Owns the round lifecycle, cue timer, ready timestamp and session stats.

    Public operations and timer callbacks are serialized by a re-entrant
    lock, so background timer tasks and socket handlers never interleave.
    """

    def __init__(
        self,
        scheduler,
        best_store,
        history: Optional[AttemptHistory] = None,
        emit: Optional[Callable[[str, dict], None]] = None,
        clock: Callable[[], float] = monotonic_ms,
        min_delay_ms: int = DEFAULT_MIN_DELAY_MS,
        max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
        max_valid_ms: float = DEFAULT_MAX_VALID_MS,
        rng: Optional[random.Random] = None,
        logger: Optional[logging.Logger] = None,
        name: str = '-',
    ):
        if max_delay_ms < min_delay_ms:
            raise ValueError('max_delay_ms must be >= min_delay_ms')
        self._scheduler = scheduler
        self._best = best_store
        self._history = history if history is not None else AttemptHistory()
        self._emit = emit or _discard
        self._clock = clock
        self.min_delay_ms = min_delay_ms
        self.max_delay_ms = max_delay_ms
        self.max_valid_ms = max_valid_ms
        self._rng = rng
        self._logger = logger or logging.getLogger(__name__)
        self.name = name

        self._lock = threading.RLock()
        self._state = RoundState.IDLE
        self._pending: Optional[TimerHandle] = None
        self._ready_at: Optional[float] = None

    # -- read-only views ---------------------------------------------------

    @property
    def state(self) -> RoundState:
        return self._state

    @property
    def ready_at(self) -> Optional[float]:
        return self._ready_at

    @property
    def pending_timer(self) -> Optional[TimerHandle]:
        return self._pending

    @property
    def history(self) -> AttemptHistory:
        return self._history

    @property
    def best_store(self):
        return self._best

    def stats(self, current: Optional[float] = None) -> dict:
        return build_stats(current, self._best.read(), self._history)

    # -- inputs --------------------------------------------------------------

    def activate(self) -> RoundState:
        """Primary input: start, false-start or stop depending on state."""
        with self._lock:
            if self._state in STARTABLE_STATES:
                self._start_round()
            elif self._state is RoundState.WAITING:
                self._false_start()
            elif self._state is RoundState.READY:
                self._stop_on_ready()
            return self._state

    def on_visibility_change(self, hidden: bool) -> RoundState:
        with self._lock:
            if not hidden:
                return self._state
            self._cancel_pending()
            if self._state in INTERRUPTIBLE_STATES:
                self._logger.info(f"[round-paused] client={self.name} from={self._state.value}")
                self._ready_at = None
                self._set_state(RoundState.IDLE)
                self._notice(NOTICE_PAUSED)
            return self._state

    def reset_session(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._ready_at = None
            self._history.reset()
            self._emit('attempts', build_attempts(self._history))
            self._emit('stats', self.stats())
            self._set_state(RoundState.IDLE)
            self._logger.info(f"[session-reset] client={self.name}")
            self._notice(NOTICE_SESSION_RESET)

    def clear_best(self) -> None:
        with self._lock:
            self._best.clear()
            self._emit('stats', self.stats())
            self._logger.info(f"[best-cleared] client={self.name}")
            self._notice(NOTICE_BEST_CLEARED)

    def sync(self) -> None:
        """Re-send the full current view (state, mood, attempts, stats)."""
        with self._lock:
            self._emit('state_change', {'state': self._state.value, 'payload': {}})
            self._emit('mood', {'mode': self._state.value})
            self._emit('attempts', build_attempts(self._history))
            self._emit('stats', self.stats())

    def shutdown(self) -> None:
        with self._lock:
            self._cancel_pending()
            self._ready_at = None

    # -- transitions -------------------------------------------------------

    def _start_round(self) -> None:
        self._cancel_pending()
        self._ready_at = None
        delay = draw_delay_ms(self.min_delay_ms, self.max_delay_ms, self._rng)
        self._set_state(RoundState.WAITING)
        self._pending = self._scheduler.schedule(delay, self._on_delay_elapsed)
        self._logger.info(f"[timer-set] client={self.name} timer={self._pending.id} delay={delay}ms")

    def _on_delay_elapsed(self, handle: TimerHandle) -> None:
        with self._lock:
            if handle is not self._pending:
                self._logger.info(f"[timer-abort] client={self.name} timer={handle.id} stale")
                return
            self._pending = None
            if self._state is not RoundState.WAITING:
                self._logger.info(f"[timer-abort] client={self.name} timer={handle.id} state={self._state.value}")
                return
            self._ready_at = self._clock()
            self._logger.info(f"[timer-fire] client={self.name} timer={handle.id}")
            self._set_state(RoundState.READY)

    def _false_start(self) -> None:
        self._cancel_pending()
        self._ready_at = None
        self._logger.info(f"[false-start] client={self.name}")
        self._set_state(RoundState.TOO_EARLY)

    def _stop_on_ready(self) -> None:
        reaction = self._clock() - self._ready_at if self._ready_at is not None else float('nan')
        self._ready_at = None

        if not is_valid_reaction(reaction, self.max_valid_ms):
            self._logger.warning(f"[invalid-sample] client={self.name} reaction={reaction}")
            self._set_state(RoundState.IDLE)
            self._notice(NOTICE_INVALID_SAMPLE)
            return

        self._history.record(reaction)
        improved = self._best.offer(reaction)
        self._logger.info(f"[result] client={self.name} reaction={reaction:.1f}ms new_best={improved}")

        self._emit('attempts', build_attempts(self._history))
        self._emit('stats', self.stats(current=reaction))
        self._set_state(RoundState.RESULT, {'current': reaction})

    # -- helpers -------------------------------------------------------------

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _set_state(self, next_state: RoundState, payload: Optional[dict] = None) -> None:
        if next_state is self._state:
            return
        self._state = next_state
        self._emit('state_change', {'state': next_state.value, 'payload': payload or {}})
        self._emit('mood', {'mode': next_state.value})

    def _notice(self, message: str) -> None:
        self._emit('notice', {'message': message})
